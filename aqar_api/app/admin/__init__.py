from app.admin.routes import admin_bp

__all__ = ['admin_bp']
