import logging

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_mail import Mail
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from config import Config

db = SQLAlchemy()
mail = Mail()
jwt = JWTManager()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'DEBUG')).upper(), logging.DEBUG))

    db.init_app(app)
    mail.init_app(app)
    jwt.init_app(app)
    CORS(app, resources={
        r"/api/*": {"origins": app.config['CORS_ORIGINS']},
        r"/*/admin/*": {"origins": app.config['CORS_ORIGINS']},
    }, supports_credentials=True)

    from app.utils.storage_utils import init_cloudinary
    init_cloudinary(app)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        app.logger.error("🔑 JWT token expired")
        return jsonify({'message': 'Token expired'}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(callback_error):
        app.logger.error(f"🔑 Invalid JWT token: {callback_error}")
        return jsonify({'message': f'Invalid token: {callback_error}'}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(callback_error):
        app.logger.error(f"🔑 Unauthorized access: {callback_error}")
        return jsonify({'message': 'Authentication required'}), 401

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        app.logger.warning("🔑 JWT token revoked")
        return jsonify({'message': 'Token revoked'}), 401

    # Generic 422 handler
    @app.errorhandler(422)
    def handle_unprocessable_entity(e):
        messages = getattr(e, 'data', {}).get('messages', [str(e)])
        app.logger.error(f'❌ 422 error: {messages}')
        return jsonify({'error': 'Unprocessable Entity', 'details': messages}), 422

    from marshmallow import ValidationError
    from app.schemas import validation_error_response

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        app.logger.warning(f'❌ Validation error: {e.messages}')
        return validation_error_response(e)

    from app.i18n import init_i18n
    init_i18n(app)

    from app.i18n.middleware import register_locale_middleware
    register_locale_middleware(app)

    from app.auth import auth_bp
    app.register_blueprint(auth_bp)

    from app.main.routes import main_bp
    app.register_blueprint(main_bp)

    from app.properties.routes import properties_bp
    app.register_blueprint(properties_bp)

    from app.search.routes import search_bp
    app.register_blueprint(search_bp)

    from app.categories.routes import categories_bp
    app.register_blueprint(categories_bp)

    from app.areas.routes import areas_bp
    app.register_blueprint(areas_bp)

    from app.favorites.routes import favorites_bp
    app.register_blueprint(favorites_bp)

    from app.comparison.routes import comparison_bp
    app.register_blueprint(comparison_bp)

    from app.admin import admin_bp
    app.register_blueprint(admin_bp)

    from app.uploads.routes import uploads_bp
    app.register_blueprint(uploads_bp)

    return app
