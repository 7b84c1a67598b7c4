from dotenv import load_dotenv
load_dotenv()

from app import create_app, db
from flask import request, current_app

app = create_app()

@app.before_request
def log_request_info():
    current_app.logger.debug(f'🌐 Request: {request.method} {request.path}')
    current_app.logger.debug(f'📦 Content-Type: {request.content_type}')
    if request.is_json:
        current_app.logger.debug(f'📄 JSON body: {request.get_json(silent=True)}')

@app.after_request
def log_response_info(response):
    """
    Log the status of every response. Streamed bodies (files) cannot be read
    without consuming them, so only their status and type are logged.
    """
    if response.direct_passthrough or response.is_streamed:
        current_app.logger.debug(
            f'📤 Response: {response.status_code} - streamed body, '
            f'Content-Type: {response.content_type}'
        )
    else:
        current_app.logger.debug(
            f'📤 Response: {response.status_code} - {response.get_data(as_text=True)[:200]}'
        )
    return response

with app.app_context():
    db.create_all()

if __name__ == '__main__':
    app.run(debug=True)
