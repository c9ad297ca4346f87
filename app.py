"""
School ERP backend
Main Flask application entry point
"""

import logging
import logging.config
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from database import db, init_db, DatabaseError
from utils.errors import ServiceError

logger = logging.getLogger(__name__)

def configure_logging(app):
    """Console logging at the configured LOG_LEVEL"""
    level = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'verbose': {
                'format': '{levelname} {asctime} {name} {message}',
                'style': '{',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'verbose',
            },
        },
        'root': {
            'handlers': ['console'],
            'level': level,
        },
    })
    app.logger.setLevel(level)

def register_error_handlers(app):
    """Translate service errors into the JSON envelope"""

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(DatabaseError)
    def handle_database_error(error):
        logger.exception("Database error: %s", error)
        return jsonify({'success': False, 'message': 'A database error occurred'}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error: %s", error)
        return jsonify({'success': False, 'message': 'Internal server error'}), 500

def create_app(config_object=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json.sort_keys = app.config.get('JSON_SORT_KEYS', False)

    configure_logging(app)

    # Initialize extensions with app
    db.init_app(app)

    # Register blueprints
    from routes.auth import auth_bp
    from routes.attendance import attendance_bp
    from routes.results import results_bp
    from routes.holidays import holidays_bp
    from routes.reports import reports_bp, report_files_bp

    app.register_blueprint(auth_bp, url_prefix='/api/v1/auth')
    app.register_blueprint(attendance_bp, url_prefix='/api/v1/attendance')
    app.register_blueprint(results_bp, url_prefix='/api/v1/results')
    app.register_blueprint(holidays_bp, url_prefix='/api/v1/holidays')
    app.register_blueprint(reports_bp, url_prefix='/api/v1/reports')
    app.register_blueprint(report_files_bp, url_prefix='/reports')

    register_error_handlers(app)

    os.makedirs(app.config['REPORTS_DIR'], exist_ok=True)

    # Initialize database
    init_db(app)

    return app

if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8000, debug=True, use_reloader=False)
