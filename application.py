"""
Application Factory for the YouTube Comment Analyzer

This module implements the Flask application factory pattern for creating
and configuring the Flask application with all necessary components.
"""

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

# Import configuration
from config import get_config

# Import service instances (these are singletons created in each service module)
from services.ai_service import ai_service
from services.youtube_service import youtube_service
from services.analysis_service import analysis_service
from services.exceptions import CommentAnalyzerError

# Import route blueprints
from routes import analysis_bp, comments_bp, testing_bp

VERSION = '1.0'


def create_app(environment='development'):
    """
    Application factory pattern for creating Flask app instances

    Args:
        environment (str): Configuration environment ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """

    # Create Flask application
    app = Flask(__name__)

    # Load configuration
    config_class = get_config(environment)
    app.config.from_object(config_class)

    # Store environment in app config for reference
    app.config['ENVIRONMENT'] = environment

    # Initialize services
    initialize_services(app)

    # Register blueprints
    register_blueprints(app)

    # Setup error handlers
    setup_error_handlers(app)

    # Setup health check endpoint
    setup_health_check(app)

    app.logger.info(f"Flask application created successfully in {environment} mode")

    return app


def initialize_services(app: Flask):
    """Attach the service singletons to the app"""
    app.ai_service = ai_service
    app.youtube_service = youtube_service
    app.analysis_service = analysis_service

    if app.ai_service.is_available():
        app.logger.info(f"AI service (Gemini) is available with {len(app.ai_service.keys)} API key(s)")
    else:
        app.logger.warning("AI service is not available - check GEMINI_API_KEY")

    if app.youtube_service.is_available():
        app.logger.info("YouTube service initialized successfully")
    else:
        app.logger.warning("YouTube service not available - check YOUTUBE_API_KEY")


def register_blueprints(app: Flask):
    """Register all application blueprints"""
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(analysis_bp, url_prefix='/api/analysis')
    app.register_blueprint(testing_bp)


def setup_error_handlers(app: Flask):
    """Setup global error handlers"""

    @app.errorhandler(CommentAnalyzerError)
    def handle_comment_analyzer_error(error):
        """Domain errors carry their own status code"""
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}")
        else:
            app.logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors"""
        return jsonify({
            'error': 'The requested resource could not be found on this server.',
            'status_code': 404
        }), 404

    @app.errorhandler(413)
    def request_too_large(error):
        """Handle oversized uploads"""
        return jsonify({
            'error': f"File too large (limit {app.config.get('MAX_UPLOAD_MB')} MB)",
            'status_code': 413
        }), 413

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        """Handle all other HTTP exceptions"""
        return jsonify({
            'error': error.description,
            'status_code': error.code
        }), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        """Handle unexpected errors"""
        app.logger.exception(f"Internal server error: {error}")
        return jsonify({
            'error': 'An unexpected error occurred. Please try again later.',
            'status_code': 500
        }), 500


def setup_health_check(app: Flask):
    """Setup application health check endpoint"""

    @app.route('/health')
    def health_check():
        """Application health check endpoint"""
        services_status = {
            'ai_service': 'available' if app.ai_service.is_available() else 'unavailable',
            'youtube_service': 'available' if app.youtube_service.is_available() else 'unavailable',
        }

        overall_health = 'healthy'
        if 'unavailable' in services_status.values():
            overall_health = 'degraded'

        return jsonify({
            'status': overall_health,
            'environment': app.config.get('ENVIRONMENT', 'unknown'),
            'debug': app.config.get('DEBUG', False),
            'services': services_status,
            'version': VERSION
        })
