#!/usr/bin/env python3
"""
YouTube Comment Analyzer - Main Entry Point

Flask application for fetching YouTube comments, filtering them, and
translating, classifying and analyzing them with Gemini.
"""

import os
import sys
import logging
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from flask import Flask
from config import Config, get_config
from application import create_app, VERSION

logger = logging.getLogger(__name__)


def setup_logging(app: Flask) -> None:
    """Configure logging for the app and every service module"""
    log_level = logging.DEBUG if app.config.get('DEBUG', False) else logging.INFO

    logs_dir = project_root / app.config.get('LOG_DIRECTORY', Config.LOG_DIRECTORY)
    logs_dir.mkdir(exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    file_handler = logging.FileHandler(logs_dir / 'comment_analyzer.log', encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # Services log through module loggers, so configure the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    app.logger.setLevel(log_level)

    # Keep request logs but silence the discovery-cache chatter
    logging.getLogger('werkzeug').setLevel(logging.INFO)
    logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)


def validate_environment():
    """Validate critical environment variables"""
    try:
        config = get_config()
        config.validate_required_env_vars()
        logger.info("Environment validation completed")
        return True

    except ValueError as e:
        logger.error("Environment validation failed: %s", e)
        logger.error("Create a .env file in the project root with YOUTUBE_API_KEY=your_key_here "
                     "and optionally GEMINI_API_KEY=key1,key2 for translation and analysis")
        return False


def display_startup_info(app: Flask):
    """Log application startup information"""
    logger.info("YouTube Comment Analyzer v%s", VERSION)
    logger.info("Environment: %s", app.config.get('ENVIRONMENT'))
    logger.info("Debug Mode: %s", app.config.get('DEBUG', False))
    logger.info("Gemini model: %s", app.config.get('GEMINI_MODEL'))

    for rule in sorted(app.url_map.iter_rules(), key=lambda r: str(r.rule)):
        methods = ', '.join(sorted(rule.methods - {'HEAD', 'OPTIONS'}))
        logger.info("   %s [%s]", rule.rule, methods)


def main():
    """Main application entry point"""
    # Basic console logging until the app config is known
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    try:
        if not validate_environment():
            logger.error("Application startup failed due to environment issues")
            sys.exit(1)

        environment = os.getenv('FLASK_ENV', 'development')

        # Create Flask application using factory pattern
        app = create_app(environment)

        # Replace the bootstrap handlers with the configured ones
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
        setup_logging(app)

        display_startup_info(app)

        host = os.getenv('FLASK_HOST', '127.0.0.1')
        port = int(os.getenv('FLASK_PORT', '5000'))
        debug = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'

        logger.info("Server starting on http://%s:%d", host, port)
        if debug:
            logger.warning("Debug mode is enabled - do not use in production!")

        app.run(
            host=host,
            port=port,
            debug=debug,
            use_reloader=debug,
            threaded=True
        )

    except KeyboardInterrupt:
        logger.info("Application stopped by user")
        sys.exit(0)

    except Exception:
        logger.exception("Fatal error during application startup")
        sys.exit(1)


if __name__ == '__main__':
    main()
