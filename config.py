"""
Configuration management for the YouTube Comment Analyzer
Contains all environment variables, API keys, and pipeline settings
"""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _split_keys(raw_value):
    """Split a comma-separated key list, dropping blanks"""
    return [key.strip() for key in (raw_value or '').split(',') if key.strip()]


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    DEBUG = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'
    TESTING = False
    MAX_UPLOAD_MB = int(os.getenv('MAX_UPLOAD_MB', '20'))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_MB * 1024 * 1024

    # API Keys Configuration
    YOUTUBE_API_KEY = os.getenv('YOUTUBE_API_KEY')
    # Several Gemini keys may be given, comma-separated, for rotation
    GEMINI_API_KEYS = _split_keys(os.getenv('GEMINI_API_KEY'))
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')

    # Comment Fetching Settings
    MAX_COMMENTS_PER_VIDEO = int(os.getenv('MAX_COMMENTS_PER_VIDEO', '2000'))
    COMMENTS_PAGE_SIZE = int(os.getenv('COMMENTS_PAGE_SIZE', '100'))
    REPLY_BATCH_SIZE = int(os.getenv('REPLY_BATCH_SIZE', '10'))
    FETCH_MAX_RETRIES = int(os.getenv('FETCH_MAX_RETRIES', '3'))
    FETCH_RETRY_BASE_DELAY = float(os.getenv('FETCH_RETRY_BASE_DELAY', '1'))

    # LLM Batch Settings
    LLM_BATCH_SIZE = int(os.getenv('LLM_BATCH_SIZE', '150'))
    LLM_BATCH_DELAY = float(os.getenv('LLM_BATCH_DELAY', '3'))
    LLM_MAX_RETRIES = int(os.getenv('LLM_MAX_RETRIES', '10'))
    LLM_RETRY_BASE_DELAY = float(os.getenv('LLM_RETRY_BASE_DELAY', '2'))
    LLM_RATE_LIMIT_BASE_DELAY = float(os.getenv('LLM_RATE_LIMIT_BASE_DELAY', '5'))
    WORD_FREQUENCY_SAMPLE_SIZE = int(os.getenv('WORD_FREQUENCY_SAMPLE_SIZE', '200'))

    # Export Settings
    MAX_FILENAME_LENGTH = int(os.getenv('MAX_FILENAME_LENGTH', '50'))
    COMMENT_PREVIEW_LENGTH = int(os.getenv('COMMENT_PREVIEW_LENGTH', '300'))
    LOG_DIRECTORY = os.getenv('LOG_DIRECTORY', 'logs')

    @classmethod
    def validate_required_env_vars(cls):
        """Validate that all required environment variables are set"""
        required_vars = []
        warnings = []

        # Check critical variables
        if not cls.YOUTUBE_API_KEY:
            required_vars.append('YOUTUBE_API_KEY')

        if not cls.GEMINI_API_KEYS:
            warnings.append('GEMINI_API_KEY - translation and analysis will be disabled')

        if required_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(required_vars)}")

        for warning in warnings:
            logger.warning("Missing optional environment variable: %s", warning)

        return True


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    YOUTUBE_API_KEY = 'test-youtube-key'
    GEMINI_API_KEYS = ['test-key-1', 'test-key-2']
    LLM_BATCH_DELAY = 0
    LLM_RETRY_BASE_DELAY = 0
    LLM_RATE_LIMIT_BASE_DELAY = 0
    FETCH_RETRY_BASE_DELAY = 0


# Configuration mapping
config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(environment='default'):
    """Get configuration class based on environment"""
    return config_map.get(environment, DevelopmentConfig)
