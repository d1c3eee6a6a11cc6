"""
Testing and utility routes
Provides endpoints for URL validation and configuration checks
"""
from flask import Blueprint, jsonify, request

from config import Config
from utils.helpers import extract_video_id_from_url

testing_bp = Blueprint('testing', __name__)


@testing_bp.route('/validate_url', methods=['POST'])
def validate_url():
    """Validate a YouTube video URL"""
    data = request.get_json(silent=True) or {}
    url = (data.get('url') or '').strip()

    video_id = extract_video_id_from_url(url)
    if not url:
        message = 'Please enter a YouTube URL!'
    elif video_id:
        message = 'Valid YouTube URL'
    else:
        message = 'Invalid YouTube URL'

    return jsonify({
        'url': url,
        'is_valid': video_id is not None,
        'video_id': video_id,
        'message': message,
    })


@testing_bp.route('/config_check', methods=['GET'])
def config_check():
    """Check configuration status"""
    config = Config()

    env_status = {
        'YOUTUBE_API_KEY': bool(config.YOUTUBE_API_KEY),
        'GEMINI_API_KEY': bool(config.GEMINI_API_KEYS),
    }

    try:
        config.validate_required_env_vars()
        validation_status = 'valid'
        validation_message = 'All required environment variables are set'
    except ValueError as e:
        validation_status = 'invalid'
        validation_message = str(e)

    return jsonify({
        'validation_status': validation_status,
        'validation_message': validation_message,
        'environment_variables': env_status,
        'configuration': {
            'debug': config.DEBUG,
            'gemini_model': config.GEMINI_MODEL,
            'gemini_key_count': len(config.GEMINI_API_KEYS),
            'max_comments_per_video': config.MAX_COMMENTS_PER_VIDEO,
            'llm_batch_size': config.LLM_BATCH_SIZE,
        },
    })
