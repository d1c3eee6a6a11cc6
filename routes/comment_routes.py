"""
Comment routes for the YouTube Comment Analyzer API
Handles video lookup, comment fetching, filtering and Excel export
"""
import logging
import time
from io import BytesIO

from flask import Blueprint, abort, jsonify, request, send_file

from config import Config
from models import Comment, FilterOptions, VideoData
from services.comment_filter import count_total_comments, filter_comments
from services.exceptions import InvalidVideoUrlError
from services.youtube_service import extract_video_id, youtube_service
from utils.excel_utils import XLSX_MIMETYPE, export_comments_workbook
from utils.helpers import (
    estimate_comment_range,
    format_duration,
    format_number,
    sanitize_comment_html,
    truncate_html,
)

logger = logging.getLogger(__name__)

comments_bp = Blueprint('comments', __name__)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def _parse_max_comments(value):
    limit = Config.MAX_COMMENTS_PER_VIDEO
    if value is None:
        return limit
    try:
        value = int(value)
    except (TypeError, ValueError):
        abort(400, description='max_comments must be an integer')
    if value < 1:
        abort(400, description='max_comments must be positive')
    return min(value, limit)


def _comment_payload(comment: Comment):
    """Comment JSON with a sanitized, truncated HTML preview on parents and replies"""
    payload = comment.to_dict()
    payload['preview'] = _preview(comment.content)
    for reply_payload, reply in zip(payload['replies'], comment.replies):
        reply_payload['preview'] = _preview(reply.content)
    return payload


def _preview(content: str) -> str:
    return truncate_html(sanitize_comment_html(content), Config.COMMENT_PREVIEW_LENGTH)


def _parse_comments(data):
    raw_comments = data.get('comments')
    if not isinstance(raw_comments, list):
        abort(400, description='comments must be a list')
    try:
        return [Comment.from_dict(item) for item in raw_comments]
    except (TypeError, ValueError, AttributeError) as e:
        abort(400, description=f'Invalid comment data: {e}')


@comments_bp.route('/videos/details', methods=['POST'])
def video_details():
    """Resolve a video URL to its title and comment count"""
    data = _json_body()
    url = (data.get('url') or '').strip()

    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidVideoUrlError("Invalid YouTube URL")

    details = youtube_service.get_video_details(video_id)
    video = VideoData(
        video_id=video_id,
        title=details['title'],
        url=url,
        total_comments=details['comment_count'],
        estimated_range=estimate_comment_range(details['comment_count']),
    )
    return jsonify({'video': video.to_dict()})


@comments_bp.route('/comments', methods=['POST'])
def fetch_comments():
    """Fetch comments of a video and apply the requested filters"""
    data = _json_body()
    url = (data.get('url') or '').strip()
    if not url:
        abort(400, description='Please enter a YouTube URL!')

    options = FilterOptions.from_dict(data.get('filters'))
    max_comments = _parse_max_comments(data.get('max_comments'))

    start_time = time.time()
    video, comments = youtube_service.fetch_video_data(url, max_comments)
    total_before = count_total_comments(comments)

    filtered = filter_comments(comments, options)
    total_after = count_total_comments(filtered)
    latency_seconds = time.time() - start_time

    logger.info("Video %s: %s comments fetched, %s kept after filtering (%s)",
                video.video_id, format_number(total_before), format_number(total_after),
                format_duration(latency_seconds))

    return jsonify({
        'video': video.to_dict(),
        'comments': [_comment_payload(comment) for comment in filtered],
        'counts': {
            'threads': len(filtered),
            'total_before_filter': total_before,
            'total_after_filter': total_after,
        },
        'latency_seconds': round(latency_seconds, 2),
    })


@comments_bp.route('/comments/filter', methods=['POST'])
def refilter_comments():
    """Re-apply filters to comments already loaded by the client"""
    data = _json_body()
    comments = _parse_comments(data)
    options = FilterOptions.from_dict(data.get('filters'))

    filtered = filter_comments(comments, options)
    return jsonify({
        'comments': [_comment_payload(comment) for comment in filtered],
        'counts': {
            'threads': len(filtered),
            'total_before_filter': count_total_comments(comments),
            'total_after_filter': count_total_comments(filtered),
        },
    })


@comments_bp.route('/comments/export', methods=['POST'])
def export_comments():
    """Download comments as an Excel workbook"""
    data = _json_body()
    video_data = data.get('video')
    if not isinstance(video_data, dict) or not video_data.get('video_id'):
        abort(400, description='video with a video_id is required')

    video = VideoData.from_dict(video_data)
    comments = _parse_comments(data)

    content, filename = export_comments_workbook(comments, video)
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
    )
