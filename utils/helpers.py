"""
Helper utilities and common functions
Formatting, HTML cleanup and URL helpers used across the application
"""
import html
import re
import time
from datetime import datetime
from typing import List, Any, Optional

from config import Config

VIDEO_ID_PATTERNS = [
    r'(?:youtube\.com/watch\?(?:[^#\s]*&)?v=|youtu\.be/)([^&\n?#/\s]+)',
    r'youtube\.com/(?:embed|shorts|v)/([^&\n?#/\s]+)',
]

TAG_RE = re.compile(r'<[^>]*>')
BR_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)
SCRIPT_RE = re.compile(r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>', re.IGNORECASE)
IFRAME_RE = re.compile(r'<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>', re.IGNORECASE)


def get_epoch_millis() -> int:
    return int(time.time() * 1000)


def format_number(number: int) -> str:
    """Format a number with thousand separators"""
    return f"{number:,}"


def format_date(value) -> str:
    """Format a datetime (or ISO string) as dd/mm/yyyy HH:MM in local time"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return value.astimezone().strftime('%d/%m/%Y %H:%M')


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable format"""
    if seconds < 60:
        return f"{seconds:.1f} seconds"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f} minutes"
    else:
        hours = seconds / 3600
        return f"{hours:.1f} hours"


def estimate_comment_range(count: int) -> str:
    """Describe a comment count as a rough range, e.g. 300-400 or 3k-4k"""
    if count < 100:
        return f"{count}"
    elif count < 1000:
        return f"{count // 100 * 100}-{-(-count // 100) * 100}"
    else:
        return f"{count // 1000}k-{-(-count // 1000)}k"


def decode_html_entities(text: str) -> str:
    """Decode HTML entities as delivered in YouTube textDisplay"""
    return html.unescape(text or '')


def sanitize_comment_html(html_content: str) -> str:
    """Decode entities and drop <script>/<iframe> blocks, keeping safe markup"""
    decoded = decode_html_entities(html_content)
    return IFRAME_RE.sub('', SCRIPT_RE.sub('', decoded))


def strip_html_tags(html_content: str) -> str:
    """Convert comment HTML to plain text for spreadsheets"""
    decoded = decode_html_entities(html_content)
    with_newlines = BR_RE.sub('\n', decoded)
    return TAG_RE.sub('', with_newlines).strip()


def truncate_html(html_content: str, max_length: int) -> str:
    """Truncate HTML to max_length visible characters without cutting a tag"""
    if len(strip_html_tags(html_content)) <= max_length:
        return html_content

    truncated = []
    text_length = 0
    inside_tag = False

    for char in html_content:
        if char == '<':
            inside_tag = True
        truncated.append(char)
        if char == '>':
            inside_tag = False
            continue
        if not inside_tag:
            text_length += 1
            if text_length >= max_length:
                break

    return ''.join(truncated)


def extract_video_id_from_url(url: str) -> Optional[str]:
    """Extract YouTube video ID from URL"""
    if not url:
        return None

    for pattern in VIDEO_ID_PATTERNS:
        match = re.search(pattern, url.strip())
        if match:
            return match.group(1)

    return None


def sanitize_filename(filename: str) -> str:
    """Sanitize a string to be safe for use as a filename"""
    if not filename or not filename.strip():
        return "unknown_file"

    # Replace spaces with underscores
    sanitized = filename.strip().replace(' ', '_')

    # Remove or replace special characters that are problematic in filenames
    sanitized = ''.join(c for c in sanitized if c.isalnum() or c in '_-')

    # Remove multiple consecutive underscores
    while '__' in sanitized:
        sanitized = sanitized.replace('__', '_')

    max_length = Config.MAX_FILENAME_LENGTH
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    sanitized = sanitized.rstrip('_')

    if not sanitized:
        sanitized = "file"

    return sanitized


def chunk_list(lst: List[Any], chunk_size: int) -> List[List[Any]]:
    """Split a list into chunks of specified size"""
    return [lst[i:i + chunk_size] for i in range(0, len(lst), chunk_size)]
