"""
Comment filtering heuristics
Pure predicates (emoji-only, advertisement, generic) composed into a
keep/drop decision applied to parent + reply trees
"""
import re
from dataclasses import replace
from typing import List

from models import Comment, FilterOptions

TAG_RE = re.compile(r'<[^>]*>')
URL_RE = re.compile(r'https?://|www\.', re.IGNORECASE)
DOMAIN_SUFFIX_RE = re.compile(r'\.[a-z]{2,}', re.IGNORECASE)

# Retail/spam vocabulary seen in Vietnamese comment sections
AD_KEYWORDS = (
    'xem tại',
    'link',
    'tải',
    'download',
    'freeship',
    'giảm giá',
    'khuyến mãi',
    'inbox',
    'zalo',
    'mua ngay',
    'đặt hàng',
    'liên hệ',
    'sale off',
)

MIN_WORDS = 3


def _strip_tags(text: str) -> str:
    return TAG_RE.sub('', text or '')


def has_only_emoji(text: str) -> bool:
    """True when the comment holds no letter at all (emoji, symbols, digits)"""
    stripped = _strip_tags(text).strip()
    if not stripped:
        return False
    return not any(char.isalpha() for char in stripped)


def is_advertisement(text: str) -> bool:
    """True when the comment carries a link or advertisement keyword"""
    text = text or ''
    has_url = bool(URL_RE.search(text) or DOMAIN_SUFFIX_RE.search(text))
    if has_url:
        return True
    lower_text = text.lower()
    return any(keyword in lower_text for keyword in AD_KEYWORDS)


def is_generic_comment(text: str) -> bool:
    """True for empty or very short comments (fewer than three words)"""
    stripped = _strip_tags(text).lower().strip()
    if not stripped:
        return True
    return len(stripped.split()) < MIN_WORDS


def should_keep_comment(comment: Comment, options: FilterOptions) -> bool:
    if options.remove_emoji_only and has_only_emoji(comment.content):
        return False

    if options.remove_advertisements and is_advertisement(comment.content):
        return False

    if options.remove_generic_comments and is_generic_comment(comment.content):
        return False

    return True


def filter_comments(comments: List[Comment], options: FilterOptions) -> List[Comment]:
    """Filter parents and replies.

    A parent that fails the filter is still kept when at least one of its
    replies passes, so the surviving replies keep their context. Kept
    parents always satisfy ``reply_count == len(replies)``.
    """
    filtered = []

    for comment in comments:
        kept_replies = [reply for reply in comment.replies if should_keep_comment(reply, options)]

        if should_keep_comment(comment, options) or kept_replies:
            filtered.append(replace(comment, replies=kept_replies, reply_count=len(kept_replies)))

    return filtered


def count_total_comments(comments: List[Comment]) -> int:
    """Count parents plus their replies"""
    return sum(1 + len(comment.replies) for comment in comments)
