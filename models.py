"""
Data models shared by the fetcher, filter, analysis pipeline and exporters
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

SENTIMENT_POSITIVE = 'positive'
SENTIMENT_NEUTRAL = 'neutral'
SENTIMENT_NEGATIVE = 'negative'
SENTIMENTS = (SENTIMENT_POSITIVE, SENTIMENT_NEUTRAL, SENTIMENT_NEGATIVE)


def parse_timestamp(value) -> datetime:
    """Parse an RFC 3339 timestamp as returned by the YouTube API"""
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


@dataclass
class Comment:
    id: str
    published_at: datetime
    author: str
    content: str
    like_count: int = 0
    reply_count: int = 0
    replies: List['Comment'] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'published_at': self.published_at.isoformat(),
            'author': self.author,
            'content': self.content,
            'like_count': self.like_count,
            'reply_count': self.reply_count,
            'replies': [reply.to_dict() for reply in self.replies],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Comment':
        replies = [cls.from_dict(reply) for reply in data.get('replies') or []]
        return cls(
            id=str(data.get('id', '')),
            published_at=parse_timestamp(data.get('published_at')),
            author=data.get('author', '') or '',
            content=data.get('content', '') or '',
            like_count=int(data.get('like_count') or 0),
            reply_count=int(data.get('reply_count') or 0),
            replies=replies,
        )


@dataclass(frozen=True)
class FilterOptions:
    remove_emoji_only: bool = False
    remove_advertisements: bool = False
    remove_generic_comments: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FilterOptions':
        """Build options from request JSON, accepting camelCase or snake_case keys"""
        data = data or {}

        def flag(snake, camel):
            return bool(data.get(snake, data.get(camel, False)))

        return cls(
            remove_emoji_only=flag('remove_emoji_only', 'removeEmojiOnly'),
            remove_advertisements=flag('remove_advertisements', 'removeAdvertisements'),
            remove_generic_comments=flag('remove_generic_comments', 'removeGenericComments'),
        )


@dataclass
class VideoData:
    video_id: str
    title: str
    url: str
    total_comments: int
    estimated_range: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'video_id': self.video_id,
            'title': self.title,
            'url': self.url,
            'total_comments': self.total_comments,
            'estimated_range': self.estimated_range,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VideoData':
        return cls(
            video_id=str(data.get('video_id', '')),
            title=data.get('title', '') or '',
            url=data.get('url', '') or '',
            total_comments=int(data.get('total_comments') or 0),
            estimated_range=str(data.get('estimated_range', '')),
        )


@dataclass(frozen=True)
class BatchItem:
    index: int
    content: str


@dataclass
class SheetComment:
    """A comment row read back from an exported workbook"""
    index: int
    content: str
    date: str = ''
    author: str = ''
    comment_type: str = ''
    translated_content: str = ''

    @property
    def analysis_text(self) -> str:
        return self.translated_content or self.content


@dataclass
class AnalysisResult:
    index: int
    sentiment: str = SENTIMENT_NEUTRAL
    category_name: str = ''
    top_keywords: List[str] = field(default_factory=list)


@dataclass
class WordFrequency:
    word: str
    count: int


@dataclass
class AnalysisReport:
    comments: List[SheetComment]
    results: List[AnalysisResult]
    word_frequency: List[WordFrequency]
    sentiment_summary: Dict[str, int]
    topic_distribution: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        rows = []
        for comment, result in zip(self.comments, self.results):
            rows.append({
                'index': comment.index,
                'date': comment.date,
                'author': comment.author,
                'content': comment.content,
                'translated_content': comment.translated_content,
                'category_name': result.category_name,
                'sentiment': result.sentiment,
                'top_keywords': result.top_keywords,
            })
        return {
            'comments': rows,
            'word_frequency': [{'word': wf.word, 'count': wf.count} for wf in self.word_frequency],
            'sentiment_summary': self.sentiment_summary,
            'topic_distribution': self.topic_distribution,
        }
