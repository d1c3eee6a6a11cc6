"""
YouTube service for video details and comment fetching
Paginates comment threads, rebuilds parent/reply trees and retries
transient API failures with exponential backoff
"""
import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Tuple

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config import Config
from models import Comment, VideoData, parse_timestamp
from services.exceptions import (
    CommentAnalyzerError,
    CommentsDisabledError,
    InvalidVideoUrlError,
    QuotaExceededError,
    VideoNotFoundError,
    YouTubeServiceError,
)
from utils.helpers import (
    chunk_list,
    estimate_comment_range,
    extract_video_id_from_url,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def extract_video_id(url):
    """Return the video id of a watch/youtu.be/embed/shorts URL, or None"""
    return extract_video_id_from_url(url)


def _error_reason(error: HttpError) -> str:
    """First `reason` of a Google API error payload, if any"""
    try:
        payload = json.loads(error.content.decode('utf-8'))
    except (ValueError, AttributeError, UnicodeDecodeError):
        return ''
    errors = (payload.get('error') or {}).get('errors') or []
    return errors[0].get('reason', '') if errors else ''


class YouTubeService:
    """Service for YouTube Data API operations and comment fetching"""

    def __init__(self, config=None, client_factory=None, sleep=time.sleep):
        self.config = config or Config()
        self.api_key = self.config.YOUTUBE_API_KEY
        self._client_factory = client_factory or self._build_client
        self._sleep = sleep
        # googleapiclient resources are not thread-safe; one client per thread
        self._local = threading.local()

    def is_available(self):
        """Check if the YouTube API key is configured"""
        return bool(self.api_key)

    def _build_client(self):
        return build('youtube', 'v3', developerKey=self.api_key, cache_discovery=False)

    @property
    def youtube(self):
        client = getattr(self._local, 'client', None)
        if client is None:
            if not self.is_available():
                raise YouTubeServiceError("YOUTUBE_API_KEY is not configured", status_code=503)
            client = self._client_factory()
            self._local.client = client
        return client

    def _execute_with_retry(self, request):
        """Execute an API request, backing off on transient failures"""
        max_retries = self.config.FETCH_MAX_RETRIES
        base_delay = self.config.FETCH_RETRY_BASE_DELAY

        for attempt in range(max_retries + 1):
            try:
                return request.execute()
            except HttpError as e:
                if e.resp.status not in RETRYABLE_STATUS_CODES or attempt == max_retries:
                    raise
                wait_time = base_delay * (2 ** attempt)
                logger.warning("Transient error %s. Retry %d/%d in %.1fs",
                               e.resp.status, attempt + 1, max_retries, wait_time)
            except OSError as e:
                if attempt == max_retries:
                    raise
                wait_time = base_delay * (2 ** attempt)
                logger.warning("Network error (%s). Retry %d/%d in %.1fs",
                               e, attempt + 1, max_retries, wait_time)
            self._sleep(wait_time)

    def _map_http_error(self, error: HttpError, context: str) -> CommentAnalyzerError:
        status = error.resp.status
        reason = _error_reason(error)

        if status == 403:
            if reason == 'commentsDisabled' or 'commentsDisabled' in str(error):
                return CommentsDisabledError("Comments are disabled for this video")
            return QuotaExceededError("Invalid YouTube API key or quota exceeded")
        if status == 404:
            return VideoNotFoundError("Video does not exist or is restricted")
        return YouTubeServiceError(f"{context}: {error}", details={'status': status, 'reason': reason})

    def get_video_details(self, video_id):
        """Get title and comment count of a video"""
        try:
            response = self._execute_with_retry(
                self.youtube.videos().list(part='snippet,statistics', id=video_id)
            )
        except HttpError as e:
            raise self._map_http_error(e, "Could not fetch video details") from e
        except CommentAnalyzerError:
            raise
        except Exception as e:
            raise YouTubeServiceError(f"Could not fetch video details: {e}") from e

        items = response.get('items') or []
        if not items:
            raise VideoNotFoundError("Video does not exist or is restricted")

        video = items[0]
        return {
            'title': video['snippet']['title'],
            'comment_count': int(video.get('statistics', {}).get('commentCount', 0) or 0),
        }

    @staticmethod
    def _parse_comment(comment_id, snippet, reply_count=0) -> Comment:
        return Comment(
            id=comment_id,
            published_at=parse_timestamp(snippet.get('publishedAt')),
            author=snippet.get('authorDisplayName', ''),
            content=snippet.get('textDisplay', ''),
            like_count=snippet.get('likeCount') or 0,
            reply_count=reply_count or 0,
            replies=[],
        )

    def get_replies(self, parent_id) -> List[Comment]:
        """Fetch every reply of a top-level comment"""
        replies = []
        seen_ids = set()
        seen_contents = set()
        page_token = None

        while True:
            response = self._execute_with_retry(
                self.youtube.comments().list(
                    part='snippet',
                    parentId=parent_id,
                    maxResults=self.config.COMMENTS_PAGE_SIZE,
                    pageToken=page_token,
                    textFormat='html',
                )
            )

            for item in response.get('items', []):
                reply = self._parse_comment(item['id'], item['snippet'])
                content_key = reply.content.strip()
                if reply.id in seen_ids or content_key in seen_contents:
                    continue
                seen_ids.add(reply.id)
                seen_contents.add(content_key)
                replies.append(reply)

            page_token = response.get('nextPageToken')
            if not page_token:
                break

        return replies

    def _attach_replies(self, comments: List[Comment]):
        """Fetch replies concurrently, one bounded batch of threads at a time"""
        threads = [comment for comment in comments if comment.reply_count > 0]
        if not threads:
            return

        batch_size = max(1, self.config.REPLY_BATCH_SIZE)
        logger.info("Fetching replies for %d threads (batches of %d)", len(threads), batch_size)

        with ThreadPoolExecutor(max_workers=batch_size) as executor:
            for batch in chunk_list(threads, batch_size):
                futures = {executor.submit(self.get_replies, comment.id): comment for comment in batch}
                for future in as_completed(futures):
                    futures[future].replies = future.result()

    def get_comments(self, video_id, max_comments=None) -> List[Comment]:
        """Fetch top-level comments (newest first) with their replies"""
        if max_comments is None:
            max_comments = self.config.MAX_COMMENTS_PER_VIDEO

        comments = []
        seen_ids = set()
        seen_contents = set()
        duplicates = 0
        page_token = None

        logger.info("Fetching comments for video %s (max: %d)", video_id, max_comments)

        try:
            while len(comments) < max_comments:
                response = self._execute_with_retry(
                    self.youtube.commentThreads().list(
                        part='snippet',
                        videoId=video_id,
                        maxResults=self.config.COMMENTS_PAGE_SIZE,
                        pageToken=page_token,
                        order='time',
                        textFormat='html',
                    )
                )

                for item in response.get('items', []):
                    if len(comments) >= max_comments:
                        break
                    thread = item['snippet']
                    comment = self._parse_comment(
                        item['id'],
                        thread['topLevelComment']['snippet'],
                        thread.get('totalReplyCount', 0),
                    )
                    content_key = comment.content.strip()
                    if comment.id in seen_ids or content_key in seen_contents:
                        duplicates += 1
                        continue
                    seen_ids.add(comment.id)
                    seen_contents.add(content_key)
                    comments.append(comment)

                page_token = response.get('nextPageToken')
                if not page_token:
                    break

            self._attach_replies(comments)

        except HttpError as e:
            raise self._map_http_error(e, "Could not fetch comments") from e
        except CommentAnalyzerError:
            raise
        except Exception as e:
            raise YouTubeServiceError(f"Could not fetch comments: {e}") from e

        total_replies = sum(len(comment.replies) for comment in comments)
        logger.info("Fetched %d comments and %d replies from video %s (%d duplicates dropped)",
                    len(comments), total_replies, video_id, duplicates)
        return comments

    def fetch_video_data(self, url, max_comments=None) -> Tuple[VideoData, List[Comment]]:
        """Resolve a video URL and fetch its details and comments"""
        video_id = extract_video_id(url)
        if not video_id:
            raise InvalidVideoUrlError("Invalid YouTube URL")

        details = self.get_video_details(video_id)
        comments = self.get_comments(video_id, max_comments)

        video_data = VideoData(
            video_id=video_id,
            title=details['title'],
            url=url,
            total_comments=details['comment_count'],
            estimated_range=estimate_comment_range(details['comment_count']),
        )
        return video_data, comments


# Global YouTube service instance
youtube_service = YouTubeService()
