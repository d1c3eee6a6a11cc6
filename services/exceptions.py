"""
Exception hierarchy for the comment analyzer services

Every error carries the HTTP status the API should answer with, so routes
can let them propagate to the application error handler.
"""
from typing import Any, Dict, Optional


class CommentAnalyzerError(Exception):
    """Base exception for all comment analyzer errors"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {'error': self.message, 'status_code': self.status_code}
        if self.details:
            payload['details'] = self.details
        return payload


class InvalidVideoUrlError(CommentAnalyzerError):
    """The given URL does not point to a YouTube video"""
    status_code = 400


class VideoNotFoundError(CommentAnalyzerError):
    """The video does not exist or is restricted"""
    status_code = 404


class QuotaExceededError(CommentAnalyzerError):
    """The YouTube API key is invalid or its quota is exhausted"""
    status_code = 403


class CommentsDisabledError(CommentAnalyzerError):
    """The video owner turned comments off"""
    status_code = 403


class YouTubeServiceError(CommentAnalyzerError):
    """Any other YouTube Data API failure"""
    status_code = 502


class SpreadsheetFormatError(CommentAnalyzerError):
    """An uploaded workbook does not have the expected layout"""
    status_code = 400


class AIServiceUnavailableError(CommentAnalyzerError):
    """No Gemini API key is configured"""
    status_code = 503
