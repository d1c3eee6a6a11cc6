"""
AI Service for comment translation, classification and analysis
Handles Gemini integration: structured JSON requests, retry with
exponential backoff and API key rotation on rate limiting
"""
import json
import logging
import threading
import time
from typing import Dict, List, Tuple

import google.generativeai as genai

from config import Config
from models import BatchItem, WordFrequency, SENTIMENT_NEUTRAL
from services import prompts
from services.exceptions import AIServiceUnavailableError

logger = logging.getLogger(__name__)


class ApiKeyRotator:
    """Round-robin over the configured Gemini API keys"""

    def __init__(self, keys):
        self._keys = list(keys)
        self._index = 0
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._keys)

    def next_key(self):
        with self._lock:
            key = self._keys[self._index]
            self._index = (self._index + 1) % len(self._keys)
            return key


def is_rate_limit_error(error) -> bool:
    """Detect HTTP 429 / quota errors from the Gemini client"""
    if getattr(error, 'code', None) == 429 or getattr(error, 'status', None) == 429:
        return True
    message = str(error).lower()
    return (
        '429' in message
        or 'rate limit' in message
        or 'resource exhausted' in message
        or 'resource_exhausted' in message
        or 'quota' in message
    )


def category_for(code) -> str:
    """Map a category index from the model to its name (first category when out of range)"""
    try:
        code = int(code)
    except (TypeError, ValueError):
        return prompts.CATEGORIES[0]
    if 0 <= code < len(prompts.CATEGORIES):
        return prompts.CATEGORIES[code]
    return prompts.CATEGORIES[0]


def _entries(data, *required_keys):
    """Keep the well-formed objects of a JSON array reply"""
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array from Gemini, got {type(data).__name__}")
    return [
        entry for entry in data
        if isinstance(entry, dict) and all(key in entry for key in required_keys)
    ]


class AIService:
    """Service for Gemini-powered comment processing"""

    def __init__(self, config=None, sleep=time.sleep):
        self.config = config or Config()
        self.keys = ApiKeyRotator(self.config.GEMINI_API_KEYS)
        self.model_name = self.config.GEMINI_MODEL
        self._sleep = sleep
        # genai.configure is process-global; configure + request must not interleave
        self._request_lock = threading.Lock()

        if not self.is_available():
            logger.warning("Gemini API key not configured - AI features will be disabled")

    def is_available(self):
        """Check if AI service is available"""
        return len(self.keys) > 0

    def _request(self, api_key, prompt, schema):
        with self._request_lock:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(
                self.model_name,
                generation_config={
                    'response_mime_type': 'application/json',
                    'response_schema': schema,
                },
            )
            return model.generate_content(prompt)

    def generate_with_retry(self, prompt, schema):
        """Send a prompt, retrying with exponential backoff.

        Rate-limited attempts wait longer and move on to the next API key
        when more than one is configured. The last error is re-raised once
        the retry budget is spent.
        """
        if not self.is_available():
            raise AIServiceUnavailableError("GEMINI_API_KEY is not configured")

        max_retries = max(1, self.config.LLM_MAX_RETRIES)
        api_key = self.keys.next_key()
        last_error = None

        for attempt in range(max_retries):
            try:
                return self._request(api_key, prompt, schema)
            except Exception as e:
                last_error = e
                if attempt == max_retries - 1:
                    break

                rate_limited = is_rate_limit_error(e)
                base_delay = (self.config.LLM_RATE_LIMIT_BASE_DELAY if rate_limited
                              else self.config.LLM_RETRY_BASE_DELAY)
                delay = base_delay * (2 ** attempt)

                logger.warning("%s Retry %d/%d in %.0fs: %s",
                               "Rate limited!" if rate_limited else "Gemini request failed.",
                               attempt + 1, max_retries, delay, e)

                if rate_limited and len(self.keys) > 1:
                    logger.info("Switching to another Gemini API key")
                    api_key = self.keys.next_key()

                self._sleep(delay)

        raise last_error

    def generate_json(self, prompt, schema):
        """Request structured JSON and parse the reply"""
        response = self.generate_with_retry(prompt, schema)
        text = response.text
        if not text:
            raise ValueError("Empty response from Gemini API")
        return json.loads(text)

    def translate_batch(self, items: List[BatchItem]) -> Dict[int, str]:
        """Translate a batch of comments, keyed by item index"""
        data = self.generate_json(prompts.get_translation_prompt(items), prompts.TRANSLATION_SCHEMA)
        translations = {}
        for entry in _entries(data, 'i', 't'):
            translation = str(entry['t'] or '').strip()
            if translation:
                translations[int(entry['i'])] = translation
        return translations

    def classify_batch(self, items: List[BatchItem]) -> Dict[int, str]:
        """Assign one taxonomy category per comment, keyed by item index"""
        data = self.generate_json(prompts.get_classification_prompt(items), prompts.CLASSIFICATION_SCHEMA)
        return {int(entry['i']): category_for(entry['c']) for entry in _entries(data, 'i', 'c')}

    def analyze_sentiment_and_topic_batch(self, items: List[BatchItem]) -> Dict[int, Tuple[str, str]]:
        """Sentiment and topic in a single request, keyed by item index"""
        data = self.generate_json(prompts.get_sentiment_topic_prompt(items), prompts.SENTIMENT_TOPIC_SCHEMA)
        results = {}
        for entry in _entries(data, 'i', 's', 'c'):
            sentiment = prompts.SENTIMENT_CODES.get(str(entry['s']).strip(), SENTIMENT_NEUTRAL)
            results[int(entry['i'])] = (sentiment, category_for(entry['c']))
        return results

    def analyze_word_frequency(self, texts: List[str]) -> List[WordFrequency]:
        """Ask for the keyword frequency table of a sample of comments"""
        sample = texts[:self.config.WORD_FREQUENCY_SAMPLE_SIZE]
        data = self.generate_json(prompts.get_word_frequency_prompt(sample), prompts.WORD_FREQUENCY_SCHEMA)
        frequencies = []
        for entry in _entries(data, 'w', 'n'):
            word = str(entry['w']).strip()
            if word:
                frequencies.append(WordFrequency(word=word, count=int(entry['n'] or 0)))
        return frequencies


# Global AI service instance
ai_service = AIService()
