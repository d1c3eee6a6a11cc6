"""
Comment analysis pipeline
Translation, topic classification and combined sentiment/topic/keyword
analysis of comments read back from an exported workbook
"""
import logging
import re
import time
from collections import Counter
from typing import List

from config import Config
from models import (
    AnalysisReport,
    AnalysisResult,
    BatchItem,
    SheetComment,
    WordFrequency,
    SENTIMENTS,
    SENTIMENT_NEUTRAL,
)
from services.ai_service import ai_service
from services.batch_processor import BatchProcessor
from services.prompts import DEFAULT_KEYWORD, UNCLASSIFIED

logger = logging.getLogger(__name__)

TRANSLATION_FAILED_MARKER = ' [translation failed]'

# CJK and ASCII punctuation treated as word separators
SEPARATOR_RE = re.compile(r'[，。！？、；：“”‘’"\'《》（）【】\s,.!?;:()\[\]]+')
STOP_WORDS = {'这个', '那个', '什么', '怎么', '为什么', '的话', '就是'}

MIN_TOKEN_LENGTH = 2
MAX_TOKEN_LENGTH = 4
LOCAL_FREQUENCY_LIMIT = 20
TOP_WORDS_LIMIT = 50
KEYWORDS_PER_COMMENT = 3


def tokenize(text: str) -> List[str]:
    """Split on punctuation/whitespace, keeping 2-4 character tokens"""
    return [
        token for token in SEPARATOR_RE.split(text or '')
        if MIN_TOKEN_LENGTH <= len(token) <= MAX_TOKEN_LENGTH
    ]


def local_word_frequency(texts: List[str], limit=LOCAL_FREQUENCY_LIMIT) -> List[WordFrequency]:
    counter = Counter()
    for text in texts:
        counter.update(tokenize(text))
    return [WordFrequency(word=word, count=count) for word, count in counter.most_common(limit)]


def extract_keywords(text: str, top_words: List[str]) -> List[str]:
    """Top words found in the comment, else its own tokens, else a placeholder"""
    keywords = [word for word in top_words if word in text][:KEYWORDS_PER_COMMENT]
    if keywords:
        return keywords

    keywords = [token for token in tokenize(text) if token not in STOP_WORDS][:KEYWORDS_PER_COMMENT]
    return keywords or [DEFAULT_KEYWORD]


def _to_items(rows: List[SheetComment], translated=False) -> List[BatchItem]:
    return [
        BatchItem(index=row.index, content=row.analysis_text if translated else row.content)
        for row in rows
    ]


class AnalysisService:
    """Runs the LLM stages over a list of sheet comments"""

    def __init__(self, ai=None, config=None, sleep=time.sleep):
        self.ai = ai or ai_service
        self.config = config or Config()
        self._sleep = sleep

    def _processor(self, label):
        return BatchProcessor(
            batch_size=self.config.LLM_BATCH_SIZE,
            delay_seconds=self.config.LLM_BATCH_DELAY,
            sleep=self._sleep,
            label=label,
        )

    def translate_comments(self, rows: List[SheetComment], on_progress=None) -> List[SheetComment]:
        """Fill ``translated_content`` of every row"""
        contents = {row.index: row.content for row in rows}

        translations = self._processor('translation').run(
            _to_items(rows),
            self.ai.translate_batch,
            fallback=lambda item: contents[item.index],
            error_fallback=lambda item: contents[item.index] + TRANSLATION_FAILED_MARKER,
            on_progress=on_progress,
        )

        for row, translation in zip(rows, translations):
            row.translated_content = translation

        logger.info("Translated %d comments", len(rows))
        return rows

    def classify_comments(self, rows: List[SheetComment], on_progress=None) -> List[str]:
        """One category name per row, classified on the translated text when present"""
        categories = self._processor('classification').run(
            _to_items(rows, translated=True),
            self.ai.classify_batch,
            fallback=lambda item: UNCLASSIFIED,
            on_progress=on_progress,
        )
        logger.info("Classified %d comments", len(rows))
        return categories

    def word_frequency(self, texts: List[str]) -> List[WordFrequency]:
        """LLM keyword frequency with a local token count when it fails or comes back empty"""
        frequencies = []
        try:
            frequencies = self.ai.analyze_word_frequency(texts)
        except Exception as e:
            logger.error("Word frequency request failed: %s", e)

        if not frequencies:
            logger.warning("No word frequency from Gemini, counting tokens locally")
            frequencies = local_word_frequency(texts)

        return frequencies

    def analyze_comments(self, rows: List[SheetComment], on_progress=None) -> AnalysisReport:
        """Sentiment, topic and keywords per comment plus aggregate statistics"""
        pairs = self._processor('analysis').run(
            _to_items(rows, translated=True),
            self.ai.analyze_sentiment_and_topic_batch,
            fallback=lambda item: (SENTIMENT_NEUTRAL, UNCLASSIFIED),
            on_progress=on_progress,
        )

        texts = [row.analysis_text for row in rows]
        frequencies = self.word_frequency(texts)
        top_words = [wf.word for wf in frequencies[:TOP_WORDS_LIMIT]]

        results = []
        sentiment_summary = {sentiment: 0 for sentiment in SENTIMENTS}
        topic_distribution = {}

        for row, (sentiment, category) in zip(rows, pairs):
            if sentiment not in sentiment_summary:
                sentiment = SENTIMENT_NEUTRAL
            sentiment_summary[sentiment] += 1
            topic_distribution[category] = topic_distribution.get(category, 0) + 1

            results.append(AnalysisResult(
                index=row.index,
                sentiment=sentiment,
                category_name=category,
                top_keywords=extract_keywords(row.analysis_text, top_words),
            ))

        logger.info("Analyzed %d comments: sentiment %s, %d topics, %d keywords",
                    len(rows), sentiment_summary, len(topic_distribution), len(frequencies))

        return AnalysisReport(
            comments=rows,
            results=results,
            word_frequency=frequencies,
            sentiment_summary=sentiment_summary,
            topic_distribution=topic_distribution,
        )


# Global analysis service instance
analysis_service = AnalysisService()
