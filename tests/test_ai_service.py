"""
Unit tests for the Gemini AI service, with google.generativeai mocked
"""
import json
import os
from unittest.mock import Mock, call, patch

import pytest

from config import Config, TestingConfig
from models import BatchItem, WordFrequency
from services.ai_service import AIService, ApiKeyRotator, category_for, is_rate_limit_error
from services.exceptions import AIServiceUnavailableError
from services.prompts import CATEGORIES


class RetryConfig(TestingConfig):
    LLM_MAX_RETRIES = 3
    LLM_RETRY_BASE_DELAY = 2
    LLM_RATE_LIMIT_BASE_DELAY = 5


def reply(payload):
    return Mock(text=json.dumps(payload, ensure_ascii=False))


ITEMS = [BatchItem(index=0, content='Phim hay quá'), BatchItem(index=1, content='Nhớ tuổi thơ')]


class TestHelpers:

    def test_rotator_round_robin(self):
        rotator = ApiKeyRotator(['a', 'b', 'c'])
        assert [rotator.next_key() for _ in range(4)] == ['a', 'b', 'c', 'a']
        assert len(rotator) == 3

    @pytest.mark.parametrize('error', [
        Exception('429 Too Many Requests'),
        Exception('Resource has been exhausted (e.g. check quota).'),
        Exception('Rate limit reached'),
    ])
    def test_rate_limit_detection(self, error):
        assert is_rate_limit_error(error)

    def test_rate_limit_detection_by_code(self):
        error = Exception('boom')
        error.code = 429
        assert is_rate_limit_error(error)

    def test_other_errors_are_not_rate_limits(self):
        assert not is_rate_limit_error(Exception('500 Internal error'))

    def test_category_for(self):
        assert category_for(2) == CATEGORIES[2]
        assert category_for('5') == CATEGORIES[5]
        assert category_for(9) == CATEGORIES[0]
        assert category_for(-1) == CATEGORIES[0]
        assert category_for(None) == CATEGORIES[0]

    @pytest.mark.skipif('LLM_MAX_RETRIES' in os.environ, reason='LLM_MAX_RETRIES overridden')
    def test_default_retry_budget(self):
        assert Config.LLM_MAX_RETRIES == 10


class TestAIService:

    @pytest.fixture
    def genai(self):
        with patch('services.ai_service.genai') as mock_genai:
            yield mock_genai

    @pytest.fixture
    def model(self, genai):
        return genai.GenerativeModel.return_value

    @pytest.fixture
    def sleep(self):
        return Mock()

    @pytest.fixture
    def service(self, genai, sleep):
        return AIService(config=RetryConfig(), sleep=sleep)

    def test_translate_batch(self, service, model):
        model.generate_content.return_value = reply([{'i': 0, 't': '电影太好看了'}, {'i': 1, 't': '怀念童年'}])
        assert service.translate_batch(ITEMS) == {0: '电影太好看了', 1: '怀念童年'}

    def test_translate_skips_empty_and_malformed_entries(self, service, model):
        model.generate_content.return_value = reply([{'i': 0, 't': ''}, {'t': 'no index'}, 'junk', {'i': 1, 't': '好'}])
        assert service.translate_batch(ITEMS) == {1: '好'}

    def test_prompt_lists_items_by_index(self, service, model):
        model.generate_content.return_value = reply([])
        service.translate_batch(ITEMS)
        prompt = model.generate_content.call_args.args[0]
        assert '[0] Phim hay quá' in prompt
        assert '[1] Nhớ tuổi thơ' in prompt

    def test_requests_json_with_schema(self, service, genai, model):
        model.generate_content.return_value = reply([])
        service.classify_batch(ITEMS)
        generation_config = genai.GenerativeModel.call_args.kwargs['generation_config']
        assert generation_config['response_mime_type'] == 'application/json'
        assert generation_config['response_schema']['type'] == 'ARRAY'

    def test_classify_batch(self, service, model):
        model.generate_content.return_value = reply([{'i': 0, 'c': 3}, {'i': 1, 'c': 42}])
        assert service.classify_batch(ITEMS) == {0: CATEGORIES[3], 1: CATEGORIES[0]}

    def test_sentiment_and_topic_batch(self, service, model):
        model.generate_content.return_value = reply([
            {'i': 0, 's': '1', 'c': 0},
            {'i': 1, 's': 'maybe', 'c': 2},
        ])
        assert service.analyze_sentiment_and_topic_batch(ITEMS) == {
            0: ('positive', CATEGORIES[0]),
            1: ('neutral', CATEGORIES[2]),
        }

    def test_word_frequency_samples_texts(self, service, model):
        model.generate_content.return_value = reply([{'w': '童年', 'n': 12}, {'w': ' ', 'n': 3}])
        texts = [f'评论 {i}' for i in range(RetryConfig.WORD_FREQUENCY_SAMPLE_SIZE + 50)]

        result = service.analyze_word_frequency(texts)

        assert result == [WordFrequency(word='童年', count=12)]
        prompt = model.generate_content.call_args.args[0]
        assert f'评论 {RetryConfig.WORD_FREQUENCY_SAMPLE_SIZE - 1}' in prompt
        assert f'评论 {RetryConfig.WORD_FREQUENCY_SAMPLE_SIZE}\n' not in prompt

    def test_empty_reply_raises(self, service, model):
        model.generate_content.return_value = Mock(text='')
        with pytest.raises(ValueError):
            service.translate_batch(ITEMS)

    def test_non_array_reply_raises(self, service, model):
        model.generate_content.return_value = reply({'i': 0})
        with pytest.raises(ValueError):
            service.translate_batch(ITEMS)

    def test_retries_with_exponential_backoff(self, service, model, sleep):
        model.generate_content.side_effect = [
            RuntimeError('503 unavailable'),
            RuntimeError('503 unavailable'),
            reply([{'i': 0, 't': '好'}]),
        ]

        assert service.translate_batch(ITEMS) == {0: '好'}
        assert sleep.call_args_list == [call(2), call(4)]

    def test_rate_limit_rotates_key_and_waits_longer(self, service, genai, model, sleep):
        model.generate_content.side_effect = [
            RuntimeError('429 Resource has been exhausted'),
            reply([]),
        ]

        service.translate_batch(ITEMS)

        sleep.assert_called_once_with(5)
        keys = [c.kwargs['api_key'] for c in genai.configure.call_args_list]
        assert keys == ['test-key-1', 'test-key-2']

    def test_non_rate_limit_retry_keeps_key(self, service, genai, model):
        model.generate_content.side_effect = [RuntimeError('timeout'), reply([])]

        service.translate_batch(ITEMS)

        keys = [c.kwargs['api_key'] for c in genai.configure.call_args_list]
        assert keys == ['test-key-1', 'test-key-1']

    def test_gives_up_after_max_retries(self, service, model, sleep):
        model.generate_content.side_effect = RuntimeError('still broken')

        with pytest.raises(RuntimeError, match='still broken'):
            service.translate_batch(ITEMS)

        assert model.generate_content.call_count == RetryConfig.LLM_MAX_RETRIES
        assert sleep.call_count == RetryConfig.LLM_MAX_RETRIES - 1

    def test_requests_rotate_keys(self, service, genai, model):
        model.generate_content.return_value = reply([])

        service.translate_batch(ITEMS)
        service.translate_batch(ITEMS)

        keys = [c.kwargs['api_key'] for c in genai.configure.call_args_list]
        assert keys == ['test-key-1', 'test-key-2']

    def test_unavailable_without_keys(self, genai):
        config = RetryConfig()
        config.GEMINI_API_KEYS = []
        service = AIService(config=config)

        assert not service.is_available()
        with pytest.raises(AIServiceUnavailableError):
            service.translate_batch(ITEMS)
