"""
Test Suite for the AI Article Labeller

Tests cover:
- Connection verification against the Ollama API
- Prompt construction
- Tolerant JSON parsing and fallback labels
- Single and batch labelling with a mocked LLM
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from newsgraph.ingestion.labeller import (
    ArticleLabeller,
    LabellerConnectionError,
    LabellingError,
    default_labels,
)

SAMPLE_LABELS = {
    'categories': ['Technology'],
    'topics': ['Batteries'],
    'entities': {'people': [], 'organizations': ['Acme'], 'locations': [], 'products': []},
    'keywords': ['lithium', 'battery'],
    'sentiment': 'positive',
    'summary': 'Acme opens a battery plant.',
    'readingTime': '3',
    'complexity': 'beginner',
    'contentType': 'news'
}


@pytest.fixture
def labeller():
    with patch('newsgraph.ingestion.labeller.ChatOllama') as mock_ollama:
        mock_llm = MagicMock()
        mock_llm.invoke.return_value = MagicMock(content=json.dumps(SAMPLE_LABELS))
        mock_ollama.return_value = mock_llm
        instance = ArticleLabeller(model='llama3.1:latest', base_url='http://localhost:11434')
    return instance


@pytest.fixture
def article():
    return {
        'id': 'raw-1',
        'title': 'Acme opens battery plant',
        'author': 'Jane Reporter',
        'excerpt': 'A new plant.',
        'content': 'x' * 5000
    }


class TestConnection:
    """Test Ollama connection checks."""

    @patch('newsgraph.ingestion.labeller.requests.get')
    def test_verify_connection_success(self, mock_get, labeller):
        mock_get.return_value = MagicMock(status_code=200)

        assert labeller.verify_connection() is True
        mock_get.assert_called_once_with('http://localhost:11434/api/tags', timeout=30)

    @patch('newsgraph.ingestion.labeller.requests.get')
    def test_verify_connection_refused(self, mock_get, labeller):
        mock_get.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(LabellerConnectionError) as exc_info:
            labeller.verify_connection()

        assert 'ollama serve' in str(exc_info.value)

    @patch('newsgraph.ingestion.labeller.requests.get')
    def test_verify_connection_timeout(self, mock_get, labeller):
        mock_get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(LabellerConnectionError) as exc_info:
            labeller.verify_connection()

        assert 'timed out' in str(exc_info.value)


class TestPrompt:
    """Test prompt construction."""

    def test_prompt_truncates_content(self, labeller, article):
        prompt = labeller.build_prompt(article)

        assert 'Article Title: Acme opens battery plant' in prompt
        assert 'Author: Jane Reporter' in prompt
        assert 'x' * 3000 in prompt
        assert 'x' * 3001 not in prompt
        assert 'Respond ONLY with valid JSON' in prompt

    def test_prompt_defaults(self, labeller):
        prompt = labeller.build_prompt({'id': 'y', 'title': 'T'})

        assert 'Author: Unknown' in prompt
        assert 'Content: N/A' in prompt


class TestParseLabels:
    """Test response parsing."""

    def test_plain_json(self, labeller):
        assert labeller.parse_labels(json.dumps(SAMPLE_LABELS)) == SAMPLE_LABELS

    def test_json_wrapped_in_text(self, labeller):
        text = f"Here is the analysis:\n```json\n{json.dumps(SAMPLE_LABELS)}\n```\nDone."

        assert labeller.parse_labels(text) == SAMPLE_LABELS

    @pytest.mark.parametrize('text', ['not json at all', '{broken', '', '[1, 2]'])
    def test_unparseable_falls_back(self, labeller, text):
        labels = labeller.parse_labels(text)

        assert labels == default_labels()
        assert labels['parseError'] is True


class TestLabelArticle:
    """Test labelling with a mocked LLM."""

    def test_label_article_adds_metadata(self, labeller, article):
        labels = labeller.label_article(article)

        assert labels['categories'] == ['Technology']
        assert labels['modelUsed'] == 'llama3.1:latest'
        assert 'labelledAt' in labels

    def test_llm_failure_raises(self, labeller, article):
        labeller.llm.invoke.side_effect = Exception('model not found')

        with pytest.raises(LabellingError):
            labeller.label_article(article)

    def test_batch_label_records_failures(self, labeller, article):
        labeller.llm.invoke.side_effect = [
            MagicMock(content=json.dumps(SAMPLE_LABELS)),
            Exception('boom'),
        ]

        results = labeller.batch_label([article, {'id': 'raw-2', 'title': 'Two'}], delay=0)

        assert results[0]['success'] is True
        assert results[0]['labels']['topics'] == ['Batteries']
        assert results[1] == {'success': False, 'article_id': 'raw-2',
                              'error': 'Failed to label article: boom'}

    @patch('newsgraph.ingestion.labeller.time.sleep')
    def test_batch_label_delays_between_requests(self, mock_sleep, labeller, article):
        labeller.batch_label([article, article, article], delay=0.5)

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)
