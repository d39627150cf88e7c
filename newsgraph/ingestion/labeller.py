"""
AI Article Labeller

Enriches raw articles with structured taxonomy metadata (categories, topics,
keywords, entities, sentiment, summary, ...) using a local Ollama LLM.
"""

import json
import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from langchain_ollama import ChatOllama

logger = logging.getLogger(__name__)

CONTENT_PROMPT_CHARS = 3000

_JSON_BLOCK = re.compile(r'\{[\s\S]*\}')


class LabellingError(Exception):
    """Raised when an article cannot be labelled."""
    pass


class LabellerConnectionError(Exception):
    """Raised when unable to connect to the Ollama service."""
    pass


def default_labels() -> Dict[str, Any]:
    """Labels used when the LLM response cannot be parsed."""
    return {
        'categories': [],
        'topics': [],
        'entities': {
            'people': [],
            'organizations': [],
            'locations': [],
            'products': []
        },
        'keywords': [],
        'sentiment': 'neutral',
        'summary': 'Failed to generate summary',
        'readingTime': 'Unknown',
        'complexity': 'unknown',
        'contentType': 'unknown',
        'parseError': True
    }


class ArticleLabeller:
    """
    Labels articles with taxonomy metadata using an Ollama chat model.

    Features:
    - JSON-only prompt with the expected labels schema
    - Tolerant parsing (extracts the JSON object from surrounding text)
    - Fallback labels when the response is not valid JSON
    - Batch labelling with per-article success/failure records
    """

    def __init__(
        self,
        model: str = "llama3.1:latest",
        base_url: str = "http://localhost:11434",
        max_tokens: int = 2000,
        temperature: float = 0.0,
        timeout: int = 30
    ):
        """
        Initialize the labeller.

        Args:
            model: Ollama model name
            base_url: Base URL for Ollama service
            max_tokens: Maximum tokens in the labelling response
            temperature: LLM temperature
            timeout: Timeout in seconds for connection checks
        """
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

        self.llm = ChatOllama(
            model=model,
            temperature=temperature,
            base_url=base_url,
            num_predict=max_tokens
        )

    def verify_connection(self) -> bool:
        """
        Verify connection to Ollama service.

        Returns:
            True if connection successful

        Raises:
            LabellerConnectionError: If unable to connect
        """
        try:
            response = requests.get(
                f"{self.base_url}/api/tags",
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.ConnectionError:
            raise LabellerConnectionError(
                f"Unable to connect to Ollama at {self.base_url}. "
                "Please ensure Ollama is running (try: ollama serve)"
            )
        except requests.exceptions.Timeout:
            raise LabellerConnectionError(
                f"Connection to Ollama timed out after {self.timeout}s"
            )
        except requests.exceptions.RequestException as e:
            raise LabellerConnectionError(f"Error connecting to Ollama: {str(e)}")

        logger.info("✓ Successfully connected to Ollama service")
        return True

    def build_prompt(self, article: Dict[str, Any]) -> str:
        """Build the labelling prompt for an article."""
        content = article.get('content')
        content_text = content[:CONTENT_PROMPT_CHARS] if content else 'N/A'

        return f"""Analyze this article and provide structured metadata in JSON format.

Article Title: {article.get('title', '')}
Author: {article.get('author') or 'Unknown'}
Excerpt: {article.get('excerpt') or 'N/A'}
Content: {content_text}

Please provide the following analysis in valid JSON format:
{{
  "categories": ["primary category", "secondary category"],
  "topics": ["specific topic 1", "specific topic 2", "topic 3"],
  "entities": {{
    "people": ["person 1", "person 2"],
    "organizations": ["org 1", "org 2"],
    "locations": ["location 1", "location 2"],
    "products": ["product 1"]
  }},
  "keywords": ["keyword1", "keyword2", "keyword3", "keyword4", "keyword5"],
  "sentiment": "positive|negative|neutral",
  "summary": "A concise 2-3 sentence summary of the article",
  "readingTime": "estimated minutes to read",
  "complexity": "beginner|intermediate|advanced",
  "contentType": "news|opinion|tutorial|research|review|analysis"
}}

Respond ONLY with valid JSON, no additional text."""

    def parse_labels(self, response_text: str) -> Dict[str, Any]:
        """
        Parse labels from the LLM response.

        Args:
            response_text: Raw LLM output

        Returns:
            Labels dictionary; default labels with ``parseError`` set if the
            response does not contain a JSON object
        """
        match = _JSON_BLOCK.search(response_text or '')
        candidate = match.group(0) if match else (response_text or '')

        try:
            labels = json.loads(candidate)
        except ValueError as e:
            logger.error(f"Failed to parse AI response: {e}")
            logger.debug(f"Response text: {response_text}")
            return default_labels()

        if not isinstance(labels, dict):
            logger.error("Failed to parse AI response: not a JSON object")
            return default_labels()

        return labels

    def label_article(self, article: Dict[str, Any]) -> Dict[str, Any]:
        """
        Generate labels for an article.

        Args:
            article: Raw article (id, title, author, excerpt, content, ...)

        Returns:
            Labels dictionary with ``labelledAt`` and ``modelUsed`` added

        Raises:
            LabellingError: If the LLM call fails
        """
        logger.info(f"Labelling article: {article.get('id')}")

        try:
            response = self.llm.invoke(self.build_prompt(article))
        except Exception as e:
            logger.error(f"Labelling error for {article.get('id')}: {e}")
            raise LabellingError(f"Failed to label article: {str(e)}")

        response_text = response.content if hasattr(response, 'content') else str(response)
        labels = self.parse_labels(response_text)
        labels['labelledAt'] = datetime.now().isoformat()
        labels['modelUsed'] = self.model

        logger.info(f"Successfully labelled article: {article.get('id')}")
        return labels

    def batch_label(
        self,
        articles: List[Dict[str, Any]],
        delay: float = 1.0
    ) -> List[Dict[str, Any]]:
        """
        Label multiple articles sequentially.

        Args:
            articles: Raw articles
            delay: Delay between LLM requests (seconds)

        Returns:
            List of result dictionaries with success, article_id and
            labels or error
        """
        results = []

        for i, article in enumerate(articles):
            try:
                labels = self.label_article(article)
                results.append({
                    'success': True,
                    'article_id': article.get('id'),
                    'labels': labels
                })
            except LabellingError as e:
                results.append({
                    'success': False,
                    'article_id': article.get('id'),
                    'error': str(e)
                })

            if delay > 0 and i < len(articles) - 1:
                time.sleep(delay)

        return results

    def __repr__(self) -> str:
        return f"ArticleLabeller(model={self.model!r}, base_url={self.base_url!r})"
