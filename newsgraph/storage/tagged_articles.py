"""
Tagged Article Storage

Stores labelled articles as one JSON file per article
(``tagged-<id>.json``) in a data directory.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TaggedArticleStorage:
    """JSON-file storage for articles enriched by the labeller."""

    FILE_PREFIX = 'tagged-'

    def __init__(self, storage_dir: Optional[str] = None):
        """
        Initialize the storage.

        Args:
            storage_dir: Directory for tagged article files
                (default: from .env or data/tagged-articles)
        """
        self.storage_dir = Path(
            storage_dir or os.getenv('TAGGED_ARTICLES_DIR', 'data/tagged-articles')
        )
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def _article_path(self, article_id: str) -> Path:
        return self.storage_dir / f"{self.FILE_PREFIX}{article_id}.json"

    def save_tagged_article(self, article: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save a tagged article, replacing any previous version.

        Raises:
            ValueError: If the article has no id
        """
        if not article.get('id'):
            raise ValueError("Tagged article must have an 'id'")

        path = self._article_path(article['id'])
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(article, f, indent=2)

        logger.info(f"Saved tagged article: {article['id']}")
        return article

    def get_tagged_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a tagged article.

        Returns:
            Article dictionary, or None if it does not exist
        """
        path = self._article_path(article_id)
        if not path.exists():
            return None

        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def get_all_tagged_articles(
        self,
        limit: int = 1000,
        offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Load tagged articles, most recently written first.

        Unreadable files are skipped with a warning.

        Args:
            limit: Maximum number of articles
            offset: Number of articles to skip

        Returns:
            List of article dictionaries
        """
        files = sorted(
            self.storage_dir.glob(f"{self.FILE_PREFIX}*.json"),
            key=lambda path: path.stat().st_mtime,
            reverse=True
        )

        articles = []
        for path in files[offset:offset + limit]:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    articles.append(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to read tagged article {path.name}: {e}")

        return articles

    def delete_tagged_article(self, article_id: str) -> bool:
        """
        Delete a tagged article.

        Returns:
            True if the article existed
        """
        path = self._article_path(article_id)
        if not path.exists():
            return False

        path.unlink()
        logger.info(f"Deleted tagged article: {article_id}")
        return True

    def count(self) -> int:
        return sum(1 for _ in self.storage_dir.glob(f"{self.FILE_PREFIX}*.json"))
