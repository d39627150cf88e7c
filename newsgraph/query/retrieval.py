"""
Multi-Strategy Article Retrieval

Retrieval step of the RAG pipeline:
1. Keyword extraction from the query
2. Concurrent fan-out over topic, keyword and recency strategies
3. Deduplication in strategy order
4. Second-pass relevance scoring
5. Ranking and truncation
6. Context assembly for answer generation
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..graph.models import ArticleNode
from ..graph.query_index import QueryIndex
from ..graph.store import GraphStore
from .keywords import extract_keywords

logger = logging.getLogger(__name__)

# Second-pass relevance weights
EXACT_TITLE_BONUS = 10
TITLE_KEYWORD_WEIGHT = 5
TOPIC_KEYWORD_WEIGHT = 3
CATEGORY_KEYWORD_WEIGHT = 2
ARTICLE_KEYWORD_WEIGHT = 1
SUMMARY_QUERY_BONUS = 4

CONTEXT_KEYWORD_LIMIT = 8


@dataclass
class RetrievalResult:
    """Ranked sources for a query plus retrieval metadata."""
    query: str
    keywords: List[str] = field(default_factory=list)
    sources: List[Dict[str, Any]] = field(default_factory=list)
    total_articles_searched: int = 0
    failed_strategies: List[str] = field(default_factory=list)


def score_article(node: ArticleNode, query: str, keywords: List[str]) -> int:
    """
    Score an article's relevance to a query.

    Args:
        node: Candidate article
        query: Raw query text
        keywords: Keywords extracted from the query

    Returns:
        Relevance score (0 means not relevant)
    """
    query_lower = query.lower()
    title = node.title.lower()
    topics = [topic.lower() for topic in node.values_for('topics')]
    categories = [category.lower() for category in node.values_for('categories')]
    article_keywords = [keyword.lower() for keyword in node.values_for('keywords')]

    score = 0
    if query_lower and query_lower in title:
        score += EXACT_TITLE_BONUS

    for keyword in keywords:
        if keyword in title:
            score += TITLE_KEYWORD_WEIGHT
        if any(keyword in topic for topic in topics):
            score += TOPIC_KEYWORD_WEIGHT
        if any(keyword in category for category in categories):
            score += CATEGORY_KEYWORD_WEIGHT
        if any(keyword in article_keyword for article_keyword in article_keywords):
            score += ARTICLE_KEYWORD_WEIGHT

    if query_lower and query_lower in node.summary.lower():
        score += SUMMARY_QUERY_BONUS

    return score


class RetrievalAggregator:
    """
    Finds and ranks the articles most relevant to a free-text query.

    Each strategy runs on its own worker thread. Strategies that fail or do
    not finish within ``strategy_timeout`` seconds are dropped; the query
    still succeeds with whatever the remaining strategies returned.
    """

    def __init__(
        self,
        store: GraphStore,
        query_index: Optional[QueryIndex] = None,
        candidate_limit: int = 20,
        recent_limit: int = 20,
        strategy_timeout: float = 5.0
    ):
        """
        Initialize the aggregator.

        Args:
            store: Graph store to search
            query_index: Topic/keyword index (default: built over ``store``)
            candidate_limit: Results requested from the topic and keyword strategies
            recent_limit: Results requested from the recency strategy
            strategy_timeout: Seconds to wait for the strategies to settle
        """
        self.store = store
        self.query_index = query_index or QueryIndex(store)
        self.candidate_limit = candidate_limit
        self.recent_limit = recent_limit
        self.strategy_timeout = strategy_timeout

    def _resolve(self, results: List[Dict[str, Any]]) -> List[ArticleNode]:
        nodes = []
        for result in results:
            node = self.store.get_node(result['article_id'])
            if node is not None:
                nodes.append(node)
        return nodes

    def _topic_strategy(self, term: str) -> List[ArticleNode]:
        return self._resolve(self.query_index.query_by_topic(term, self.candidate_limit))

    def _keyword_strategy(self, term: str) -> List[ArticleNode]:
        return self._resolve(self.query_index.query_by_keyword(term, self.candidate_limit))

    def _recent_strategy(self) -> List[ArticleNode]:
        return self.store.recent_nodes(self.recent_limit)

    def _build_strategies(
        self,
        keywords: List[str]
    ) -> List[Tuple[str, Callable[[], List[ArticleNode]]]]:
        strategies: List[Tuple[str, Callable[[], List[ArticleNode]]]] = []

        # An empty term would match every node, so skip the index lookups
        if keywords:
            term = ' '.join(keywords)
            strategies.append(('topic', lambda: self._topic_strategy(term)))
            strategies.append(('keyword', lambda: self._keyword_strategy(term)))

        strategies.append(('recent', self._recent_strategy))
        return strategies

    def _gather(
        self,
        strategies: List[Tuple[str, Callable[[], List[ArticleNode]]]]
    ) -> Tuple[List[List[ArticleNode]], List[str]]:
        """
        Run strategies concurrently and collect the successful results.

        Returns:
            Tuple of (per-strategy results in strategy order, failed strategy names)
        """
        executor = ThreadPoolExecutor(
            max_workers=len(strategies),
            thread_name_prefix='retrieval'
        )
        try:
            futures = [(name, executor.submit(fn)) for name, fn in strategies]
            wait([future for _, future in futures], timeout=self.strategy_timeout)

            collected = []
            failed = []
            for name, future in futures:
                if not future.done():
                    future.cancel()
                    logger.warning(
                        f"Retrieval strategy '{name}' timed out after {self.strategy_timeout}s"
                    )
                    failed.append(name)
                    continue

                try:
                    collected.append(future.result())
                except Exception as e:
                    logger.warning(f"Retrieval strategy '{name}' failed: {e}")
                    failed.append(name)

            return collected, failed

        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def _deduplicate(results: List[List[ArticleNode]]) -> List[ArticleNode]:
        seen = set()
        unique = []
        for nodes in results:
            for node in nodes:
                if node.id not in seen:
                    seen.add(node.id)
                    unique.append(node)
        return unique

    @staticmethod
    def _build_source(node: ArticleNode, score: int) -> Dict[str, Any]:
        return {
            'id': node.id,
            'title': node.title,
            'url': node.url,
            'categories': list(node.values_for('categories')),
            'topics': list(node.values_for('topics')),
            'keywords': list(node.values_for('keywords'))[:CONTEXT_KEYWORD_LIMIT],
            'summary': node.summary,
            'score': score,
        }

    def retrieve(self, query: str, max_sources: int = 5) -> RetrievalResult:
        """
        Retrieve and rank the articles most relevant to a query.

        Args:
            query: Free-text query
            max_sources: Maximum number of sources to return

        Returns:
            RetrievalResult with ranked sources and candidate count
        """
        keywords = extract_keywords(query)
        logger.debug(f"Extracted keywords: {keywords}")

        results, failed = self._gather(self._build_strategies(keywords))
        candidates = self._deduplicate(results)

        scored = []
        for node in candidates:
            score = score_article(node, query, keywords)
            if score > 0:
                scored.append((score, node))

        # Stable sort keeps dedup order among equal scores
        scored.sort(key=lambda item: item[0], reverse=True)

        sources = [
            self._build_source(node, score)
            for score, node in scored[:max(max_sources, 0)]
        ]

        logger.info(
            f"Retrieved {len(sources)} sources from {len(candidates)} candidates "
            f"for query: {query!r}"
        )

        return RetrievalResult(
            query=query,
            keywords=keywords,
            sources=sources,
            total_articles_searched=len(candidates),
            failed_strategies=failed
        )
