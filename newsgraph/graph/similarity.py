"""
Article Similarity Scoring

Weighted, case-insensitive overlap between two articles' taxonomy labels.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import ArticleNode
from .store import GraphStore

logger = logging.getLogger(__name__)

# Taxonomy field -> weight per shared value
SIMILARITY_WEIGHTS = {
    'categories': 3,
    'topics': 2,
    'keywords': 1,
    'entities.people': 2,
    'entities.organizations': 2,
}


class SimilarityEngine:
    """
    Scores article similarity and finds the most similar articles in a graph.

    The engine only scores. Whether a score is high enough to become a graph
    edge is decided by the ingestion policy.
    """

    def __init__(self, store: GraphStore, weights: Optional[Dict[str, int]] = None):
        self.store = store
        self.weights = dict(weights or SIMILARITY_WEIGHTS)

    @staticmethod
    def shared_items(source: Iterable[str], target: Iterable[str]) -> List[str]:
        """
        Find values of ``target`` that also appear in ``source``.

        Matching is case-insensitive; returned values keep the casing used in
        ``target``.
        """
        source_folded = {item.casefold() for item in source}

        shared = []
        seen = set()
        for item in target:
            folded = item.casefold()
            if folded in source_folded and folded not in seen:
                shared.append(item)
                seen.add(folded)

        return shared

    def score(self, node_a: ArticleNode, node_b: ArticleNode) -> int:
        """
        Calculate the weighted similarity between two nodes.

        Score = sum over fields of weight * |case-folded intersection|.
        """
        total = 0
        for field_name, weight in self.weights.items():
            values_a = {value.casefold() for value in node_a.values_for(field_name)}
            values_b = {value.casefold() for value in node_b.values_for(field_name)}
            total += weight * len(values_a & values_b)
        return total

    def find_similar(self, node_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Find the nodes most similar to a given node.

        Args:
            node_id: Node to compare against
            limit: Maximum number of results

        Returns:
            List of dictionaries with article_id, title, similarity,
            shared_topics and shared_keywords, highest similarity first.
            Empty for unknown nodes.
        """
        source = self.store.get_node(node_id)
        if source is None or limit <= 0:
            return []

        similarities = []
        for node in self.store.get_all_nodes():
            if node.id == node_id:
                continue

            similarity = self.score(source, node)
            if similarity <= 0:
                continue

            similarities.append({
                'article_id': node.id,
                'title': node.title,
                'similarity': similarity,
                'shared_topics': self.shared_items(
                    source.values_for('topics'),
                    node.values_for('topics')
                ),
                'shared_keywords': self.shared_items(
                    source.values_for('keywords'),
                    node.values_for('keywords')
                ),
            })

        similarities.sort(key=lambda item: item['similarity'], reverse=True)
        logger.debug(f"Found {len(similarities)} similar articles for {node_id}")
        return similarities[:limit]
