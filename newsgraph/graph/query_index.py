"""
Topic and Keyword Lookup

Case-insensitive substring search over article topics, categories and
keywords.
"""

from typing import Any, Dict, List

from .store import GraphStore


class QueryIndex:
    """Substring lookup over the taxonomy labels stored in a graph."""

    def __init__(self, store: GraphStore):
        self.store = store

    def query_by_topic(self, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Find articles whose topics or categories contain a term.

        Relevance is 2 when any topic matches, otherwise 1 when any category
        matches. A node matching both still scores 2.

        Args:
            term: Search term
            limit: Maximum number of results

        Returns:
            List of dictionaries with article_id, title, url, relevance and
            matched_topics, most relevant first
        """
        term_lower = term.lower()
        results = []

        for node in self.store.get_all_nodes():
            matched_topics = [
                topic for topic in node.values_for('topics')
                if term_lower in topic.lower()
            ]
            category_match = any(
                term_lower in category.lower()
                for category in node.values_for('categories')
            )

            if matched_topics:
                relevance = 2
            elif category_match:
                relevance = 1
            else:
                continue

            results.append({
                'article_id': node.id,
                'title': node.title,
                'url': node.url,
                'relevance': relevance,
                'matched_topics': matched_topics,
            })

        results.sort(key=lambda item: item['relevance'], reverse=True)
        return results[:max(limit, 0)]

    def query_by_keyword(self, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Find articles with keywords containing a term.

        Args:
            term: Search term
            limit: Maximum number of results

        Returns:
            List of dictionaries with article_id, title, url, match_count and
            matched_keywords, most matches first
        """
        term_lower = term.lower()
        results = []

        for node in self.store.get_all_nodes():
            matched_keywords = [
                keyword for keyword in node.values_for('keywords')
                if term_lower in keyword.lower()
            ]
            if not matched_keywords:
                continue

            results.append({
                'article_id': node.id,
                'title': node.title,
                'url': node.url,
                'match_count': len(matched_keywords),
                'matched_keywords': matched_keywords,
            })

        results.sort(key=lambda item: item['match_count'], reverse=True)
        return results[:max(limit, 0)]
