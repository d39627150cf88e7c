"""
Test Suite for Topic and Keyword Lookup
"""

import pytest

from newsgraph.graph.query_index import QueryIndex
from newsgraph.graph.store import GraphStore


@pytest.fixture
def index(make_article):
    store = GraphStore()
    store.add_node(make_article(
        'cat-only', 'Markets wrap', categories=['Climate Finance'], topics=['Stocks']
    ))
    store.add_node(make_article(
        'topic', 'Heatwave', categories=['Science'], topics=['Climate Change', 'Weather']
    ))
    store.add_node(make_article(
        'both', 'Climate summit', categories=['Climate'], topics=['climate policy']
    ))
    store.add_node(make_article(
        'kw', 'EV sales', keywords=['electric vehicles', 'Electric grid', 'sales']
    ))
    store.add_node(make_article(
        'kw2', 'Charging', keywords=['electric vehicles', 'chargers']
    ))
    return QueryIndex(store)


class TestQueryByTopic:
    """Test topic lookup."""

    def test_topic_match_outranks_category_match(self, index):
        """Topic matches score 2 and rank above category-only matches."""
        results = index.query_by_topic('climate')

        assert [r['article_id'] for r in results] == ['topic', 'both', 'cat-only']
        assert [r['relevance'] for r in results] == [2, 2, 1]

    def test_topic_and_category_match_scores_two(self, index):
        """Matching both a topic and a category is not cumulative."""
        result = next(r for r in index.query_by_topic('climate') if r['article_id'] == 'both')

        assert result['relevance'] == 2
        assert result['matched_topics'] == ['climate policy']

    def test_category_only_has_no_matched_topics(self, index):
        result = next(r for r in index.query_by_topic('CLIMATE') if r['article_id'] == 'cat-only')

        assert result['relevance'] == 1
        assert result['matched_topics'] == []
        assert result['url'] == 'https://example.com/cat-only'

    def test_substring_match(self, index):
        results = index.query_by_topic('weath')

        assert [r['article_id'] for r in results] == ['topic']

    def test_limit(self, index):
        assert len(index.query_by_topic('climate', limit=1)) == 1
        assert index.query_by_topic('climate', limit=0) == []

    def test_no_match(self, index):
        assert index.query_by_topic('football') == []

    def test_ties_keep_node_table_order(self, make_article):
        """Equal relevance keeps insertion order, not id order."""
        store = GraphStore()
        store.add_node(make_article('zulu', categories=['Energy']))
        store.add_node(make_article('mike', topics=['Energy prices']))
        store.add_node(make_article('alpha', categories=['Energy policy']))
        store.add_node(make_article('kilo', topics=['energy']))

        results = QueryIndex(store).query_by_topic('energy')

        assert [r['article_id'] for r in results] == ['mike', 'kilo', 'zulu', 'alpha']
        assert [r['relevance'] for r in results] == [2, 2, 1, 1]


class TestQueryByKeyword:
    """Test keyword lookup."""

    def test_ranked_by_match_count(self, index):
        """Articles with more matching keywords rank first."""
        results = index.query_by_keyword('ELECTRIC')

        assert [r['article_id'] for r in results] == ['kw', 'kw2']
        assert results[0]['match_count'] == 2
        assert results[0]['matched_keywords'] == ['electric vehicles', 'Electric grid']
        assert results[1]['match_count'] == 1

    def test_ties_keep_node_table_order(self, make_article):
        store = GraphStore()
        store.add_node(make_article('zulu', keywords=['solar']))
        store.add_node(make_article('mike', keywords=['solar panels', 'solar farms']))
        store.add_node(make_article('alpha', keywords=['Solar']))

        results = QueryIndex(store).query_by_keyword('solar')

        assert [r['article_id'] for r in results] == ['mike', 'zulu', 'alpha']
        assert [r['match_count'] for r in results] == [2, 1, 1]

    def test_ignores_topics_and_categories(self, index):
        assert index.query_by_keyword('climate') == []

    def test_limit(self, index):
        assert [r['article_id'] for r in index.query_by_keyword('electric', limit=1)] == ['kw']
