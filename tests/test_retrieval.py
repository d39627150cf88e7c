"""
Test Suite for Query Keyword Extraction and Multi-Strategy Retrieval

Tests cover:
- Keyword extraction (stop words, punctuation, length, cap)
- Second-pass relevance scoring
- Ranking and truncation
- Partial failure and timeout tolerance of the strategy fan-out
"""

import time
from unittest.mock import patch

import pytest

from newsgraph.graph.models import ArticleNode
from newsgraph.graph.store import GraphStore
from newsgraph.query.keywords import extract_keywords, STOP_WORDS
from newsgraph.query.retrieval import RetrievalAggregator, score_article


@pytest.fixture
def store(make_article):
    graph = GraphStore()
    graph.add_node(make_article(
        'prices', 'Lithium prices rise again',
        categories=['Business'], keywords=['lithium', 'prices'],
        summary='Prices climbed for the third month.'
    ))
    graph.add_node(make_article(
        'exact', 'Lithium Supply Chain',
        categories=['Business'], topics=['Lithium Supply Chain'],
        keywords=['lithium', 'mining', 'logistics'],
        summary='How lithium moves from mine to battery.'
    ))
    graph.add_node(make_article(
        'mines', 'New mines in Chile',
        categories=['Business'], keywords=['lithium', 'chile'],
        summary='Chile approves lithium projects.'
    ))
    graph.add_node(make_article(
        'sport', 'Cup final tonight', categories=['Sports'], keywords=['football']
    ))
    return graph


@pytest.fixture
def aggregator(store):
    return RetrievalAggregator(store, strategy_timeout=2.0)


class TestExtractKeywords:
    """Test query keyword extraction."""

    def test_drops_stop_words_and_short_tokens(self):
        assert extract_keywords('What is the latest on lithium supply chain?') == \
            ['lithium', 'supply', 'chain']

    def test_lowercases(self):
        assert extract_keywords('Electric VEHICLES') == ['electric', 'vehicles']

    def test_strips_punctuation_without_splitting(self):
        """Punctuation is removed rather than treated as a separator."""
        assert extract_keywords("lithium-ion battery's future") == \
            ['lithiumion', 'batterys', 'future']

    def test_caps_keyword_count(self):
        query = ' '.join(f'word{i}' for i in range(15))

        assert extract_keywords(query) == [f'word{i}' for i in range(10)]
        assert len(extract_keywords(query, max_keywords=3)) == 3

    def test_only_stop_words(self):
        assert extract_keywords('what is the news') == []
        assert extract_keywords('') == []

    def test_stop_words_are_lowercase(self):
        assert all(word == word.lower() for word in STOP_WORDS)


class TestScoreArticle:
    """Test second-pass relevance scoring."""

    def test_all_rules(self):
        """Every rule contributes its weight."""
        node = ArticleNode.from_article({
            'id': 'x',
            'title': 'Lithium Supply Chain',
            'labels': {
                'categories': ['Business'],
                'topics': ['Supply chains'],
                'keywords': ['lithium'],
                'summary': 'The lithium supply chain is under strain.'
            }
        })
        query = 'lithium supply chain'
        keywords = ['lithium', 'supply', 'chain']

        # exact title 10 + title keywords 3*5 + topic keywords 2*3
        # + article keyword 1 + summary 4
        assert score_article(node, query, keywords) == 36

    def test_category_match(self):
        node = ArticleNode.from_article({
            'id': 'x', 'title': 'Markets', 'labels': {'categories': ['Technology']}
        })

        assert score_article(node, 'tech', ['tech']) == 2

    def test_no_match_scores_zero(self):
        node = ArticleNode.from_article({'id': 'x', 'title': 'Football'})

        assert score_article(node, 'lithium', ['lithium']) == 0


class TestRetrieve:
    """Test the full retrieval step."""

    def test_exact_title_ranks_first(self, aggregator):
        """The article titled exactly like the query is the top source."""
        result = aggregator.retrieve('lithium supply chain')

        assert result.keywords == ['lithium', 'supply', 'chain']
        assert result.sources[0]['id'] == 'exact'
        assert {source['id'] for source in result.sources} == {'exact', 'prices', 'mines'}
        assert result.failed_strategies == []

    def test_scores_descending_and_positive(self, aggregator):
        result = aggregator.retrieve('lithium supply chain')
        scores = [source['score'] for source in result.sources]

        assert scores == sorted(scores, reverse=True)
        assert all(score > 0 for score in scores)

    def test_source_shape(self, aggregator):
        source = aggregator.retrieve('lithium supply chain').sources[0]

        assert source['title'] == 'Lithium Supply Chain'
        assert source['url'] == 'https://example.com/exact'
        assert source['categories'] == ['Business']
        assert source['topics'] == ['Lithium Supply Chain']
        assert source['keywords'] == ['lithium', 'mining', 'logistics']
        assert source['summary'] == 'How lithium moves from mine to battery.'

    def test_max_sources_truncates(self, aggregator):
        result = aggregator.retrieve('lithium supply chain', max_sources=1)

        assert [source['id'] for source in result.sources] == ['exact']
        assert aggregator.retrieve('lithium', max_sources=0).sources == []

    def test_counts_deduplicated_candidates(self, aggregator):
        """Articles found by several strategies are counted once."""
        result = aggregator.retrieve('lithium supply chain')

        assert result.total_articles_searched == 4

    def test_empty_graph(self):
        result = RetrievalAggregator(GraphStore()).retrieve('lithium')

        assert result.sources == []
        assert result.total_articles_searched == 0

    def test_no_keywords_uses_recent_only(self, aggregator):
        """A stop-word-only query skips the topic and keyword lookups."""
        assert [name for name, _ in aggregator._build_strategies([])] == ['recent']

        result = aggregator.retrieve('what is the news')

        assert result.keywords == []
        assert result.sources == []
        assert result.failed_strategies == []

    def test_ties_follow_strategy_order(self, make_article):
        """Equal scores keep dedup order: topic, then keyword, then recent."""
        store = GraphStore()
        for node_id in ('recent', 'keyword', 'topic'):
            store.add_node(make_article(node_id, 'Lithium report'))
        topic, keyword, recent = (store.get_node(i) for i in ('topic', 'keyword', 'recent'))
        aggregator = RetrievalAggregator(store)

        with patch.object(RetrievalAggregator, '_topic_strategy', return_value=[topic]), \
                patch.object(RetrievalAggregator, '_keyword_strategy',
                             return_value=[keyword, topic]), \
                patch.object(RetrievalAggregator, '_recent_strategy',
                             return_value=[recent, keyword, topic]):
            result = aggregator.retrieve('lithium')

        assert [s['id'] for s in result.sources] == ['topic', 'keyword', 'recent']
        assert len({s['score'] for s in result.sources}) == 1
        assert result.total_articles_searched == 3

    def test_recent_duplicate_keeps_keyword_position(self, make_article):
        """An article also found by recency keeps its keyword-strategy slot."""
        store = GraphStore()
        store.add_node(ArticleNode.from_article(
            make_article('kw', 'Cobalt', keywords=['lithium'])
        ))
        store.get_node('kw').added_at = '2024-01-01T00:00:00'
        store.add_node(ArticleNode.from_article(
            make_article('fresh', 'Nickel', keywords=['lithium ore'])
        ))
        store.get_node('fresh').added_at = '2024-06-01T00:00:00'
        aggregator = RetrievalAggregator(store)

        with patch.object(RetrievalAggregator, '_keyword_strategy',
                          return_value=[store.get_node('kw')]):
            result = aggregator.retrieve('lithium')

        # Both score 1; recency alone would put 'fresh' first
        assert [s['id'] for s in result.sources] == ['kw', 'fresh']
        assert result.sources[0]['score'] == result.sources[1]['score'] == 1

    def test_failed_strategy_is_dropped(self, aggregator):
        """One failing strategy does not fail the query."""
        with patch.object(
            RetrievalAggregator, '_topic_strategy', side_effect=RuntimeError('index down')
        ):
            result = aggregator.retrieve('lithium supply chain')

        assert result.failed_strategies == ['topic']
        assert result.sources[0]['id'] == 'exact'

    def test_all_strategies_failing_returns_empty(self, aggregator):
        """Total strategy failure still yields a successful empty result."""
        with patch.object(RetrievalAggregator, '_topic_strategy', side_effect=RuntimeError('a')), \
                patch.object(RetrievalAggregator, '_keyword_strategy', side_effect=RuntimeError('b')), \
                patch.object(RetrievalAggregator, '_recent_strategy', side_effect=RuntimeError('c')):
            result = aggregator.retrieve('lithium supply chain')

        assert result.sources == []
        assert result.total_articles_searched == 0
        assert result.failed_strategies == ['topic', 'keyword', 'recent']

    def test_slow_strategy_times_out(self, store):
        """A strategy that does not settle in time is dropped."""
        aggregator = RetrievalAggregator(store, strategy_timeout=0.2)

        def slow_recent():
            time.sleep(1.0)
            return []

        start = time.time()
        with patch.object(RetrievalAggregator, '_recent_strategy', side_effect=slow_recent):
            result = aggregator.retrieve('lithium supply chain')
        elapsed = time.time() - start

        assert 'recent' in result.failed_strategies
        assert elapsed < 1.0
        assert result.sources[0]['id'] == 'exact'
