"""
Test Suite for Article Similarity Scoring

Tests cover:
- Weighted, case-insensitive scoring
- Symmetry
- Shared topic/keyword reporting
- find_similar ordering and limits
"""

import pytest

from newsgraph.graph.models import ArticleNode
from newsgraph.graph.similarity import SimilarityEngine, SIMILARITY_WEIGHTS
from newsgraph.graph.store import GraphStore


@pytest.fixture
def graph(make_article):
    store = GraphStore()
    store.add_node(make_article(
        'a', 'Lithium prices', topics=['Lithium', 'Supply Chain']
    ))
    store.add_node(make_article(
        'b', 'Mining boom', topics=['lithium', 'Mining']
    ))
    store.add_node(make_article(
        'c', 'Battery makers expand',
        categories=['Business'], topics=['Lithium', 'Batteries'],
        keywords=['lithium', 'batteries', 'factory'], organizations=['Acme Corp']
    ))
    store.add_node(make_article(
        'd', 'Battery plant opens',
        categories=['business'], topics=['batteries'],
        keywords=['Batteries', 'factory', 'jobs'], organizations=['ACME CORP']
    ))
    store.add_node(make_article('e', 'Football final', categories=['Sports']))
    return store


@pytest.fixture
def engine(graph):
    return SimilarityEngine(graph)


class TestScore:
    """Test the weighted overlap score."""

    def test_single_topic_match_case_insensitive(self, graph, engine):
        """One shared topic differing only in case scores the topic weight."""
        assert engine.score(graph.get_node('a'), graph.get_node('b')) == 2

    def test_weighted_sum_across_fields(self, graph, engine):
        """Each shared value contributes its field's weight."""
        # categories 1*3 + topics 1*2 + keywords 2*1 + organizations 1*2
        assert engine.score(graph.get_node('c'), graph.get_node('d')) == 9

    def test_score_is_symmetric(self, graph, engine):
        """score(a, b) == score(b, a) for every pair."""
        nodes = graph.get_all_nodes()
        for node_a in nodes:
            for node_b in nodes:
                assert engine.score(node_a, node_b) == engine.score(node_b, node_a)

    def test_no_overlap_scores_zero(self, graph, engine):
        assert engine.score(graph.get_node('a'), graph.get_node('e')) == 0

    def test_absent_labels_score_zero(self, graph, engine):
        """Nodes without labels share nothing."""
        bare = ArticleNode(id='bare', title='Bare')

        assert engine.score(bare, graph.get_node('c')) == 0
        assert engine.score(graph.get_node('c'), bare) == 0

    def test_duplicates_within_a_field_count_once(self, engine):
        """Repeated values on one side do not inflate the score."""
        node_a = ArticleNode.from_article({'id': 'x', 'labels': {'topics': ['AI', 'ai', 'Ai']}})
        node_b = ArticleNode.from_article({'id': 'y', 'labels': {'topics': ['AI']}})

        assert engine.score(node_a, node_b) == SIMILARITY_WEIGHTS['topics']


class TestSharedItems:
    """Test shared value reporting."""

    def test_keeps_target_casing(self):
        assert SimilarityEngine.shared_items(['Lithium', 'Chain'], ['lithium', 'mining']) == ['lithium']

    def test_deduplicates(self):
        assert SimilarityEngine.shared_items(['ai'], ['AI', 'ai']) == ['AI']


class TestFindSimilar:
    """Test find_similar."""

    def test_excludes_self_and_zero_scores(self, engine):
        """Results never contain the node itself or unrelated nodes."""
        results = engine.find_similar('c', limit=10)
        ids = [result['article_id'] for result in results]

        assert 'c' not in ids
        assert 'e' not in ids
        assert all(result['similarity'] > 0 for result in results)

    def test_sorted_by_similarity(self, engine):
        """Results are ordered by similarity, highest first."""
        results = engine.find_similar('c', limit=10)

        assert results[0]['article_id'] == 'd'
        assert results[0]['similarity'] == 9
        similarities = [result['similarity'] for result in results]
        assert similarities == sorted(similarities, reverse=True)

    def test_ties_keep_node_table_order(self, engine):
        """Equal scores come back in insertion order."""
        results = engine.find_similar('c', limit=10)

        assert [r['article_id'] for r in results] == ['d', 'a', 'b']
        assert results[1]['similarity'] == results[2]['similarity'] == 2

    def test_ties_ignore_id_order(self, make_article):
        """Insertion order wins over alphabetical order."""
        store = GraphStore()
        store.add_node(make_article('source', topics=['Lithium']))
        for node_id in ('zulu', 'mike', 'alpha'):
            store.add_node(make_article(node_id, topics=['lithium']))

        results = SimilarityEngine(store).find_similar('source', limit=10)

        assert [r['article_id'] for r in results] == ['zulu', 'mike', 'alpha']

    def test_reports_shared_topics_and_keywords(self, engine):
        result = engine.find_similar('c', limit=1)[0]

        assert result['title'] == 'Battery plant opens'
        assert result['shared_topics'] == ['batteries']
        assert result['shared_keywords'] == ['Batteries', 'factory']

    def test_limit(self, engine):
        assert len(engine.find_similar('c', limit=1)) == 1
        assert engine.find_similar('c', limit=0) == []

    def test_unknown_node_returns_empty(self, engine):
        assert engine.find_similar('missing') == []

    def test_custom_weights(self, graph):
        """Weights can be overridden per engine."""
        engine = SimilarityEngine(graph, weights={'topics': 10})

        assert engine.score(graph.get_node('a'), graph.get_node('b')) == 10
