"""
Knowledge Graph Module

Article nodes, typed relationship edges, similarity scoring and
topic/keyword lookup.
"""

from .models import ArticleLabels, ArticleNode, Edge, Entities, make_edge_id
from .store import GraphStore, NodeNotFoundError, SnapshotParseError
from .similarity import SimilarityEngine, SIMILARITY_WEIGHTS
from .query_index import QueryIndex

__all__ = [
    'ArticleLabels',
    'ArticleNode',
    'Edge',
    'Entities',
    'make_edge_id',
    'GraphStore',
    'NodeNotFoundError',
    'SnapshotParseError',
    'SimilarityEngine',
    'SIMILARITY_WEIGHTS',
    'QueryIndex',
]
