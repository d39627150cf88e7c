"""
Storage Module

Graph snapshot persistence and tagged article storage.
"""

from .graph_persistence import GraphPersistence, PersistenceUnavailableError
from .tagged_articles import TaggedArticleStorage

__all__ = [
    'GraphPersistence',
    'PersistenceUnavailableError',
    'TaggedArticleStorage',
]
