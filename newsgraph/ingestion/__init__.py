"""
Ingestion Module

AI labelling of raw articles before they enter the knowledge graph.
"""

from .labeller import ArticleLabeller, LabellingError, LabellerConnectionError

__all__ = [
    'ArticleLabeller',
    'LabellingError',
    'LabellerConnectionError',
]
