"""
Query Module

Keyword extraction, multi-strategy retrieval and RAG question answering.
"""

from .keywords import extract_keywords, STOP_WORDS
from .retrieval import RetrievalAggregator, RetrievalResult, score_article
from .rag_service import RAGService, GenerationError

__all__ = [
    'extract_keywords',
    'STOP_WORDS',
    'RetrievalAggregator',
    'RetrievalResult',
    'score_article',
    'RAGService',
    'GenerationError',
]
