"""
News Knowledge Graph

A modular system for ingesting labelled news articles into a knowledge graph,
linking related articles, and answering questions over them using AI.
"""

__version__ = "0.1.0"
