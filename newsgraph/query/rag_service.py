"""
RAG Service for Question Answering over the Knowledge Graph

Orchestrates the complete RAG pipeline:
1. Multi-strategy retrieval and ranking of articles from the graph
2. Prompt construction with the ranked article context
3. LLM-based answer generation
4. Source and metadata assembly
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from langchain_ollama import ChatOllama

from .retrieval import RetrievalAggregator

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when the LLM fails to generate an answer."""
    pass


class RAGService:
    """
    RAG (Retrieval-Augmented Generation) service for question answering.

    Ranks articles from the knowledge graph and grounds an LLM answer in
    their titles, taxonomy and summaries.
    """

    def __init__(
        self,
        aggregator: RetrievalAggregator,
        llm_model: str = "llama3.1:latest",
        max_sources: int = 5,
        temperature: float = 0.7,
        max_tokens: int = 1500,
        ollama_base_url: str = "http://localhost:11434"
    ):
        """
        Initialize the RAG service.

        Args:
            aggregator: Retrieval aggregator over the graph
            llm_model: Ollama model name for answer generation
            max_sources: Default number of sources to use
            temperature: LLM temperature (0.0-1.0, higher = more creative)
            max_tokens: Maximum tokens in generated answer
            ollama_base_url: Base URL for Ollama service
        """
        self.aggregator = aggregator
        self.llm_model = llm_model
        self.max_sources = max_sources
        self.temperature = temperature
        self.max_tokens = max_tokens

        # Initialize LLM
        self.llm = ChatOllama(
            model=llm_model,
            temperature=temperature,
            base_url=ollama_base_url,
            num_predict=max_tokens
        )

    def _format_context(self, sources: List[Dict[str, Any]]) -> str:
        """
        Format ranked sources for inclusion in the prompt.

        Args:
            sources: Ranked source dictionaries from retrieval

        Returns:
            Formatted context string
        """
        if not sources:
            return ""

        formatted_parts = []
        for i, source in enumerate(sources, 1):
            lines = [f"[{i}] {source['title']}"]
            if source.get('categories'):
                lines.append(f"Categories: {', '.join(source['categories'])}")
            if source.get('topics'):
                lines.append(f"Topics: {', '.join(source['topics'])}")
            if source.get('keywords'):
                lines.append(f"Keywords: {', '.join(source['keywords'])}")
            lines.append(f"Summary: {source.get('summary') or 'No summary'}")
            formatted_parts.append("\n".join(lines) + "\n")

        return "\n".join(formatted_parts)

    def _build_prompt(self, question: str, context: str) -> str:
        """
        Build the complete prompt for the LLM.

        Args:
            question: User's question
            context: Formatted article context

        Returns:
            Complete prompt string
        """
        system_prompt = """You are a knowledge base assistant that answers questions based on a database of labelled news articles.

IMPORTANT INSTRUCTIONS:
1. Answer questions using ONLY the information provided in the articles below
2. Cite your sources by referencing the article numbers in brackets, e.g., [1], [2]
3. When you reference specific articles, mention their titles
4. If the articles do not contain relevant information, clearly state: "I don't have information about that in the available articles."
5. Be concise but informative"""

        if context:
            context_text = f"\n\nRELEVANT ARTICLES:\n{context}"
        else:
            context_text = "\n\nRELEVANT ARTICLES: No relevant articles found."

        return f"""{system_prompt}{context_text}

QUESTION: {question}

ANSWER:"""

    def _generate_answer(self, prompt: str) -> str:
        """
        Generate answer using LLM.

        Raises:
            GenerationError: If LLM generation fails
        """
        try:
            response = self.llm.invoke(prompt)
        except Exception as e:
            logger.error(f"Error generating answer with LLM: {e}")
            raise GenerationError(f"Error generating answer with LLM: {str(e)}")

        if hasattr(response, 'content'):
            return response.content
        return str(response)

    def answer_query(
        self,
        query: str,
        max_sources: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Answer a free-text question from the knowledge graph.

        Args:
            query: User's question
            max_sources: Number of ranked sources to use (overrides default)

        Returns:
            Dictionary with:
                - query: Original question
                - answer: Generated answer
                - sources: Ranked sources (id, title, url, categories,
                  topics, summary, relevance_score)
                - metadata: total_articles_searched, sources_used, timestamp
                - response_time: Time taken to generate response

        Raises:
            ValueError: If query is empty
            GenerationError: If the LLM call fails
        """
        if not query or not query.strip():
            raise ValueError("Query cannot be empty")

        start_time = time.time()
        limit = max_sources if max_sources is not None else self.max_sources

        logger.info(f"Processing query: {query}")

        # Step 1: Retrieve and rank sources
        retrieval = self.aggregator.retrieve(query, limit)

        # Step 2: Build prompt
        prompt = self._build_prompt(query, self._format_context(retrieval.sources))

        # Step 3: Generate answer
        answer = self._generate_answer(prompt)

        sources = [
            {
                'id': source['id'],
                'title': source['title'],
                'url': source['url'],
                'categories': source['categories'],
                'topics': source['topics'],
                'summary': source['summary'],
                'relevance_score': source['score'],
            }
            for source in retrieval.sources
        ]

        return {
            'query': query,
            'answer': answer,
            'sources': sources,
            'metadata': {
                'total_articles_searched': retrieval.total_articles_searched,
                'sources_used': len(sources),
                'timestamp': datetime.now().isoformat(),
            },
            'response_time': time.time() - start_time
        }
