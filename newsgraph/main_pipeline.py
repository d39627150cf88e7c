"""
Main Pipeline System

Orchestrates all components into a cohesive system for labelled article
ingestion, knowledge graph linking, persistence, and question answering.

This is the central integration point that coordinates:
- Article labelling and tagged article storage
- Graph ingestion and similarity-based linking
- Topic/keyword lookup
- RAG question answering
- Graph persistence (save/load/backup)
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from .config import Config, get_config
from .graph.query_index import QueryIndex
from .graph.similarity import SimilarityEngine
from .graph.store import GraphStore, SnapshotParseError
from .ingestion.labeller import ArticleLabeller, LabellingError
from .query.rag_service import GenerationError, RAGService
from .query.retrieval import RetrievalAggregator
from .storage.graph_persistence import GraphPersistence, PersistenceUnavailableError
from .storage.tagged_articles import TaggedArticleStorage

RELATES_TO = 'RELATES_TO'
MAX_SHARED_KEYWORDS = 3


class KnowledgeGraphSystem:
    """
    Main pipeline system that integrates all components.

    Built once per process; every collaborator can be injected for testing.
    Ingestion requests are serialised by a single lock. Queries are not, so a
    query running during a sync may see nodes whose edges are not yet linked.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[GraphStore] = None,
        persistence: Optional[GraphPersistence] = None,
        tagged_storage: Optional[TaggedArticleStorage] = None,
        labeller: Optional[ArticleLabeller] = None,
        rag_service: Optional[RAGService] = None,
        auto_save: Optional[bool] = None,
        load_on_start: bool = True,
        log_level: int = logging.INFO
    ):
        """
        Initialize the knowledge graph system.

        Args:
            config: Configuration (default: global configuration)
            store: GraphStore instance (or None for a new empty graph)
            persistence: GraphPersistence instance (or None for default)
            tagged_storage: TaggedArticleStorage instance (or None for default)
            labeller: ArticleLabeller instance (or None for default)
            rag_service: RAGService instance (or None for default)
            auto_save: Save the graph after each ingestion (default: from config)
            load_on_start: Load the saved graph during initialization
            log_level: Logging level
        """
        self._setup_logging(log_level)

        self.config = config or get_config()
        storage_config = self.config.get_storage_config()
        retrieval_config = self.config.get_retrieval_config()

        self.auto_save = storage_config['auto_save'] if auto_save is None else auto_save
        self.edge_threshold = self.config.edge_threshold
        self.similar_limit = self.config.similar_limit

        # Graph core
        self.store = store if store is not None else GraphStore()
        self.similarity = SimilarityEngine(self.store)
        self.query_index = QueryIndex(self.store)

        # Collaborators (dependency injection or defaults)
        self.persistence = persistence or GraphPersistence(storage_config['graph_file_path'])
        self.tagged_storage = tagged_storage or TaggedArticleStorage(
            storage_config['tagged_articles_dir']
        )
        self.labeller = labeller or ArticleLabeller(
            model=self.config.labeller_model,
            base_url=self.config.ollama_base_url,
            max_tokens=self.config.labeller_max_tokens,
            timeout=self.config.ollama_timeout
        )
        self.rag_service = rag_service or RAGService(
            aggregator=RetrievalAggregator(
                self.store,
                query_index=self.query_index,
                candidate_limit=retrieval_config['candidate_limit'],
                recent_limit=retrieval_config['recent_limit'],
                strategy_timeout=retrieval_config['strategy_timeout']
            ),
            llm_model=self.config.llm_model,
            max_sources=retrieval_config['max_sources_default'],
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
            ollama_base_url=self.config.ollama_base_url
        )

        self._ingest_lock = threading.Lock()

        if load_on_start:
            result = self.load_graph()
            if result['success']:
                self.logger.info("Graph loaded from previous session")
            else:
                self.logger.info("Starting with empty graph")

        self.logger.info("KnowledgeGraphSystem initialized successfully")

    def _setup_logging(self, log_level: int):
        """Configure logging for the system."""
        self.logger = logging.getLogger(__name__)
        self.logger.setLevel(log_level)

        package_logger = logging.getLogger('newsgraph')
        if not package_logger.handlers and not logging.getLogger().handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)

    def _link_similar(self, article_id: str) -> int:
        """
        Create RELATES_TO edges from an article to sufficiently similar ones.

        Existing edges are rewritten with fresh metadata but only edges that
        did not exist before are counted.

        Returns:
            Number of newly created relationships
        """
        created = 0
        for similar in self.similarity.find_similar(article_id, self.similar_limit):
            if similar['similarity'] <= self.edge_threshold:
                continue

            is_new = not self.store.has_edge(article_id, similar['article_id'], RELATES_TO)
            self.store.add_edge(article_id, similar['article_id'], RELATES_TO, {
                'strength': similar['similarity'],
                'sharedTopics': similar['shared_topics'],
                'sharedKeywords': similar['shared_keywords'][:MAX_SHARED_KEYWORDS]
            })
            if is_new:
                created += 1

        return created

    def _auto_save(self) -> None:
        if self.auto_save:
            self.save_graph()

    def add_article(self, article: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a labelled article to the graph and link it to similar articles.

        Args:
            article: Labelled article dictionary

        Returns:
            Dictionary with ingestion results:
                - success: bool
                - node: dict (if successful)
                - relationships_created: int
                - error: str (if failed)
        """
        try:
            with self._ingest_lock:
                node = self.store.add_node(article)
                created = self._link_similar(node.id)
                self._auto_save()
        except ValueError as e:
            self.logger.error(f"Failed to add article to graph: {e}")
            return {'success': False, 'error': str(e)}

        self.logger.info(f"Added article {node.id} with {created} new relationships")
        return {
            'success': True,
            'node': node.to_dict(),
            'relationships_created': created
        }

    def add_article_by_id(self, article_id: str) -> Dict[str, Any]:
        """
        Add a tagged article from tagged storage to the graph.

        Args:
            article_id: Tagged article id

        Returns:
            Dictionary with ingestion results (see ``add_article``)
        """
        article = self.tagged_storage.get_tagged_article(article_id)
        if article is None:
            return {
                'success': False,
                'article_id': article_id,
                'error': 'Tagged article not found'
            }
        return self.add_article(article)

    def sync_articles(
        self,
        articles: Optional[List[Dict[str, Any]]] = None,
        show_progress: bool = True
    ) -> Dict[str, Any]:
        """
        Synchronize tagged articles into the graph.

        All nodes are added first, then relationships are created, so links
        do not depend on article order.

        Args:
            articles: Labelled articles (default: all articles in tagged storage)
            show_progress: Show progress bar

        Returns:
            Dictionary with sync results:
                - success: bool
                - nodes_added: int
                - relationships_created: int
                - failed: list of failed article ids
                - processing_time: float
        """
        start_time = time.time()

        if articles is None:
            articles = self.tagged_storage.get_all_tagged_articles()

        self.logger.info(f"Syncing {len(articles)} articles to graph")

        nodes_added = 0
        relationships_created = 0
        added_ids = []
        failed = []

        with self._ingest_lock:
            for article in articles:
                try:
                    node = self.store.add_node(article)
                    added_ids.append(node.id)
                    nodes_added += 1
                except ValueError as e:
                    self.logger.warning(f"Failed to add node {article.get('id')}: {e}")
                    failed.append(article.get('id'))

            iterator = tqdm(added_ids, desc="Linking articles") if show_progress else added_ids
            for article_id in iterator:
                relationships_created += self._link_similar(article_id)

            self._auto_save()

        return {
            'success': True,
            'nodes_added': nodes_added,
            'relationships_created': relationships_created,
            'failed': failed,
            'processing_time': time.time() - start_time
        }

    def label_and_store(self, article: Dict[str, Any]) -> Dict[str, Any]:
        """
        Label a raw article and save it to tagged storage.

        Args:
            article: Raw article dictionary (must contain an id)

        Returns:
            Dictionary with success, article_id and tagged_article or error
        """
        article_id = article.get('id')
        try:
            labels = self.labeller.label_article(article)
            tagged_article = {**article, 'labels': labels}
            self.tagged_storage.save_tagged_article(tagged_article)
        except (LabellingError, ValueError) as e:
            self.logger.error(f"Failed to label article {article_id}: {e}")
            return {'success': False, 'article_id': article_id, 'error': str(e)}

        return {
            'success': True,
            'article_id': article_id,
            'tagged_article': tagged_article
        }

    def label_articles(self, articles: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Label raw articles in sequence and save the successful ones.

        Requests are spaced by the configured ``label_delay``.

        Args:
            articles: Raw article dictionaries

        Returns:
            One result per article, shaped like ``label_and_store``
        """
        by_id = {article.get('id'): article for article in articles}
        results = []

        for result in self.labeller.batch_label(articles, delay=self.config.label_delay):
            article_id = result['article_id']
            if not result['success']:
                results.append(result)
                continue

            tagged_article = {**by_id[article_id], 'labels': result['labels']}
            try:
                self.tagged_storage.save_tagged_article(tagged_article)
            except ValueError as e:
                self.logger.error(f"Failed to store labelled article {article_id}: {e}")
                results.append({'success': False, 'article_id': article_id, 'error': str(e)})
                continue

            results.append({
                'success': True,
                'article_id': article_id,
                'tagged_article': tagged_article
            })

        succeeded = sum(1 for result in results if result['success'])
        self.logger.info(f"Labelled {succeeded}/{len(articles)} articles")
        return results

    def find_similar(self, article_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.similarity.find_similar(
            article_id,
            self.similar_limit if limit is None else limit
        )

    def get_relationships(
        self,
        article_id: str,
        relationship_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return [
            edge.to_dict()
            for edge in self.store.get_neighbor_edges(article_id, relationship_type)
        ]

    def query_topic(self, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        return self.query_index.query_by_topic(term, limit)

    def query_keyword(self, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        return self.query_index.query_by_keyword(term, limit)

    def get_all_nodes(self) -> List[Dict[str, Any]]:
        return [node.to_dict() for node in self.store.get_all_nodes()]

    def answer_query(self, query: str, max_sources: Optional[int] = None) -> Dict[str, Any]:
        """
        Answer a question using the articles in the graph.

        Args:
            query: User's question
            max_sources: Number of sources to use

        Returns:
            Dictionary with query, answer, sources, metadata and response_time

        Raises:
            ValueError: If query is empty
        """
        try:
            return self.rag_service.answer_query(query, max_sources)
        except GenerationError as e:
            self.logger.error(f"Error answering query: {e}")
            return {
                'query': query,
                'answer': f"Error: {str(e)}",
                'sources': [],
                'metadata': {
                    'total_articles_searched': 0,
                    'sources_used': 0,
                    'timestamp': None
                },
                'response_time': 0
            }

    def get_stats(self) -> Dict[str, Any]:
        """
        Get comprehensive system statistics.

        Returns:
            Graph statistics plus the number of tagged articles in storage
        """
        return {
            **self.store.stats(),
            'tagged_articles': self.tagged_storage.count()
        }

    def clear(self) -> Dict[str, Any]:
        """Clear the entire graph."""
        with self._ingest_lock:
            self.store.clear()
            self._auto_save()

        return {'success': True, 'message': 'Graph cleared'}

    def save_graph(self) -> Dict[str, Any]:
        """
        Save the graph to disk.

        Returns:
            Dictionary with success flag and path or error
        """
        try:
            path = self.persistence.save_graph(self.store.snapshot())
        except PersistenceUnavailableError as e:
            self.logger.error(f"Failed to save graph: {e}")
            return {'success': False, 'error': str(e)}

        return {'success': True, 'path': path}

    def load_graph(self) -> Dict[str, Any]:
        """
        Load the saved graph from disk.

        A missing, unreadable or malformed file leaves the current graph
        unchanged and is reported as an unsuccessful load.

        Returns:
            Dictionary with success flag and stats, message or error
        """
        try:
            snapshot = self.persistence.load_graph()
            if snapshot is None:
                return {'success': False, 'message': 'No saved graph found'}
            self.store.restore(snapshot)
        except (PersistenceUnavailableError, SnapshotParseError) as e:
            self.logger.warning(f"Failed to load graph: {e}")
            return {'success': False, 'error': str(e)}

        return {'success': True, 'stats': self.store.stats()}

    def get_graph_info(self) -> Dict[str, Any]:
        return self.persistence.get_graph_info()

    def backup_graph(self) -> Dict[str, Any]:
        return self.persistence.backup_graph()
