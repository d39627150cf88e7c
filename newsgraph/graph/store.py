"""
Knowledge Graph Store

In-memory store of article nodes, typed relationship edges, and a
bidirectional adjacency index (node id -> incident edge ids).

The store owns all graph mutations and the snapshot shape used by the
persistence layer.
"""

import logging
import threading
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Union

from .models import ArticleNode, Edge, make_edge_id

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = '1.0'


class NodeNotFoundError(Exception):
    """Raised when an edge references a node that is not in the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class SnapshotParseError(Exception):
    """Raised when a persisted graph snapshot is malformed."""
    pass


class GraphStore:
    """
    Article knowledge graph backed by hash maps and set-valued indices.

    Invariants:
    - Node ids are unique; both endpoints must exist before an edge is added
    - Edge ids are derived from (from, type, to), so re-adding a triple
      overwrites instead of duplicating
    - Every edge id in the adjacency index exists in the edge table and is
      registered under both of its endpoints
    """

    def __init__(self):
        self.nodes: Dict[str, ArticleNode] = {}
        self.edges: Dict[str, Edge] = {}
        self.node_edges: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    def add_node(self, article: Union[ArticleNode, Dict[str, Any]]) -> ArticleNode:
        """
        Add or overwrite an article node.

        Existing edges that reference the id are kept.

        Args:
            article: Labelled article dictionary or ArticleNode

        Returns:
            The stored node
        """
        node = article if isinstance(article, ArticleNode) else ArticleNode.from_article(article)

        with self._lock:
            self.nodes[node.id] = node
            self.node_edges.setdefault(node.id, set())

        logger.info(f"Added node: {node.id}")
        return node

    def add_edge(
        self,
        from_id: str,
        to_id: str,
        relationship_type: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Edge:
        """
        Add a typed relationship between two existing nodes.

        Args:
            from_id: Source node id
            to_id: Target node id
            relationship_type: Relationship type, e.g. ``RELATES_TO``
            metadata: Arbitrary edge metadata (strength, shared terms, ...)

        Returns:
            The stored edge

        Raises:
            NodeNotFoundError: If either endpoint does not exist
        """
        edge = Edge(
            from_id=from_id,
            to_id=to_id,
            type=relationship_type,
            metadata=dict(metadata or {})
        )

        with self._lock:
            for node_id in (from_id, to_id):
                if node_id not in self.nodes:
                    logger.error(f"Failed to add relationship {edge.id}: missing node {node_id}")
                    raise NodeNotFoundError(node_id)

            self.edges[edge.id] = edge
            self.node_edges.setdefault(from_id, set()).add(edge.id)
            self.node_edges.setdefault(to_id, set()).add(edge.id)

        logger.info(f"Added relationship: {edge.id}")
        return edge

    def get_node(self, node_id: str) -> Optional[ArticleNode]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def has_edge(self, from_id: str, to_id: str, relationship_type: str) -> bool:
        return make_edge_id(from_id, relationship_type, to_id) in self.edges

    def get_all_nodes(self) -> List[ArticleNode]:
        return list(self.nodes.values())

    def get_neighbor_edges(
        self,
        node_id: str,
        type_filter: Optional[str] = None
    ) -> List[Edge]:
        """
        Get edges incident to a node.

        Args:
            node_id: Node id
            type_filter: Only return edges of this relationship type

        Returns:
            List of edges; empty for unknown nodes
        """
        edge_ids = list(self.node_edges.get(node_id, ()))

        relationships = []
        for edge_id in edge_ids:
            edge = self.edges.get(edge_id)
            if edge is None:
                continue
            if type_filter and edge.type != type_filter:
                continue
            relationships.append(edge)

        return relationships

    def recent_nodes(self, limit: int = 20) -> List[ArticleNode]:
        """
        Get the most recently added nodes.

        Args:
            limit: Maximum number of nodes

        Returns:
            Nodes ordered by ``added_at``, newest first
        """
        if limit <= 0:
            return []
        nodes = list(self.nodes.values())
        nodes.sort(key=lambda node: node.added_at, reverse=True)
        return nodes[:limit]

    def node_count(self) -> int:
        return len(self.nodes)

    def edge_count(self) -> int:
        return len(self.edges)

    def stats(self) -> Dict[str, Any]:
        """
        Get graph statistics.

        Returns:
            Dictionary with node/edge totals and per-type, per-category and
            per-sentiment counts
        """
        nodes = list(self.nodes.values())
        edges = list(self.edges.values())

        category_counts: Counter = Counter()
        sentiment_counts: Counter = Counter()
        for node in nodes:
            category_counts.update(node.values_for('categories'))
            if node.labels is not None and node.labels.sentiment:
                sentiment_counts[node.labels.sentiment] += 1

        return {
            'total_nodes': len(nodes),
            'total_edges': len(edges),
            'relationship_type_counts': dict(Counter(edge.type for edge in edges)),
            'category_counts': dict(category_counts),
            'sentiment_counts': dict(sentiment_counts),
        }

    def clear(self) -> None:
        """Empty nodes, edges and the adjacency index together."""
        with self._lock:
            self.nodes = {}
            self.edges = {}
            self.node_edges = {}

        logger.info("Graph cleared")

    def snapshot(self) -> Dict[str, Any]:
        """
        Produce the persisted snapshot of the graph.

        Returns:
            Snapshot dictionary (version, savedAt, nodes, edges, nodeEdges, stats)
        """
        with self._lock:
            nodes = [[node_id, node.to_dict()] for node_id, node in self.nodes.items()]
            edges = [[edge_id, edge.to_dict()] for edge_id, edge in self.edges.items()]
            node_edges = [
                [node_id, sorted(edge_ids)]
                for node_id, edge_ids in self.node_edges.items()
            ]

        return {
            'version': SNAPSHOT_VERSION,
            'savedAt': datetime.now().isoformat(),
            'nodes': nodes,
            'edges': edges,
            'nodeEdges': node_edges,
            'stats': {
                'nodeCount': len(nodes),
                'edgeCount': len(edges),
            }
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """
        Replace the graph contents with a persisted snapshot.

        The snapshot is fully parsed before anything is swapped in, so a
        malformed snapshot leaves the current graph untouched.

        Args:
            snapshot: Snapshot dictionary as produced by ``snapshot()``

        Raises:
            SnapshotParseError: If the snapshot is malformed
        """
        if not isinstance(snapshot, dict):
            raise SnapshotParseError("Snapshot must be a JSON object")

        try:
            nodes = {}
            for node_id, node_data in snapshot.get('nodes') or []:
                node = ArticleNode.from_dict(node_data)
                if str(node_id) != node.id:
                    raise SnapshotParseError(
                        f"Node key {node_id} does not match node id {node.id}"
                    )
                nodes[node.id] = node

            edges = {}
            for edge_id, edge_data in snapshot.get('edges') or []:
                edge = Edge.from_dict(edge_data)
                if edge.from_id not in nodes or edge.to_id not in nodes:
                    raise SnapshotParseError(
                        f"Edge {edge_id} references a missing node"
                    )
                edges[edge.id] = edge

            node_edges: Dict[str, Set[str]] = {node_id: set() for node_id in nodes}
            for node_id, edge_ids in snapshot.get('nodeEdges') or []:
                if node_id not in node_edges:
                    continue
                # An entry may only list edges that touch its node
                node_edges[node_id].update(
                    e for e in edge_ids
                    if e in edges and node_id in (edges[e].from_id, edges[e].to_id)
                )

        except SnapshotParseError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotParseError(f"Malformed graph snapshot: {e}")

        # Every edge is registered under both endpoints
        for edge_id, edge in edges.items():
            node_edges[edge.from_id].add(edge_id)
            node_edges[edge.to_id].add(edge_id)

        with self._lock:
            self.nodes = nodes
            self.edges = edges
            self.node_edges = node_edges

        logger.info(f"Graph restored: {len(nodes)} nodes, {len(edges)} edges")

    def __repr__(self) -> str:
        return f"GraphStore(nodes={self.node_count()}, edges={self.edge_count()})"
