"""
Graph Persistence

Saves and loads knowledge graph snapshots as a single JSON file, with
atomic writes, file info, and timestamped backups.
"""

import json
import logging
import os
import shutil
import time
from datetime import datetime
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..graph.store import SnapshotParseError

load_dotenv()

logger = logging.getLogger(__name__)


class PersistenceUnavailableError(Exception):
    """Raised when the graph file cannot be read or written."""
    pass


class GraphPersistence:
    """
    JSON file persistence for graph snapshots.

    Features:
    - Atomic save (temporary file + rename)
    - Missing file is reported as "no saved graph", not an error
    - Malformed files raise SnapshotParseError
    - Timestamped backups alongside the graph file
    """

    def __init__(self, graph_file: Optional[str] = None):
        """
        Initialize graph persistence.

        Args:
            graph_file: Path of the graph JSON file (default: from .env)
        """
        self.graph_file = graph_file or os.getenv(
            'GRAPH_FILE_PATH',
            'data/graph/graph.json'
        )
        self.data_dir = os.path.dirname(self.graph_file) or '.'

    def _ensure_data_dir(self) -> None:
        os.makedirs(self.data_dir, exist_ok=True)

    def save_graph(self, snapshot: Dict[str, Any]) -> str:
        """
        Write a graph snapshot to disk atomically.

        Args:
            snapshot: Snapshot dictionary from ``GraphStore.snapshot()``

        Returns:
            Path of the written file

        Raises:
            PersistenceUnavailableError: If the file cannot be written
        """
        temp_path = self.graph_file + '.tmp'

        try:
            self._ensure_data_dir()
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(snapshot, f, indent=2)

            # Atomic rename
            os.replace(temp_path, self.graph_file)

        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise PersistenceUnavailableError(f"Failed to save graph to {self.graph_file}: {e}")

        stats = snapshot.get('stats', {})
        logger.info(
            f"Graph saved: {stats.get('nodeCount', 0)} nodes, "
            f"{stats.get('edgeCount', 0)} edges"
        )
        return self.graph_file

    def load_graph(self) -> Optional[Dict[str, Any]]:
        """
        Read the saved graph snapshot.

        Returns:
            Snapshot dictionary, or None if no graph has been saved

        Raises:
            PersistenceUnavailableError: If the file exists but cannot be read
            SnapshotParseError: If the file is not a valid snapshot
        """
        if not self.graph_exists():
            logger.info("No saved graph found, starting fresh")
            return None

        try:
            with open(self.graph_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotParseError(f"Invalid graph file {self.graph_file}: {e}")
        except OSError as e:
            raise PersistenceUnavailableError(f"Failed to read graph from {self.graph_file}: {e}")

        if not isinstance(data, dict):
            raise SnapshotParseError(f"Invalid graph file {self.graph_file}: not a JSON object")

        logger.info(
            f"Graph file read: {len(data.get('nodes') or [])} nodes, "
            f"{len(data.get('edges') or [])} edges from {data.get('savedAt', 'unknown')}"
        )
        return data

    def graph_exists(self) -> bool:
        return os.path.isfile(self.graph_file)

    def get_graph_info(self) -> Dict[str, Any]:
        """
        Get information about the saved graph file.

        Returns:
            Dictionary with exists flag and, when present, path, size,
            modification time, savedAt and node/edge counts
        """
        if not self.graph_exists():
            return {'exists': False}

        try:
            stat = os.stat(self.graph_file)
            with open(self.graph_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            stats = data.get('stats') or {}
            return {
                'exists': True,
                'path': self.graph_file,
                'size': stat.st_size,
                'modified': datetime.fromtimestamp(stat.st_mtime).isoformat(),
                'saved_at': data.get('savedAt'),
                'node_count': stats.get('nodeCount', 0),
                'edge_count': stats.get('edgeCount', 0),
            }

        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Failed to get graph info: {e}")
            return {'exists': False, 'error': str(e)}

    def backup_graph(self) -> Dict[str, Any]:
        """
        Copy the saved graph to a timestamped backup file.

        Returns:
            Dictionary with success flag and backup_file or error
        """
        if not self.graph_exists():
            return {'success': False, 'error': 'No graph to backup'}

        backup_file = os.path.join(
            self.data_dir,
            f"graph-backup-{int(time.time() * 1000)}.json"
        )

        try:
            shutil.copyfile(self.graph_file, backup_file)
        except OSError as e:
            logger.error(f"Failed to backup graph: {e}")
            return {'success': False, 'error': str(e)}

        logger.info(f"Graph backed up to: {backup_file}")
        return {'success': True, 'backup_file': backup_file}

    def delete_graph(self) -> bool:
        """
        Delete the saved graph file.

        Returns:
            True if a file was deleted
        """
        try:
            os.remove(self.graph_file)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete graph: {e}")
            return False

        logger.info("Saved graph deleted")
        return True

    def __repr__(self) -> str:
        return f"GraphPersistence(graph_file={self.graph_file!r})"
