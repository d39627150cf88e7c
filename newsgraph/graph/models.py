"""
Knowledge Graph Data Model

Typed records for article nodes, their AI-derived labels, and the typed
relationship edges between them.

Optional label fields are kept as ``None`` when absent so that "field absent"
and "field present but empty" survive a save/load round trip.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# Serialised (camelCase) name -> attribute name for scalar label fields
_SCALAR_LABEL_FIELDS = {
    'sentiment': 'sentiment',
    'summary': 'summary',
    'contentType': 'content_type',
    'complexity': 'complexity',
    'readingTime': 'reading_time',
}

_LIST_LABEL_FIELDS = ('categories', 'topics', 'keywords')

_ENTITY_FIELDS = ('people', 'organizations', 'locations', 'products')


def _now() -> str:
    return datetime.now().isoformat()


def _optional_list(value: Any) -> Optional[List[str]]:
    """Normalise a label list, keeping ``None`` for absent values."""
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple, set)):
        raise ValueError(f"Label values must be a list, got {type(value).__name__}")
    return [str(item) for item in value if item is not None]


def make_edge_id(from_id: str, relationship_type: str, to_id: str) -> str:
    """
    Build the deterministic edge id for a relationship triple.

    Re-inserting the same triple always yields the same id, which is what
    makes edge creation idempotent.
    """
    return f"{from_id}-{relationship_type}-{to_id}"


@dataclass
class Entities:
    """Named entities mentioned in an article."""
    people: Optional[List[str]] = None
    organizations: Optional[List[str]] = None
    locations: Optional[List[str]] = None
    products: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Entities':
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("Entities must be an object")
        return cls(**{name: _optional_list(data.get(name)) for name in _ENTITY_FIELDS})

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            name: list(getattr(self, name))
            for name in _ENTITY_FIELDS
            if getattr(self, name) is not None
        }


@dataclass
class ArticleLabels:
    """
    AI-derived taxonomy metadata attached to an article.

    Every field is optional. Keys produced by the labelling collaborator that
    are not part of the taxonomy (``labelledAt``, ``modelUsed``, ...) are
    preserved in ``extra``.
    """
    categories: Optional[List[str]] = None
    topics: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    entities: Optional[Entities] = None
    sentiment: Optional[str] = None
    summary: Optional[str] = None
    content_type: Optional[str] = None
    complexity: Optional[str] = None
    reading_time: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ArticleLabels':
        """Build labels from the labelling collaborator's JSON shape."""
        if data is not None and not isinstance(data, dict):
            raise ValueError("Labels must be an object")
        data = dict(data or {})

        labels = cls()
        for name in _LIST_LABEL_FIELDS:
            setattr(labels, name, _optional_list(data.pop(name, None)))

        if 'entities' in data:
            entities = data.pop('entities')
            labels.entities = Entities.from_dict(entities) if entities is not None else None

        for key, attr in _SCALAR_LABEL_FIELDS.items():
            if key in data:
                setattr(labels, attr, data.pop(key))

        labels.extra = data
        return labels

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to camelCase JSON, omitting absent fields."""
        result: Dict[str, Any] = {}

        for name in _LIST_LABEL_FIELDS:
            values = getattr(self, name)
            if values is not None:
                result[name] = list(values)

        if self.entities is not None:
            result['entities'] = self.entities.to_dict()

        for key, attr in _SCALAR_LABEL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value

        result.update(self.extra)
        return result

    def values_for(self, field_name: str) -> List[str]:
        """
        Get the values of a taxonomy field, treating absent as empty.

        Accepts ``categories``, ``topics``, ``keywords`` and dotted entity
        paths such as ``entities.people``.
        """
        if field_name.startswith('entities.'):
            if self.entities is None:
                return []
            return getattr(self.entities, field_name.split('.', 1)[1]) or []
        return getattr(self, field_name) or []


@dataclass
class ArticleNode:
    """A stored article plus its derived metadata."""
    id: str
    title: str = ''
    url: str = ''
    labels: Optional[ArticleLabels] = None
    added_at: str = field(default_factory=_now)

    @classmethod
    def from_article(cls, article: Dict[str, Any]) -> 'ArticleNode':
        """
        Build a node from a labelled article as produced by the labeller.

        Raises:
            ValueError: If the article has no id
        """
        article_id = article.get('id')
        if article_id is None or str(article_id) == '':
            raise ValueError("Article must have an 'id'")

        labels = article.get('labels')
        return cls(
            id=str(article_id),
            title=article.get('title') or '',
            url=article.get('url') or '',
            labels=ArticleLabels.from_dict(labels) if labels is not None else None,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArticleNode':
        """Restore a node from its snapshot form."""
        labels = data.get('labels')
        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            url=data.get('url') or '',
            labels=ArticleLabels.from_dict(labels) if labels is not None else None,
            added_at=data.get('addedAt') or _now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'id': self.id,
            'title': self.title,
            'url': self.url,
        }
        if self.labels is not None:
            result['labels'] = self.labels.to_dict()
        result['addedAt'] = self.added_at
        return result

    def values_for(self, field_name: str) -> List[str]:
        if self.labels is None:
            return []
        return self.labels.values_for(field_name)

    @property
    def summary(self) -> str:
        if self.labels is None:
            return ''
        return self.labels.summary or ''


@dataclass
class Edge:
    """A typed, directed relationship between two article nodes."""
    from_id: str
    to_id: str
    type: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=_now)

    @property
    def id(self) -> str:
        return make_edge_id(self.from_id, self.type, self.to_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Edge':
        """
        Restore an edge from its snapshot form.

        Older snapshots stored metadata flattened onto the edge itself; any
        key that is not a core edge field is folded back into ``metadata``.
        """
        core = {'id', 'from', 'to', 'type', 'metadata', 'createdAt'}
        metadata = dict(data.get('metadata') or {})
        metadata.update({k: v for k, v in data.items() if k not in core})

        return cls(
            from_id=str(data['from']),
            to_id=str(data['to']),
            type=str(data['type']),
            metadata=metadata,
            created_at=data.get('createdAt') or _now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'from': self.from_id,
            'to': self.to_id,
            'type': self.type,
            'metadata': dict(self.metadata),
            'createdAt': self.created_at,
        }
