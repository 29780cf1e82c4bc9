"""
Canonical call-flow graph model.

A Graph is built once by the normalizer and never mutated afterwards.
Classification and layout produce new objects (a classified copy of the
Graph, a LayoutResult) rather than changing nodes or edges in place.

Serialized form (used by the cache):
  {
    "title": "Call Flow",
    "nodes": [{"id", "kind", "label", "auxiliary_text", "outcome"}, ...],
    "edges": [{"id", "source", "target", "label", "category"}, ...]
  }
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

DEFAULT_TITLE = "Call Flow"


class NodeKind(str, Enum):
    START = "start"
    MESSAGE = "message"
    DECISION = "decision"
    ACTION = "action"
    END = "end"


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"


class EdgeCategory(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Node:
    id: str
    kind: NodeKind
    label: str = ""
    auxiliary_text: str = ""
    # Only End nodes carry an outcome
    outcome: Optional[Outcome] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "auxiliary_text": self.auxiliary_text,
            "outcome": self.outcome.value if self.outcome else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        outcome = data.get("outcome")
        return cls(
            id=str(data["id"]),
            kind=NodeKind(data["kind"]),
            label=data.get("label", ""),
            auxiliary_text=data.get("auxiliary_text", ""),
            outcome=Outcome(outcome) if outcome else None,
        )


@dataclass(frozen=True)
class Edge:
    id: str
    source_id: str
    target_id: str
    label: str = ""
    category: EdgeCategory = EdgeCategory.NEUTRAL

    @property
    def has_label(self) -> bool:
        return bool(self.label and self.label.strip())

    def with_category(self, category: EdgeCategory) -> "Edge":
        return replace(self, category=category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source_id,
            "target": self.target_id,
            "label": self.label,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            id=str(data["id"]),
            source_id=str(data["source"]),
            target_id=str(data["target"]),
            label=data.get("label", ""),
            category=EdgeCategory(data.get("category", EdgeCategory.NEUTRAL.value)),
        )


@dataclass(frozen=True)
class Graph:
    """
    Immutable call-flow graph.

    Nodes keep the order they had in the extracted description; layout uses
    that order to break ties, so it must not be re-sorted.
    """

    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...] = ()
    title: str = DEFAULT_TITLE
    _index: Dict[str, Node] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "_index", {n.id: n for n in self.nodes})

    # --- Lookups ---

    def node(self, node_id: str) -> Node:
        """Return the node with the given id; raises KeyError if absent."""
        return self._index[node_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    @property
    def start_node(self) -> Optional[Node]:
        for n in self.nodes:
            if n.kind == NodeKind.START:
                return n
        return None

    def nodes_of_kind(self, kind: NodeKind) -> List[Node]:
        return [n for n in self.nodes if n.kind == kind]

    def outgoing(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source_id == node_id]

    def incoming(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.target_id == node_id]

    def with_edges(self, edges: List[Edge]) -> "Graph":
        """Return a copy of this graph with a replacement edge list."""
        return Graph(nodes=self.nodes, edges=tuple(edges), title=self.title)

    def to_networkx(self) -> nx.DiGraph:
        """
        Build a NetworkX DiGraph view of the structure.

        Node and edge insertion order follows the graph's own order, so
        iteration over successors is deterministic. Parallel edges between
        the same pair collapse into one; the first edge id is kept.
        """
        G = nx.DiGraph()
        for n in self.nodes:
            G.add_node(n.id, kind=n.kind)
        for e in self.edges:
            if not G.has_edge(e.source_id, e.target_id):
                G.add_edge(e.source_id, e.target_id, edge_id=e.id)
        return G

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Graph":
        return cls(
            nodes=tuple(Node.from_dict(n) for n in data["nodes"]),
            edges=tuple(Edge.from_dict(e) for e in data.get("edges", [])),
            title=data.get("title") or DEFAULT_TITLE,
        )
