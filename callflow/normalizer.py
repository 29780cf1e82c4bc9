"""
Normalizer: raw extraction output -> canonical Graph.

The text-generation service returns loosely-typed JSON:

  {
    "title": "...",
    "nodes": [{"id", "type", "label", "content"?, "question"?,
               "condition"?, "description"?, "outcome"?}, ...],
    "edges": [{"source", "target", "label"?}, ...]
  }

All type aliases are folded into NodeKind here ("question" and "condition"
become DECISION). Nothing downstream looks at the raw type string again.

Structural problems (no Start, several Starts, duplicate ids, dangling edge
references) raise ValidationError. Soft problems are only logged.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence

import networkx as nx

from callflow.errors import ValidationError
from callflow.graph import DEFAULT_TITLE, Edge, Graph, Node, NodeKind, Outcome

logger = logging.getLogger(__name__)

KIND_ALIASES = {
    "start": NodeKind.START,
    "end": NodeKind.END,
    "message": NodeKind.MESSAGE,
    "decision": NodeKind.DECISION,
    "question": NodeKind.DECISION,
    "condition": NodeKind.DECISION,
    "action": NodeKind.ACTION,
}

# Kind used when the generator emits a type we do not know
FALLBACK_KIND = NodeKind.MESSAGE

# Raw fields that may carry a node's auxiliary text, in fallback order
AUXILIARY_FIELDS = ("content", "question", "condition", "description")


def _text(value: Any) -> str:
    """Coerce an optional raw value to a stripped string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def resolve_kind(raw_type: Any) -> Optional[NodeKind]:
    """Map a raw type tag (any case) to a NodeKind, or None if unknown."""
    return KIND_ALIASES.get(_text(raw_type).lower())


def _auxiliary_text(raw: Mapping[str, Any], raw_type: str, kind: NodeKind) -> str:
    if kind == NodeKind.MESSAGE:
        preferred = ["content"]
    elif kind == NodeKind.DECISION:
        # A "condition" node keeps its condition ahead of any question text
        preferred = ["condition", "question"] if raw_type == "condition" else ["question", "condition"]
    elif kind == NodeKind.ACTION:
        preferred = ["description"]
    else:
        preferred = []

    for key in list(preferred) + [k for k in AUXILIARY_FIELDS if k not in preferred]:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def _outcome(raw_outcome: Any) -> Outcome:
    try:
        return Outcome(_text(raw_outcome).lower())
    except ValueError:
        return Outcome.NEUTRAL


def _normalize_node(raw: Mapping[str, Any], index: int, problems: List[str]) -> Optional[Node]:
    node_id = _text(raw.get("id"))
    if not node_id:
        problems.append(f"Node #{index} has no id")
        return None

    raw_type = _text(raw.get("type")).lower()
    kind = resolve_kind(raw_type)
    if kind is None:
        logger.warning(f"Node '{node_id}' has unknown type '{raw_type}', treating it as {FALLBACK_KIND.value}")
        kind = FALLBACK_KIND

    return Node(
        id=node_id,
        kind=kind,
        label=_text(raw.get("label")),
        auxiliary_text=_auxiliary_text(raw, raw_type, kind),
        outcome=_outcome(raw.get("outcome")) if kind == NodeKind.END else None,
    )


def normalize(
    raw_nodes: Sequence[Mapping[str, Any]],
    raw_edges: Sequence[Mapping[str, Any]],
    title: Optional[str] = None,
) -> Graph:
    """
    Build a validated Graph from raw node and edge descriptions.

    Raises:
        ValidationError: listing every structural problem found
    """
    if not isinstance(raw_nodes, (list, tuple)):
        raise ValidationError(["Flow 'nodes' must be a list"])
    if raw_edges is None:
        raw_edges = []
    if not isinstance(raw_edges, (list, tuple)):
        raise ValidationError(["Flow 'edges' must be a list"])

    problems: List[str] = []
    nodes: List[Node] = []
    seen_ids = set()

    for index, raw in enumerate(raw_nodes):
        if not isinstance(raw, Mapping):
            problems.append(f"Node #{index} is not an object")
            continue
        node = _normalize_node(raw, index, problems)
        if node is None:
            continue
        if node.id in seen_ids:
            problems.append(f"Duplicate node id '{node.id}'")
            continue
        seen_ids.add(node.id)
        nodes.append(node)

    starts = [n for n in nodes if n.kind == NodeKind.START]
    if not starts:
        problems.append("Flow has no start node")
    elif len(starts) > 1:
        problems.append("Flow has more than one start node: " + ", ".join(f"'{n.id}'" for n in starts))

    edges: List[Edge] = []
    for index, raw in enumerate(raw_edges):
        if not isinstance(raw, Mapping):
            problems.append(f"Edge #{index} is not an object")
            continue
        source = _text(raw.get("source"))
        target = _text(raw.get("target"))
        if not source or not target:
            problems.append(f"Edge #{index} is missing its source or target")
            continue
        for end, ref in (("source", source), ("target", target)):
            if ref not in seen_ids:
                problems.append(f"Edge #{index} references unknown {end} node '{ref}'")
        edges.append(Edge(id=f"edge-{index}", source_id=source, target_id=target, label=_text(raw.get("label"))))

    if problems:
        raise ValidationError(problems)

    graph = Graph(nodes=tuple(nodes), edges=tuple(edges), title=_text(title) or DEFAULT_TITLE)

    for warning in find_soft_violations(graph):
        logger.warning(warning)

    return graph


def normalize_flow(flow: Mapping[str, Any]) -> Graph:
    """Normalize a complete `{title, nodes, edges}` extraction result."""
    if not isinstance(flow, Mapping):
        raise ValidationError(["Flow description must be a JSON object"])
    return normalize(flow.get("nodes"), flow.get("edges"), title=flow.get("title"))


def find_soft_violations(graph: Graph) -> List[str]:
    """
    Return messages for structural problems that are tolerated.

    These never stop normalization or layout: a decision with a single
    branch, a flow with no end node, an unreachable step, or a loop.
    """
    warnings: List[str] = []

    if not graph.nodes_of_kind(NodeKind.END):
        warnings.append("Flow has no end node")

    for node in graph.nodes:
        if node.kind == NodeKind.DECISION:
            count = len(graph.outgoing(node.id))
            if count < 2:
                warnings.append(f"Decision '{node.id}' has {count} outgoing edge(s), expected at least 2")
        if node.kind != NodeKind.START and not graph.incoming(node.id):
            warnings.append(f"Node '{node.id}' has no incoming edge")

    G = graph.to_networkx()
    if not nx.is_directed_acyclic_graph(G):
        cycle = nx.find_cycle(G)
        path = " -> ".join([u for u, _ in cycle] + [cycle[-1][1]])
        warnings.append(f"Flow contains a cycle: {path}")

    return warnings

