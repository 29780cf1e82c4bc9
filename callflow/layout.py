"""
Layered (Sugiyama-style) layout for call-flow graphs, top to bottom.

Pipeline:
  1. Cycle breaking: a DFS from the start node marks back-edges; those are
     left out of ranking but still routed.
  2. Ranking: longest-path layering over the remaining acyclic graph.
  3. Normalization: edges spanning several ranks get one virtual node per
     intermediate rank so they take part in ordering.
  4. Ordering: barycenter sweeps, keeping the ordering with the fewest
     crossings between adjacent ranks.
  5. Coordinates: pack each rank, pull nodes toward their neighbours while
     keeping minimum separation, then shift into the margin box.
  6. Routing metadata: anchors, waypoints, label position and category.

Spacing constants match the dashboard's call-flow view so cached
layouts and fresh layouts look the same.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple

import networkx as nx

from callflow.classifier import classify, edge_weight
from callflow.errors import ValidationError
from callflow.graph import Edge, EdgeCategory, Graph, NodeKind

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# (width, height) per node kind
NODE_SIZES: Dict[NodeKind, Tuple[float, float]] = {
    NodeKind.START: (140.0, 50.0),
    NodeKind.END: (160.0, 50.0),
    NodeKind.DECISION: (220.0, 85.0),
    NodeKind.MESSAGE: (220.0, 75.0),
    NodeKind.ACTION: (200.0, 70.0),
}

RANK_SEP = 120.0
MARGIN_X = 80.0
MARGIN_Y = 60.0

# Horizontal separation shrinks as decisions (and so branches) increase
MIN_NODE_SEP = 120.0
MAX_NODE_SEP = 200.0
NODE_SEP_BUDGET = 1000.0
MIN_DECISION_COUNT = 3

# Width reserved for an edge passing through a rank
VIRTUAL_WIDTH = 20.0

ORDERING_SWEEPS = 8
POSITIONING_SWEEPS = 4


# --- Result types ---

@dataclass(frozen=True)
class NodeBox:
    """Axis-aligned node box; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def top_center(self) -> Point:
        return (self.center_x, self.y)

    @property
    def bottom_center(self) -> Point:
        return (self.center_x, self.y + self.height)

    def overlaps(self, other: "NodeBox") -> bool:
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeBox":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class EdgeRoute:
    """
    Rendering metadata for one edge.

    The engine supplies anchors and waypoints only; curve or orthogonal
    path geometry is left to the renderer.
    """

    edge_id: str
    source_id: str
    target_id: str
    category: EdgeCategory
    stroke_width: float
    label: str
    source_anchor: Point
    target_anchor: Point
    label_position: Point
    points: Tuple[Point, ...] = ()
    is_back_edge: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "source": self.source_id,
            "target": self.target_id,
            "category": self.category.value,
            "stroke_width": self.stroke_width,
            "label": self.label,
            "source_anchor": list(self.source_anchor),
            "target_anchor": list(self.target_anchor),
            "label_position": list(self.label_position),
            "points": [list(p) for p in self.points],
            "is_back_edge": self.is_back_edge,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EdgeRoute":
        return cls(
            edge_id=str(data["edge_id"]),
            source_id=str(data["source"]),
            target_id=str(data["target"]),
            category=EdgeCategory(data["category"]),
            stroke_width=float(data["stroke_width"]),
            label=data.get("label", ""),
            source_anchor=_point(data["source_anchor"]),
            target_anchor=_point(data["target_anchor"]),
            label_position=_point(data["label_position"]),
            points=tuple(_point(p) for p in data.get("points", [])),
            is_back_edge=bool(data.get("is_back_edge", False)),
        )


@dataclass
class LayoutResult:
    node_positions: Dict[str, NodeBox] = field(default_factory=dict)
    edge_routes: Dict[str, EdgeRoute] = field(default_factory=dict)
    ranks: Dict[str, int] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0

    @property
    def back_edges(self) -> List[str]:
        return [eid for eid, route in self.edge_routes.items() if route.is_back_edge]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {nid: box.to_dict() for nid, box in self.node_positions.items()},
            "edges": {eid: route.to_dict() for eid, route in self.edge_routes.items()},
            "ranks": dict(self.ranks),
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutResult":
        return cls(
            node_positions={nid: NodeBox.from_dict(b) for nid, b in data["nodes"].items()},
            edge_routes={eid: EdgeRoute.from_dict(r) for eid, r in data["edges"].items()},
            ranks={nid: int(r) for nid, r in data["ranks"].items()},
            width=float(data["width"]),
            height=float(data["height"]),
        )


def _point(value) -> Point:
    x, y = value
    return (float(x), float(y))


# --- Spacing ---

def node_separation(graph: Graph) -> float:
    """Horizontal gap between neighbouring nodes of the same rank."""
    decisions = len(graph.nodes_of_kind(NodeKind.DECISION))
    return max(MIN_NODE_SEP, min(MAX_NODE_SEP, NODE_SEP_BUDGET / max(decisions, MIN_DECISION_COUNT)))


# --- Ranking ---

def find_back_edges(graph: Graph) -> Tuple[Set[str], List[str]]:
    """
    Depth-first search from the start node, then from any node not yet
    reached, in input order.

    Returns (back_edge_ids, discovery_order). An edge is a back-edge when
    it points at a node still on the DFS stack, at itself, or at the start
    node.
    """
    start = graph.start_node
    start_id = start.id if start else None

    successors: Dict[str, List[Edge]] = {n.id: [] for n in graph.nodes}
    for e in graph.edges:
        successors[e.source_id].append(e)

    roots = ([start_id] if start_id else []) + [nid for nid in graph.node_ids if nid != start_id]
    state: Dict[str, int] = {}  # 1 = on stack, 2 = finished
    back: Set[str] = set()
    discovery: List[str] = []

    for root in roots:
        if root in state:
            continue
        state[root] = 1
        discovery.append(root)
        stack = [(root, iter(successors[root]))]
        while stack:
            node_id, pending = stack[-1]
            for edge in pending:
                target = edge.target_id
                if target == start_id or target == node_id or state.get(target) == 1:
                    back.add(edge.id)
                    continue
                if target not in state:
                    state[target] = 1
                    discovery.append(target)
                    stack.append((target, iter(successors[target])))
                    break
            else:
                state[node_id] = 2
                stack.pop()

    return back, discovery


def assign_ranks(graph: Graph, back_edges: Set[str]) -> Dict[str, int]:
    """Longest-path rank of every node once back-edges are ignored."""
    R = nx.DiGraph()
    R.add_nodes_from(graph.node_ids)
    R.add_edges_from((e.source_id, e.target_id) for e in graph.edges if e.id not in back_edges)

    ranks: Dict[str, int] = {}
    for node_id in nx.topological_sort(R):
        preds = list(R.predecessors(node_id))
        ranks[node_id] = max(ranks[p] + 1 for p in preds) if preds else 0
    return {nid: ranks[nid] for nid in graph.node_ids}


# --- Layering helpers ---

class _Layering:
    """Working state for ordering and positioning (real + virtual nodes)."""

    def __init__(self, graph: Graph, ranks: Dict[str, int], back_edges: Set[str], discovery: List[str]):
        self.rank: Dict[str, int] = dict(ranks)
        self.width: Dict[str, float] = {}
        self.virtual: Set[str] = set()
        self.up: Dict[str, List[str]] = {}
        self.down: Dict[str, List[str]] = {}
        # edge id -> virtual node ids from top to bottom
        self.chains: Dict[str, List[str]] = {}

        for node in graph.nodes:
            self.width[node.id] = NODE_SIZES[node.kind][0]
            self.up[node.id] = []
            self.down[node.id] = []

        for edge in graph.edges:
            if edge.id in back_edges:
                continue
            chain = []
            for r in range(ranks[edge.source_id] + 1, ranks[edge.target_id]):
                vid = f"{edge.id}::{r}"
                self.rank[vid] = r
                self.width[vid] = VIRTUAL_WIDTH
                self.virtual.add(vid)
                self.up[vid] = []
                self.down[vid] = []
                chain.append(vid)
            self.chains[edge.id] = chain

            path = [edge.source_id] + chain + [edge.target_id]
            for u, v in zip(path, path[1:]):
                self.down[u].append(v)
                self.up[v].append(u)

        self.max_rank = max(self.rank.values()) if self.rank else 0
        self.layers = self._initial_order(discovery)

    def _initial_order(self, discovery: List[str]) -> List[List[str]]:
        order_index = {nid: i for i, nid in enumerate(discovery)}
        by_rank: List[List[str]] = [[] for _ in range(self.max_rank + 1)]
        for nid, r in self.rank.items():
            by_rank[r].append(nid)

        layers: List[List[str]] = []
        for r in range(self.max_rank + 1):
            placed: List[str] = []
            seen: Set[str] = set()
            if r > 0:
                for u in layers[r - 1]:
                    for v in self.down[u]:
                        if v not in seen:
                            seen.add(v)
                            placed.append(v)
            rest = sorted(
                (nid for nid in by_rank[r] if nid not in seen),
                key=lambda nid: order_index.get(nid, len(order_index)),
            )
            layers.append(placed + rest)
        return layers

    def crossings(self, layers: List[List[str]]) -> int:
        total = 0
        for r in range(self.max_rank):
            below = {v: i for i, v in enumerate(layers[r + 1])}
            segments = [(i, below[v]) for i, u in enumerate(layers[r]) for v in self.down[u]]
            for a in range(len(segments)):
                u1, v1 = segments[a]
                for b in range(a + 1, len(segments)):
                    u2, v2 = segments[b]
                    if (u1 - u2) * (v1 - v2) < 0:
                        total += 1
        return total

    def gap(self, a: str, b: str, node_sep: float) -> float:
        """Minimum center-to-center distance between neighbours a and b."""
        sep = node_sep if (a not in self.virtual and b not in self.virtual) else node_sep / 2
        return (self.width[a] + self.width[b]) / 2 + sep


def _barycenter_sweep(layers: List[List[str]], neighbours: Dict[str, List[str]], rank_order, step: int) -> None:
    for r in rank_order:
        fixed = {v: i for i, v in enumerate(layers[r - step])}
        keyed = []
        for i, v in enumerate(layers[r]):
            linked = [fixed[n] for n in neighbours[v] if n in fixed]
            center = sum(linked) / len(linked) if linked else float(i)
            keyed.append((center, i, v))
        keyed.sort(key=lambda item: (item[0], item[1]))
        layers[r] = [v for _, _, v in keyed]


def order_layers(layering: _Layering) -> List[List[str]]:
    """Reduce crossings with alternating barycenter sweeps."""
    layers = [list(layer) for layer in layering.layers]
    best = [list(layer) for layer in layers]
    best_crossings = layering.crossings(best)

    for sweep in range(ORDERING_SWEEPS):
        if best_crossings == 0:
            break
        if sweep % 2 == 0:
            _barycenter_sweep(layers, layering.up, range(1, layering.max_rank + 1), 1)
        else:
            _barycenter_sweep(layers, layering.down, range(layering.max_rank - 1, -1, -1), -1)
        crossings = layering.crossings(layers)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings

    return best


def _resolve(layer: List[str], desired: List[float], layering: _Layering, node_sep: float) -> List[float]:
    """Closest positions to `desired` that keep order and minimum gaps."""
    left = list(desired)
    for i in range(1, len(layer)):
        left[i] = max(left[i], left[i - 1] + layering.gap(layer[i - 1], layer[i], node_sep))
    right = list(desired)
    for i in range(len(layer) - 2, -1, -1):
        right[i] = min(right[i], right[i + 1] - layering.gap(layer[i], layer[i + 1], node_sep))
    return [(l + r) / 2 for l, r in zip(left, right)]


def assign_x(layers: List[List[str]], layering: _Layering, node_sep: float) -> Dict[str, float]:
    x: Dict[str, float] = {}
    for layer in layers:
        cursor = 0.0
        for i, v in enumerate(layer):
            if i > 0:
                cursor += layering.gap(layer[i - 1], v, node_sep)
            x[v] = cursor
        # center every rank on the same axis
        shift = cursor / 2
        for v in layer:
            x[v] -= shift

    def pull(rank_order, neighbours):
        for r in rank_order:
            layer = layers[r]
            desired = []
            for v in layer:
                linked = neighbours[v]
                desired.append(sum(x[n] for n in linked) / len(linked) if linked else x[v])
            for v, pos in zip(layer, _resolve(layer, desired, layering, node_sep)):
                x[v] = pos

    for _ in range(POSITIONING_SWEEPS):
        pull(range(1, layering.max_rank + 1), layering.up)
        pull(range(layering.max_rank - 1, -1, -1), layering.down)

    return x


# --- Entry point ---

def layout(graph: Graph) -> LayoutResult:
    """
    Compute node boxes and edge routing metadata for a call-flow graph.

    Pure and deterministic: the same Graph always yields an equal
    LayoutResult. Cycles are tolerated by excluding back-edges from ranking.

    Raises:
        ValidationError: if the graph is empty, has no start node or has
            edges to unknown nodes
    """
    if not graph.nodes:
        raise ValidationError(["Cannot lay out an empty flow"])
    if graph.start_node is None:
        raise ValidationError(["Cannot lay out a flow without a start node"])
    dangling = [
        f"Edge '{e.id}' references unknown node '{ref}'"
        for e in graph.edges
        for ref in (e.source_id, e.target_id)
        if not graph.has_node(ref)
    ]
    if dangling:
        raise ValidationError(dangling)

    back_edges, discovery = find_back_edges(graph)
    if back_edges:
        logger.warning(f"Ignoring {len(back_edges)} back-edge(s) while ranking: {sorted(back_edges)}")
    ranks = assign_ranks(graph, back_edges)

    layering = _Layering(graph, ranks, back_edges, discovery)
    node_sep = node_separation(graph)
    layers = order_layers(layering)
    x = assign_x(layers, layering, node_sep)

    offset = MARGIN_X - min(x[v] - layering.width[v] / 2 for v in x)
    rank_height = max(NODE_SIZES[n.kind][1] for n in graph.nodes)

    def center_y(rank: int) -> float:
        return MARGIN_Y + rank * (rank_height + RANK_SEP) + rank_height / 2

    positions: Dict[str, NodeBox] = {}
    for node in graph.nodes:
        width, height = NODE_SIZES[node.kind]
        cx = x[node.id] + offset
        cy = center_y(ranks[node.id])
        positions[node.id] = NodeBox(
            x=round(cx - width / 2, 2),
            y=round(cy - height / 2, 2),
            width=width,
            height=height,
        )

    routes: Dict[str, EdgeRoute] = {}
    for edge in graph.edges:
        source_anchor = positions[edge.source_id].bottom_center
        target_anchor = positions[edge.target_id].top_center
        waypoints = [
            (round(x[v] + offset, 2), center_y(layering.rank[v]))
            for v in layering.chains.get(edge.id, [])
        ]
        if waypoints:
            label_position = waypoints[len(waypoints) // 2]
        else:
            label_position = (
                (source_anchor[0] + target_anchor[0]) / 2,
                (source_anchor[1] + target_anchor[1]) / 2,
            )
        routes[edge.id] = EdgeRoute(
            edge_id=edge.id,
            source_id=edge.source_id,
            target_id=edge.target_id,
            category=classify(edge),
            stroke_width=edge_weight(edge),
            label=edge.label,
            source_anchor=source_anchor,
            target_anchor=target_anchor,
            label_position=label_position,
            points=tuple([source_anchor] + waypoints + [target_anchor]),
            is_back_edge=edge.id in back_edges,
        )

    width = max(b.x + b.width for b in positions.values()) + MARGIN_X
    height = max(b.y + b.height for b in positions.values()) + MARGIN_Y

    logger.debug(f"Laid out '{graph.title}': {len(positions)} nodes over {max(ranks.values()) + 1} ranks")

    return LayoutResult(
        node_positions=positions,
        edge_routes=routes,
        ranks=ranks,
        width=round(width, 2),
        height=round(height, 2),
    )
