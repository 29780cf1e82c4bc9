"""
Render-option builders for laid-out call flows.

The engine does not draw anything itself. This module turns a Graph plus
its LayoutResult into:
- an ECharts-compatible option dict (fixed coordinates, layout "none")
- a Graphviz Digraph with pinned node positions

Colors follow the dashboard palette:
- nodes are colored by kind; end nodes by outcome (green success, red otherwise)
- edges are colored by category; unlabeled edges are gray, labeled neutral
  edges violet
"""

from typing import Any, Dict, Optional

from graphviz import Digraph

from callflow.graph import EdgeCategory, Graph, Node, NodeKind, Outcome
from callflow.layout import EdgeRoute, LayoutResult
from callflow.utils import darken_hex, hex_to_rgba, lighten_hex

NODE_COLORS = {
    NodeKind.START: "#10b981",
    NodeKind.MESSAGE: "#3b82f6",
    NodeKind.DECISION: "#f59e0b",
    NodeKind.ACTION: "#8b5cf6",
}
END_COLORS = {
    Outcome.SUCCESS: "#10b981",
    Outcome.FAILURE: "#ef4444",
    Outcome.NEUTRAL: "#ef4444",
}

NODE_SYMBOLS = {
    NodeKind.START: "roundRect",
    NodeKind.END: "roundRect",
    NodeKind.MESSAGE: "rect",
    NodeKind.DECISION: "diamond",
    NodeKind.ACTION: "rect",
}

DOT_SHAPES = {
    NodeKind.START: "oval",
    NodeKind.END: "oval",
    NodeKind.MESSAGE: "box",
    NodeKind.DECISION: "diamond",
    NodeKind.ACTION: "box",
}

# (dark mode, light mode)
EDGE_COLORS = {
    EdgeCategory.POSITIVE: ("#22c55e", "#16a34a"),
    EdgeCategory.NEGATIVE: ("#ef4444", "#dc2626"),
    EdgeCategory.NEUTRAL: ("#8b5cf6", "#7c3aed"),
}
UNLABELED_EDGE_COLOR = ("#6b7280", "#9ca3af")

# Graphviz works in points; layout units are pixels
POINTS_PER_PIXEL = 0.75


def node_color(node: Node) -> str:
    if node.kind == NodeKind.END:
        return END_COLORS[node.outcome or Outcome.NEUTRAL]
    return NODE_COLORS[node.kind]


def edge_color(route: EdgeRoute, dark_mode: bool = True) -> str:
    """Stroke color for an edge route in the chosen theme."""
    pair = EDGE_COLORS[route.category] if route.label else UNLABELED_EDGE_COLOR
    return pair[0] if dark_mode else pair[1]


class FlowGraphVisualizer:
    """
    Build renderer configurations for a laid-out call flow.

    Node input is the canonical Graph; positions and edge styling come from
    the LayoutResult so the renderer never has to re-run the layout.
    """

    def __init__(self, dark_mode: bool = True):
        self.dark_mode = dark_mode

    def _node_entry(self, node: Node, result: LayoutResult) -> Dict[str, Any]:
        box = result.node_positions[node.id]
        color = node_color(node)
        text_color = "#111827" if node.kind == NodeKind.DECISION else "#ffffff"
        return {
            "id": node.id,
            "name": node.label or node.id,
            # ECharts positions symbols by their center
            "x": box.center_x,
            "y": box.center_y,
            "symbol": NODE_SYMBOLS[node.kind],
            "symbolSize": [box.width, box.height],
            "itemStyle": {
                "color": color,
                "borderColor": lighten_hex(color, 0.3),
                "borderWidth": 2,
            },
            "label": {
                "show": True,
                "color": text_color,
                "formatter": node.label or node.id,
            },
            "kind": node.kind.value,
            "auxiliary_text": node.auxiliary_text,
            "outcome": node.outcome.value if node.outcome else None,
            "rank": result.ranks.get(node.id),
        }

    def _link_entry(self, route: EdgeRoute) -> Dict[str, Any]:
        color = edge_color(route, self.dark_mode)
        line_style = {
            "color": color,
            "width": route.stroke_width,
            "opacity": 1.0,
            "curveness": 0.3 if route.is_back_edge else 0,
        }
        if route.is_back_edge:
            line_style["type"] = "dashed"

        link = {
            "source": route.source_id,
            "target": route.target_id,
            "category": route.category.value,
            "lineStyle": line_style,
            "symbol": ["none", "arrow"],
            "symbolSize": [0, 12],
        }
        if route.label:
            link["label"] = {
                "show": True,
                "formatter": route.label.upper(),
                "fontWeight": "bold",
                "fontSize": 11,
                "color": "#ffffff" if self.dark_mode else "#1f2937",
                "backgroundColor": hex_to_rgba(color, 0.95),
                "padding": [5, 10],
                "borderRadius": 6,
            }
        return link

    def generate_echarts(self, graph: Graph, result: LayoutResult) -> Dict[str, Any]:
        """
        Given a graph and its layout, construct the ECharts option dict.
        """
        data = [self._node_entry(node, result) for node in graph.nodes]
        links = [self._link_entry(result.edge_routes[edge.id]) for edge in graph.edges]

        return {
            "title": {"text": graph.title},
            "series": [
                {
                    "type": "graph",
                    "layout": "none",
                    "roam": True,
                    "draggable": True,
                    "data": data,
                    "links": links,
                    "emphasis": {"focus": "adjacency"},
                }
            ],
        }

    def generate_dot(self, graph: Graph, result: LayoutResult, name: Optional[str] = None) -> Digraph:
        """
        Graphviz representation with positions pinned (honored by neato/fdp).
        Graphviz's y axis points up, so y is negated.
        """
        dot = Digraph(name=name or "call_flow", comment=graph.title)
        dot.attr(rankdir="TB", splines="spline", label=graph.title, labelloc="t")

        for node in graph.nodes:
            box = result.node_positions[node.id]
            color = node_color(node)
            dot.node(
                node.id,
                label=node.label or node.id,
                shape=DOT_SHAPES[node.kind],
                style="filled",
                fillcolor=color,
                color=darken_hex(color, 0.2),
                width=f"{box.width / 96:.2f}",
                height=f"{box.height / 96:.2f}",
                fixedsize="true",
                pos=f"{box.center_x * POINTS_PER_PIXEL:.1f},{-box.center_y * POINTS_PER_PIXEL:.1f}!",
            )

        for edge in graph.edges:
            route = result.edge_routes[edge.id]
            attrs = {
                "color": edge_color(route, self.dark_mode),
                "penwidth": str(route.stroke_width),
            }
            if route.label:
                attrs["label"] = route.label
            if route.is_back_edge:
                attrs["style"] = "dashed"
                attrs["constraint"] = "false"
            dot.edge(edge.source_id, edge.target_id, **attrs)

        return dot


def build_echarts_option(graph: Graph, result: LayoutResult, dark_mode: bool = True) -> Dict[str, Any]:
    return FlowGraphVisualizer(dark_mode=dark_mode).generate_echarts(graph, result)


def build_dot(graph: Graph, result: LayoutResult, dark_mode: bool = True) -> Digraph:
    return FlowGraphVisualizer(dark_mode=dark_mode).generate_dot(graph, result)
