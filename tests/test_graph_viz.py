import pytest
from callflow.graph_viz import (
    EDGE_COLORS,
    UNLABELED_EDGE_COLOR,
    FlowGraphVisualizer,
    build_dot,
    build_echarts_option,
    node_color,
)
from callflow.classifier import classify_edges
from callflow.graph import EdgeCategory, NodeKind
from callflow.layout import layout
from callflow.normalizer import normalize, normalize_flow


def find_link(links, src, tgt):
    for l in links:
        if l.get("source") == src and l.get("target") == tgt:
            return l
    return None


@pytest.fixture
def homeowner(homeowner_flow):
    graph = classify_edges(normalize_flow(homeowner_flow))
    return graph, layout(graph)


def test_nodes_placed_at_box_centers(homeowner):
    graph, result = homeowner
    option = build_echarts_option(graph, result)
    series = option["series"][0]

    assert option["title"]["text"] == "Homeowner Qualification"
    assert series["type"] == "graph"
    assert series["layout"] == "none"
    assert len(series["data"]) == len(graph.nodes)

    for entry in series["data"]:
        box = result.node_positions[entry["id"]]
        assert entry["x"] == box.center_x
        assert entry["y"] == box.center_y
        assert entry["symbolSize"] == [box.width, box.height]
        assert entry["rank"] == result.ranks[entry["id"]]


def test_node_colors_and_symbols(homeowner):
    graph, result = homeowner
    data = {d["id"]: d for d in build_echarts_option(graph, result)["series"][0]["data"]}

    assert data["ask-homeowner"]["symbol"] == "diamond"
    assert data["start"]["symbol"] == "roundRect"
    # success and failure outcomes are visually distinct
    assert data["end-booked"]["itemStyle"]["color"] != data["end-not-homeowner"]["itemStyle"]["color"]
    assert data["end-booked"]["outcome"] == "success"
    assert data["ask-homeowner"]["auxiliary_text"] == "Are you the homeowner?"


def test_edge_colors_follow_category(homeowner):
    graph, result = homeowner
    links = build_echarts_option(graph, result, dark_mode=True)["series"][0]["links"]

    yes_link = find_link(links, "ask-homeowner", "book")
    no_link = find_link(links, "ask-homeowner", "end-not-homeowner")
    plain_link = find_link(links, "start", "ask-homeowner")

    assert yes_link["lineStyle"]["color"] == EDGE_COLORS[EdgeCategory.POSITIVE][0]
    assert no_link["lineStyle"]["color"] == EDGE_COLORS[EdgeCategory.NEGATIVE][0]
    assert plain_link["lineStyle"]["color"] == UNLABELED_EDGE_COLOR[0]
    assert yes_link["lineStyle"]["width"] == 2.5
    assert plain_link["lineStyle"]["width"] == 2.0


def test_light_mode_palette(homeowner):
    graph, result = homeowner
    links = build_echarts_option(graph, result, dark_mode=False)["series"][0]["links"]
    yes_link = find_link(links, "ask-homeowner", "book")
    assert yes_link["lineStyle"]["color"] == EDGE_COLORS[EdgeCategory.POSITIVE][1]


def test_edge_labels(homeowner):
    graph, result = homeowner
    links = build_echarts_option(graph, result)["series"][0]["links"]

    assert find_link(links, "ask-homeowner", "book")["label"]["formatter"] == "YES"
    assert find_link(links, "ask-homeowner", "end-not-homeowner")["label"]["formatter"] == "NO"
    assert "label" not in find_link(links, "start", "ask-homeowner")


def test_back_edges_are_dashed():
    graph = normalize(
        [{"id": "s", "type": "start"}, {"id": "a", "type": "message"}, {"id": "e", "type": "end"}],
        [
            {"source": "s", "target": "a"},
            {"source": "a", "target": "e"},
            {"source": "e", "target": "a", "label": "Retry"},
        ],
    )
    links = FlowGraphVisualizer().generate_echarts(graph, layout(graph))["series"][0]["links"]

    back = find_link(links, "e", "a")
    assert back["lineStyle"]["type"] == "dashed"
    assert back["lineStyle"]["curveness"] > 0
    assert "type" not in find_link(links, "s", "a")["lineStyle"]


def test_end_node_colors(homeowner):
    graph, _ = homeowner
    assert node_color(graph.node("end-booked")) == "#10b981"
    assert node_color(graph.node("end-not-homeowner")) == "#ef4444"
    assert graph.node("book").kind == NodeKind.ACTION


def test_dot_output(homeowner):
    graph, result = homeowner
    dot = build_dot(graph, result)
    source = dot.source

    assert source.startswith("// Homeowner Qualification")
    assert "digraph call_flow" in source
    for node in graph.nodes:
        assert node.id in source
    assert "shape=diamond" in source
    assert "label=Yes" in source
    start = result.node_positions["start"]
    assert f'pos="{start.center_x * 0.75:.1f},{-start.center_y * 0.75:.1f}!"' in source


def test_color_helpers():
    from callflow.utils import darken_hex, hex_to_rgba, lighten_hex

    assert lighten_hex("#000000", 0.5) == "#7f7f7f"
    assert lighten_hex("#10b981", 0) == "#10b981"
    assert darken_hex("#ffffff", 1) == "#000000"
    assert hex_to_rgba("#22c55e", 0.95) == "rgba(34, 197, 94, 0.95)"
