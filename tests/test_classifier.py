import pytest

from callflow.classifier import (
    DEFAULT_STROKE_WIDTH,
    LABELED_STROKE_WIDTH,
    classify,
    classify_edges,
    classify_label,
    edge_weight,
)
from callflow.graph import Edge, EdgeCategory
from callflow.normalizer import normalize_flow


@pytest.mark.parametrize("label", ["Yes", "yes", " YES ", "Qualified", "Has Budget", "Within 3 months",
                                   "Time Selected", "Valid Project", "Confirmed"])
def test_positive_labels(label):
    assert classify_label(label) == EdgeCategory.POSITIVE


@pytest.mark.parametrize("label", ["No", "no", "Failed check", "Rejected", "Declined offer", "Call back later",
                                   "Not Sure"])
def test_negative_labels(label):
    assert classify_label(label) == EdgeCategory.NEGATIVE


@pytest.mark.parametrize("label", [None, "", "   ", "Maybe", "Transfer", "Option A"])
def test_neutral_labels(label):
    assert classify_label(label) == EdgeCategory.NEUTRAL


def test_positive_vocabulary_wins_over_negative():
    # Both contain a positive term, which is checked first
    assert classify_label("Not Interested") == EdgeCategory.POSITIVE
    assert classify_label("No Budget") == EdgeCategory.POSITIVE


def test_exact_words_do_not_match_inside_other_words():
    # "no" is only negative as a whole label
    assert classify_label("Nope") == EdgeCategory.NEUTRAL
    assert classify_label("Yesterday") == EdgeCategory.NEUTRAL
    assert classify_label("No Times Work") == EdgeCategory.NEUTRAL


def test_classify_is_deterministic():
    edge = Edge(id="e", source_id="a", target_id="b", label="Not Sure / Later")
    assert classify(edge) == classify(edge) == EdgeCategory.NEGATIVE


def test_edge_weight():
    assert edge_weight(Edge(id="e1", source_id="a", target_id="b", label="Yes")) == LABELED_STROKE_WIDTH
    assert edge_weight(Edge(id="e2", source_id="a", target_id="b")) == DEFAULT_STROKE_WIDTH
    assert edge_weight(Edge(id="e3", source_id="a", target_id="b", label="  ")) == DEFAULT_STROKE_WIDTH
    assert LABELED_STROKE_WIDTH > DEFAULT_STROKE_WIDTH


def test_classify_edges_returns_new_graph(homeowner_flow):
    graph = normalize_flow(homeowner_flow)
    classified = classify_edges(graph)

    assert classified is not graph
    assert all(e.category == EdgeCategory.NEUTRAL for e in graph.edges)
    assert [e.category for e in classified.edges] == [
        EdgeCategory.NEUTRAL,
        EdgeCategory.POSITIVE,
        EdgeCategory.NEUTRAL,
        EdgeCategory.NEGATIVE,
    ]
    assert classified.nodes == graph.nodes
