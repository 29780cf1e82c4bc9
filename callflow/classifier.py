"""
Edge classifier.

Assigns each edge a semantic category from its label so the renderer can
color "Yes" paths green and "No" paths red. This is lexical matching on the
lower-cased label, not language understanding.

Rules are evaluated in order and the first match wins:
  1. no label              -> NEUTRAL
  2. positive vocabulary   -> POSITIVE
  3. negative vocabulary   -> NEGATIVE
  4. anything else         -> NEUTRAL

Because positive terms are checked first, a label such as "Not Interested"
(contains "interested") is POSITIVE, and "No Budget" (contains "budget") is
POSITIVE as well.
"""

from typing import Optional

from callflow.graph import Edge, EdgeCategory, Graph

POSITIVE_EXACT = frozenset(["yes"])
POSITIVE_TERMS = (
    "qualified",
    "success",
    "homeowner",
    "valid",
    "has",
    "selected",
    "confirmed",
    "interested",
    "within",
    "budget",
)

NEGATIVE_EXACT = frozenset(["no"])
NEGATIVE_TERMS = (
    "not ",
    "fail",
    "reject",
    "decline",
    "no budget",
    "later",
    "not sure",
)

LABELED_STROKE_WIDTH = 2.5
DEFAULT_STROKE_WIDTH = 2.0


def classify_label(label: Optional[str]) -> EdgeCategory:
    """Classify a raw label string."""
    if not label or not label.strip():
        return EdgeCategory.NEUTRAL

    text = label.strip().lower()

    if text in POSITIVE_EXACT or any(term in text for term in POSITIVE_TERMS):
        return EdgeCategory.POSITIVE

    if text in NEGATIVE_EXACT or any(term in text for term in NEGATIVE_TERMS):
        return EdgeCategory.NEGATIVE

    return EdgeCategory.NEUTRAL


def classify(edge: Edge) -> EdgeCategory:
    """Return the semantic category of an edge."""
    return classify_label(edge.label)


def edge_weight(edge: Edge) -> float:
    """Stroke width for an edge; labeled branches are drawn heavier."""
    return LABELED_STROKE_WIDTH if edge.has_label else DEFAULT_STROKE_WIDTH


def classify_edges(graph: Graph) -> Graph:
    """Return a copy of `graph` whose edges carry their computed category."""
    return graph.with_edges([e.with_category(classify(e)) for e in graph.edges])
