"""
Call-flow diagram engine.

Normalizes an extracted call-flow description into a typed graph, lays it
out top to bottom, and caches the result by a hash of the source text.
"""

__version__ = "0.1.0"

from callflow.errors import (
    CacheReadError,
    CacheWriteError,
    CallFlowError,
    ExtractionError,
    ValidationError,
)
from callflow.graph import Edge, EdgeCategory, Graph, Node, NodeKind, Outcome
from callflow.normalizer import normalize, normalize_flow
from callflow.classifier import classify, classify_edges
from callflow.layout import EdgeRoute, LayoutResult, NodeBox, layout
from callflow.cache import CacheEntry, FlowCache, compute_hash

__all__ = [
    'CacheEntry',
    'CacheReadError',
    'CacheWriteError',
    'CallFlowError',
    'Edge',
    'EdgeCategory',
    'EdgeRoute',
    'ExtractionError',
    'FlowCache',
    'Graph',
    'LayoutResult',
    'Node',
    'NodeBox',
    'NodeKind',
    'Outcome',
    'ValidationError',
    'classify',
    'classify_edges',
    'compute_hash',
    'layout',
    'normalize',
    'normalize_flow',
]
