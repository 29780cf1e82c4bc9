"""
Call-flow visualizer service.

Ties the pieces together for one subject (agent):

  source text --hash--> cache hit? ----------------------------> FlowView
                  |no (or forced)
                  v
             extractor -> normalize -> layout -> cache.put ----> FlowView

The cache is written only after a complete, successful layout, so an
abandoned or failed regeneration never leaves a partial entry behind.
A failed cache write is logged and the fresh result is still returned.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from callflow.cache import FlowCache, compute_hash
from callflow.classifier import classify_edges
from callflow.errors import CacheWriteError
from callflow.extractor import FlowExtractor
from callflow.graph import Graph
from callflow.layout import LayoutResult, layout
from callflow.normalizer import normalize_flow
from callflow.storage import create_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowView:
    """Everything the renderer needs for one diagram."""

    subject_id: str
    input_hash: str
    graph: Graph
    layout: LayoutResult
    used_cache: bool

    @property
    def title(self) -> str:
        return self.graph.title


class CallFlowVisualizer:
    """
    Produces laid-out call-flow diagrams, reusing cached results when the
    subject's source text is unchanged.

    Not safe for concurrent regeneration of the same subject: the last
    writer wins.
    """

    def __init__(self, extractor, cache: FlowCache):
        """
        Args:
            extractor: object with `extract(source_text) -> dict` (see FlowExtractor)
            cache: FlowCache over the configured store
        """
        self.extractor = extractor
        self.cache = cache

    def visualize(self, subject_id: str, source_text: str, force_regenerate: bool = False) -> FlowView:
        """
        Return the diagram for `subject_id`'s current `source_text`.

        Args:
            subject_id: agent/configuration identifier, the cache key
            source_text: free-text configuration (the agent's system prompt)
            force_regenerate: skip the cache read; the result is still cached

        Raises:
            ValueError: if `source_text` is blank
            ValidationError: if the extracted flow is malformed (nothing is cached)
            ExtractionError: if the extraction reply is unusable
        """
        if not source_text or not source_text.strip():
            raise ValueError("No system prompt provided")

        input_hash = compute_hash(source_text)

        if not force_regenerate:
            entry = self.cache.get(subject_id, input_hash)
            if entry is not None:
                logger.info(f"Using cached call flow for {subject_id}")
                return FlowView(subject_id, input_hash, entry.graph, entry.layout, used_cache=True)
        else:
            logger.info(f"Forced regeneration of call flow for {subject_id}")

        raw_flow = self.extractor.extract(source_text)
        graph, result = self.build(raw_flow)

        try:
            self.cache.put(subject_id, input_hash, graph, result)
        except CacheWriteError as e:
            logger.warning(f"Could not cache call flow for {subject_id}: {e}")

        return FlowView(subject_id, input_hash, graph, result, used_cache=False)

    @staticmethod
    def build(raw_flow: Dict[str, Any]):
        """Normalize, classify and lay out a raw extraction result."""
        graph = classify_edges(normalize_flow(raw_flow))
        return graph, layout(graph)

    def invalidate(self, subject_id: str) -> None:
        self.cache.invalidate(subject_id)


def create_visualizer(store=None, extractor=None) -> CallFlowVisualizer:
    """Wire a visualizer from configuration, overriding parts as given."""
    return CallFlowVisualizer(
        extractor=extractor or FlowExtractor(),
        cache=FlowCache(store if store is not None else create_store()),
    )
