"""
Flow extraction.

Sends the YAML-configured extraction prompt, followed by the agent's
system prompt, to the OpenAI chat completions API and parses the reply
into a raw {title, nodes, edges} dict. Markdown code fences around the
JSON are stripped; an empty or non-object reply raises ExtractionError.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from openai import OpenAI

from callflow.config import get_api_key, get_model
from callflow.errors import ExtractionError
from callflow.prompts import load_extraction_prompt

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 3000

_FENCE_START = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_END.sub("", _FENCE_START.sub("", cleaned))
    return cleaned.strip()


def parse_flow_reply(content: Optional[str]) -> Dict[str, Any]:
    """Parse the model's reply into the raw `{title, nodes, edges}` object."""
    if not content or not content.strip():
        raise ExtractionError("OpenAI returned empty content")

    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Failed to parse AI response as JSON: {e}") from e

    if not isinstance(data, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class FlowExtractor:
    """
    Extracts a raw call-flow description from an agent's system prompt
    with the OpenAI chat completions API.
    """

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None, prompt: Optional[Dict[str, Any]] = None):
        self._client = client
        self.prompt = prompt or load_extraction_prompt()
        self.model = model or self.prompt.get('model') or get_model()
        self.temperature = self.prompt.get('temperature')
        if self.temperature is None:
            self.temperature = DEFAULT_TEMPERATURE
        self.max_tokens = self.prompt.get('max_tokens') or DEFAULT_MAX_TOKENS

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = get_api_key()
            if not api_key:
                raise ExtractionError("OpenAI API key not configured.")
            self._client = OpenAI(api_key=api_key)
        return self._client

    def build_messages(self, source_text: str):
        return [{"role": "user", "content": self.prompt['content'] + "\n\n" + source_text}]

    def extract(self, source_text: str) -> Dict[str, Any]:
        """
        Ask the model for the call flow behind `source_text`.

        Returns:
            The raw `{title, nodes, edges}` dict, not yet normalized.

        Raises:
            ExtractionError: if the reply is empty or not a JSON object
        """
        logger.info(f"Requesting call-flow extraction from {self.model} ({len(source_text)} chars)")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(source_text),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            raise ExtractionError("OpenAI returned empty choices")

        content = response.choices[0].message.content
        logger.debug(f"Received response: {content[:200]}..." if content and len(content) > 200 else f"Received response: {content}")

        data = parse_flow_reply(content)
        logger.info(f"Extracted call flow '{data.get('title', '')}'")
        return data
