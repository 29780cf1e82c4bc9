"""
Prompt loading for the extraction service.

Prompts are markdown files with optional YAML frontmatter:

  ---
  name: Call Flow Extraction
  temperature: 0.2
  max_tokens: 3000
  model: gpt-4o          # optional, overrides the configured model
  ---
  <prompt body>
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from callflow.paths import get_prompts_dir

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT_FILE = "call_flow_extraction.md"


def parse_prompt_file(path: Path) -> Dict[str, Any]:
    """
    Parse a prompt markdown file with YAML frontmatter.

    Returns dict with:
      - filename, path
      - name: display name (frontmatter or derived from filename)
      - model, temperature, max_tokens: generation overrides (may be None)
      - content: the prompt body (after frontmatter)
    """
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    frontmatter = {}
    body = content

    if content.startswith('---'):
        parts = content.split('---', 2)
        if len(parts) >= 3:
            try:
                frontmatter = yaml.safe_load(parts[1]) or {}
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in {path}: {e}")
            body = parts[2].strip()

    if not isinstance(frontmatter, dict):
        logger.warning(f"Frontmatter in {path} is not a mapping, ignoring it")
        frontmatter = {}

    return {
        'filename': path.name,
        'path': str(path),
        'name': frontmatter.get('name', path.stem.replace('_', ' ').title()),
        'description': frontmatter.get('description', ''),
        'model': frontmatter.get('model'),
        'temperature': frontmatter.get('temperature'),
        'max_tokens': frontmatter.get('max_tokens'),
        'content': body,
    }


def load_extraction_prompt(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the call-flow extraction prompt (bundled copy unless `path` is given)."""
    return parse_prompt_file(path or (get_prompts_dir() / EXTRACTION_PROMPT_FILE))
