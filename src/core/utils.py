"""Shared utility functions for OratoriaFlow."""

import json
import re


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON from LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def parse_json_reply(text: str) -> dict:
    """Parse a model reply that should contain a single JSON object.

    Raises:
        ValueError: If the reply is not a JSON object.
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
