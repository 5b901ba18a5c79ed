"""
JSON utilities for LLM response parsing.

LLM outputs may carry markdown fences, surrounding prose or malformed JSON
(single quotes, trailing commas). Standard json.loads() is tried first and
json-repair is the fallback.
"""

import json
import re
from typing import Any, Dict

from json_repair import repair_json


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response with robust error recovery.

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed dictionary from the JSON

    Raises:
        ValueError: If no valid JSON object can be extracted or repaired

    Example:
        >>> parse_llm_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("{'name': 'test',}")
        {'name': 'test'}
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _extract_json_object(_strip_markdown_blocks(text.strip()))

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError:
        parsed = _repair(json_str, text)

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _repair(json_str: str, original: str) -> Any:
    """Run json-repair and unwrap the shapes it commonly returns."""
    try:
        repaired = repair_json(json_str, return_objects=True)
    except Exception as e:
        raise ValueError(
            f"Failed to parse or repair JSON: {e}\n"
            f"Original text (first 500 chars): {original[:500]}"
        ) from e

    if isinstance(repaired, list):
        # LLM sometimes wraps the object in brackets or emits several objects
        dicts = [item for item in repaired if isinstance(item, dict)]
        if not dicts:
            raise ValueError(f"json_repair returned list of non-dict items: {repaired[:3]}")
        merged: Dict[str, Any] = {}
        for item in dicts:
            merged.update(item)
        return merged
    if isinstance(repaired, str):
        return json.loads(repaired)
    return repaired


def _strip_markdown_blocks(text: str) -> str:
    """Remove ```json / ``` wrappers from text."""
    result = text
    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]
    if result.endswith("```"):
        result = result[:-3]
    return result.strip()


def _extract_json_object(text: str) -> str:
    """
    Extract the JSON object from text that may contain surrounding content.

    Raises:
        ValueError: If no JSON object pattern is found
    """
    text = text.strip()
    if text.startswith("{"):
        return text

    json_match = re.search(r'\{.*\}', text, re.DOTALL)
    if json_match:
        return json_match.group(0)

    raise ValueError(f"No JSON object found in text: {text[:200]}")
