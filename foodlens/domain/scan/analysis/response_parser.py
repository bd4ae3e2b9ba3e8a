"""
Response parsing for analysis replies.

Turns free model text (possibly wrapped in prose or code fences) into a
validated, markdown-free AnalysisResult. Pure: no I/O, no clock.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

import structlog
from pydantic import ValidationError

from foodlens.domain.scan.analysis.models import AnalysisResult, NutriScore
from foodlens.domain.shared.errors import (
    InvalidScoreError,
    NoJsonFoundError,
    SchemaMismatchError,
)
from foodlens.domain.shared.markdown import strip_markdown

logger = structlog.get_logger(__name__)

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```\s*$")

# (python name, wire name) of fields the reply must carry
_REQUIRED_FIELDS = [
    ("nutri_score", "nutriScore"),
    ("analysis_points", "analysisPoints"),
    ("citations", "citations"),
]

_EXPECTED_POINTS = range(3, 6)


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence.

    Example:
        >>> strip_code_fences('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json_object(text: str) -> str:
    """Slice from the first ``{`` to the last ``}``.

    Raises:
        NoJsonFoundError: If either brace is missing
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonFoundError(f"No JSON object in model response: {text[:120]!r}")
    return text[start : end + 1]


def _pick(payload: dict[str, Any], name: str, alias: str) -> Any:
    if alias in payload:
        return payload[alias]
    return payload.get(name)


def _clean_list(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    cleaned = [strip_markdown(value) for value in values]
    return [value for value in cleaned if value]


def parse_analysis_response(text: str) -> AnalysisResult:
    """Parse a model reply into an AnalysisResult.

    Steps:
    1. strip code fences
    2. slice the outermost JSON object
    3. decode and check required fields
    4. validate and canonicalize nutriScore
    5. strip markdown from every free-text field

    Args:
        text: Raw candidate text from the inference service

    Returns:
        Validated AnalysisResult

    Raises:
        NoJsonFoundError: No ``{...}`` in the text
        SchemaMismatchError: JSON malformed or not the expected shape
        InvalidScoreError: nutriScore outside A-E

    Example:
        >>> result = parse_analysis_response(
        ...     '```json\\n{"nutriScore":"e","analysisPoints":["**High** sugar"],'
        ...     '"citations":[]}\\n```'
        ... )
        >>> result.nutri_score.value, result.analysis_points
        ('E', ['High sugar'])
    """
    body = extract_json_object(strip_code_fences(text))

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise SchemaMismatchError(f"Malformed JSON in model response: {e}") from e

    if not isinstance(payload, dict):
        raise SchemaMismatchError("Model response JSON is not an object")

    missing = [alias for name, alias in _REQUIRED_FIELDS if _pick(payload, name, alias) is None]
    if missing:
        raise SchemaMismatchError(f"Missing required fields: {', '.join(missing)}")

    try:
        score = NutriScore.parse(_pick(payload, "nutri_score", "nutriScore"))
    except ValueError as e:
        raise InvalidScoreError(str(e)) from e

    data = {key: value for key, value in payload.items() if key != "nutri_score"}
    data["nutriScore"] = score

    try:
        raw = AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise SchemaMismatchError(f"Model response does not match schema: {e}") from e

    points = _clean_list(raw.analysis_points) or []
    if not points:
        raise SchemaMismatchError("analysisPoints is empty after cleanup")

    product_name = strip_markdown(raw.product_name) if raw.product_name else None

    result = AnalysisResult(
        nutri_score=raw.nutri_score,
        analysis_points=points,
        citations=_clean_list(raw.citations) or [],
        product_name=product_name or None,
        confidence=raw.confidence,
        ingredient_explanations=_clean_list(raw.ingredient_explanations),
    )

    if len(result.analysis_points) not in _EXPECTED_POINTS:
        logger.warning(
            "Unexpected number of analysis points",
            count=len(result.analysis_points),
        )

    return result
