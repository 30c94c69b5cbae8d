"""Parsing of raw analysis-model output into problem records."""

import json
import logging

from pydantic import ValidationError

from box_calibration.models import AnalysisResult

logger = logging.getLogger(__name__)


class ResultParseError(ValueError):
    """Raised when model output cannot be turned into an analysis result."""


def extract_json(text: str) -> str:
    """
    Extract a JSON object from a possibly noisy model response.

    Handles fenced ```json blocks and prose around a single object.

    Args:
        text (str): Raw model text.

    Returns:
        str: The most plausible JSON object text (``text`` itself as a last resort).
    """
    if not text:
        return text
    if "```" in text:
        parts = text.split("```")
        # Odd-indexed parts are fenced bodies
        for body in parts[1::2]:
            lines = body.strip().splitlines()
            if lines and lines[0].strip().lower() in {"json", "application/json"}:
                body = "\n".join(lines[1:])
            body = body.strip()
            if body.startswith("{") and body.endswith("}"):
                return body
    try:
        json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        return text
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def parse_analysis_result(text: str) -> AnalysisResult:
    """
    Parse raw model output into an analysis result.

    Args:
        text (str): Raw model text containing the structured JSON result.

    Returns:
        AnalysisResult: Validated problems and summary.

    Raises:
        ResultParseError: If the text holds no valid result.
    """
    if not text or not text.strip():
        raise ResultParseError("Model returned no text content")
    try:
        return AnalysisResult.model_validate_json(extract_json(text))
    except ValidationError as e:
        logger.warning(f"Model output does not match the result schema: {e.error_count()} errors")
        raise ResultParseError("Model output is not a valid analysis result") from e
