"""Response parsers — turn raw model text into validated structures."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from sourcelens.errors import ParsingError
from sourcelens.models.draft import DocumentSummary, Section
from sourcelens.models.source import AnalysisResult

logger = logging.getLogger(__name__)

_OPEN_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*")
_CLOSE_FENCE_RE = re.compile(r"\s*```$")
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

_SUMMARY_RE = re.compile(r"SUMMARY:\s*(.*?)(?=PRELIMINARY|FOLLOW-UP|$)", re.DOTALL)
_ANALYSIS_RE = re.compile(r"PRELIMINARY ANALYSIS:\s*(.*?)(?=FOLLOW-UP|$)", re.DOTALL)
_QUESTIONS_RE = re.compile(r"FOLLOW-UP QUESTIONS:(.*)", re.DOTALL)
_NUMBERED_RE = re.compile(r"^(\d+)[.)]\s*(.*)$")

DEFAULT_SUMMARY = "A historical document requiring analysis."
DEFAULT_ANALYSIS = "This document relates to the stated research goals."
DEFAULT_QUESTIONS = (
    "What was the historical context of this document?",
    "How does this document relate to the author's other work?",
    "What biases or perspectives might be present in this source?",
)
MISSING_SUGGESTION = "Suggestion not generated."


def strip_code_fences(text: str) -> str:
    """Remove one leading ```lang fence and one trailing ``` fence.

    Backticks inside the body are left alone, so a fenced payload decodes
    to the same value as the bare one.
    """
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = _OPEN_FENCE_RE.sub("", stripped, count=1)
    return _CLOSE_FENCE_RE.sub("", stripped, count=1).strip()


def parse_json_response(text: str, expect: type = dict) -> Any:
    """Parse a JSON object or array out of model output.

    Markdown fences and surrounding prose are tolerated. When the cleaned
    text is not valid JSON, the outermost {...} or [...] span is tried once.
    """
    if not text or not text.strip():
        raise ParsingError("Empty response from model")

    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        pattern = _ARRAY_RE if expect is list else _OBJECT_RE
        match = pattern.search(cleaned)
        if not match:
            logger.warning("No JSON found in response: %.200s", cleaned)
            raise ParsingError("Failed to parse LLM response as JSON", str(exc)) from exc
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as inner:
            logger.warning("Fallback JSON extraction failed: %.200s", match.group(0))
            raise ParsingError("Failed to parse LLM response as JSON", str(inner)) from inner

    if not isinstance(parsed, expect):
        raise ParsingError(
            "Parsed response has the wrong shape",
            f"expected {expect.__name__}, got {type(parsed).__name__}",
        )
    return parsed


def parse_analysis_response(text: str) -> AnalysisResult:
    """Read the SUMMARY / PRELIMINARY ANALYSIS / FOLLOW-UP QUESTIONS fields."""
    summary_match = _SUMMARY_RE.search(text)
    analysis_match = _ANALYSIS_RE.search(text)
    questions_match = _QUESTIONS_RE.search(text)

    questions: list[str] = []
    if questions_match:
        for line in questions_match.group(1).splitlines():
            numbered = _NUMBERED_RE.match(line.strip())
            if numbered and numbered.group(2).strip():
                questions.append(numbered.group(2).strip())
    questions = questions[:3]
    questions.extend(DEFAULT_QUESTIONS[len(questions):])

    return AnalysisResult(
        summary=(summary_match.group(1).strip() if summary_match else "") or DEFAULT_SUMMARY,
        analysis=(analysis_match.group(1).strip() if analysis_match else "") or DEFAULT_ANALYSIS,
        followup_questions=questions,
    )


def parse_numbered_suggestions(text: str, expected: int) -> tuple[str | None, list[str]]:
    """Split a numbered list into (remark, suggestions).

    A leading item numbered 0 is the assistant's remark and is returned
    separately. The list is padded or cut to exactly ``expected`` items.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    remark: str | None = None
    suggestions: list[str] = []

    for line in lines:
        numbered = _NUMBERED_RE.match(line)
        if numbered:
            body = numbered.group(2).strip()
            if numbered.group(1) == "0" and remark is None and not suggestions:
                remark = body
            else:
                suggestions.append(body)
        elif suggestions:
            suggestions[-1] = f"{suggestions[-1]} {line}"
        elif len(lines) <= expected + 1:
            suggestions.append(line)

    if len(suggestions) < expected:
        logger.info("Numbered parsing yielded %d items, splitting on blank lines", len(suggestions))
        blocks = [b.strip() for b in re.split(r"\n\s*\n", text) if len(b.strip()) > 10]
        if blocks and blocks[0].startswith(("0.", "0)")):
            remark = remark or blocks.pop(0)[2:].strip()
        if len(blocks) > len(suggestions):
            suggestions = [re.sub(r"^\d+[.)]\s*", "", b) for b in blocks]

    suggestions = suggestions[:expected]
    suggestions.extend([MISSING_SUGGESTION] * (expected - len(suggestions)))
    return remark, suggestions


def parse_summary_response(text: str) -> DocumentSummary:
    """Parse the {overallSummary, sections[]} object a summarizer returns."""
    data = parse_json_response(text, expect=dict)
    sections = data.get("sections")
    if not isinstance(sections, list):
        raise ParsingError("Invalid summary data structure", "missing 'sections' array")
    return DocumentSummary(
        overall_summary=str(data.get("overallSummary") or ""),
        sections=[Section.from_dict(s, i) for i, s in enumerate(sections) if isinstance(s, dict)],
    )


def parse_extraction_suggestion(text: str) -> dict[str, Any]:
    data = parse_json_response(text, expect=dict)
    fields = data.get("fields")
    if not data.get("listType") or not isinstance(fields, list) or not fields:
        raise ParsingError("LLM response did not include the expected extraction configuration")
    return {
        "listType": data["listType"],
        "fields": fields,
        "format": data.get("format") or "table",
        "explanation": data.get("explanation") or "",
    }


def process_extracted_info(text: str, format: str) -> Any:
    """Table extractions returned as JSON are decoded; everything else is text."""
    if format == "table" and text.strip().startswith(("{", "[")):
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse table as JSON: %s", exc)
    return text


def parse_highlight_segments(text: str, content: str, limit: int) -> list[dict[str, Any]]:
    """Rank the model's segments and keep those that really occur in content.

    Scores are clamped into 0..1, the list is sorted best first and cut to
    ``limit`` before ids are assigned, so ids can have gaps after filtering.
    """
    data = parse_json_response(text, expect=dict)
    raw_segments = data.get("segments") or []
    if not isinstance(raw_segments, list):
        raise ParsingError("Failed to parse segments from LLM response", "missing 'segments' array")

    segments = []
    for raw in raw_segments:
        if not isinstance(raw, dict):
            continue
        score = raw.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = 0.0
        segments.append({**raw, "score": max(0.0, min(1.0, float(score)))})

    segments.sort(key=lambda segment: segment["score"], reverse=True)
    ranked = [{**segment, "id": index} for index, segment in enumerate(segments[:limit])]
    valid = [s for s in ranked if isinstance(s.get("text"), str) and s["text"] in content]
    logger.info("Found %d valid segments out of %d total", len(valid), len(ranked))
    return valid


def parse_metadata_response(text: str) -> dict[str, Any]:
    if not text or not text.strip():
        return {}
    return parse_json_response(text, expect=dict)
