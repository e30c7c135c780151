"""Input preparation: required-field checks, truncation and sampling."""

from __future__ import annotations

import logging
from typing import Any

from sourcelens.errors import RequestValidationFailed

logger = logging.getLogger(__name__)

DOCUMENT_TRUNCATION_NOTICE = "\n\n[Note: Document was truncated due to length.]"

# extract-info samples documents above this size instead of sending them whole
MAX_FULL_CONTENT_SIZE = 500_000


def require_fields(message: str = "Missing required fields", **fields: Any) -> None:
    """Reject the request when any named field is missing or empty."""
    missing = [name for name, value in fields.items() if not value]
    if missing:
        logger.info("Rejecting request, missing fields: %s", ", ".join(missing))
        raise RequestValidationFailed(message, {"missing": missing})


def truncate_text(text: str, limit: int, notice: str = DOCUMENT_TRUNCATION_NOTICE) -> str:
    """Cut text to limit characters and append notice when it was cut."""
    if len(text) <= limit:
        return text
    logger.info("Truncating text from %d to %d chars", len(text), limit)
    return text[:limit] + notice


def sample_document(content: str) -> str:
    """Sample the beginning, interior and end of a very large document.

    Documents with few lines cannot be sampled by line and are simply cut.
    """
    total_length = len(content)
    chunk_size = 20_000 if total_length > MAX_FULL_CONTENT_SIZE else 30_000
    lines = content.split("\n")

    if len(lines) < 100:
        return content[:120_000]

    num_chunks = min(5, -(-total_length // 150_000))
    parts: list[str] = []

    begin = "\n".join(lines[: int(min(len(lines) / 8, 400))])
    parts.append(f"[BEGINNING OF DOCUMENT]\n{begin[:chunk_size]}\n\n")

    if num_chunks > 2:
        for i in range(1, num_chunks - 1):
            position = (len(lines) * i) // num_chunks
            start = max(0, position - 200)
            end = min(len(lines), position + 200)
            section = "\n".join(lines[start:end])
            percent = (i * 100) // num_chunks
            parts.append(
                f"[SECTION {i} OF DOCUMENT - APPROXIMATELY {percent}% THROUGH]\n"
                f"{section[:chunk_size]}\n\n"
            )
    else:
        middle = "\n".join(lines[int(len(lines) * 0.4): int(len(lines) * 0.6)])
        parts.append(f"[MIDDLE OF DOCUMENT]\n{middle[:chunk_size]}\n\n")

    end_chunk = "\n".join(lines[int(len(lines) * 0.9):])
    parts.append(f"[END OF DOCUMENT]\n{end_chunk[:chunk_size]}\n\n")
    parts.append(
        f"[NOTE: This document has been sampled from {num_chunks} sections due to its "
        f"large size (approximately {round(total_length / 1000)}KB). The full document "
        "may contain additional important information not captured in these samples.]\n"
    )
    return "".join(parts)
