"""Wikipedia lookups for authors, dates and general titles."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from sourcelens.config import settings
from sourcelens.errors import ProviderError

logger = logging.getLogger(__name__)

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
WIKIPEDIA_PAGE_URL = "https://en.wikipedia.org/wiki/"


def page_url(title: str) -> str:
    return WIKIPEDIA_PAGE_URL + quote(title.replace(" ", "_"), safe="")


def second_paragraph(text: str | None) -> str | None:
    """Return the second paragraph of a plain-text extract, else the first."""
    if not text:
        return None
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs[1]
    return paragraphs[0] if paragraphs else None


class WikipediaClient:
    """Fetches short summaries from the Wikipedia REST and action APIs."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def lookup(self, title: str, kind: str | None = None) -> dict[str, str | None]:
        """Return {summary, fullUrl} for a title; dates use the full extract."""
        logger.info("Fetching Wikipedia data for %r (type=%s)", title, kind)
        headers = {"User-Agent": settings.wikipedia_user_agent}
        try:
            async with httpx.AsyncClient(timeout=20.0, transport=self.transport, headers=headers) as client:
                if kind == "date":
                    summary = await self._date_summary(client, title)
                    return {"summary": summary, "fullUrl": page_url(title)}
                return await self._page_summary(client, title)
        except httpx.HTTPError as exc:
            raise ProviderError("Failed to fetch Wikipedia content", str(exc)) from exc

    async def _date_summary(self, client: httpx.AsyncClient, title: str) -> str | None:
        response = await client.get(
            WIKIPEDIA_API_URL,
            params={
                "action": "query",
                "format": "json",
                "titles": title,
                "prop": "extracts",
                "exlimit": "1",
                "explaintext": "true",
                "exsectionformat": "plain",
            },
        )
        response.raise_for_status()
        pages = (response.json().get("query") or {}).get("pages") or {}
        page = next(iter(pages.values()), None)
        if not page or "missing" in page:
            logger.warning("No Wikipedia content for date %r", title)
            return (
                f"No specific Wikipedia entry found for the exact date {title}. "
                "General information may be available for the year."
            )
        return second_paragraph(page.get("extract"))

    async def _page_summary(self, client: httpx.AsyncClient, title: str) -> dict[str, str | None]:
        full_url = page_url(title)
        response = await client.get(WIKIPEDIA_SUMMARY_URL + quote(title.replace(" ", "_"), safe=""))
        if response.status_code == 404:
            # The summary endpoint can 404 for redirects even when the page exists
            logger.warning("Summary endpoint 404 for %r", title)
            return {"summary": "Could not fetch summary automatically.", "fullUrl": full_url}
        response.raise_for_status()
        data = response.json()
        desktop = (data.get("content_urls") or {}).get("desktop") or {}
        return {"summary": data.get("extract"), "fullUrl": desktop.get("page") or full_url}
