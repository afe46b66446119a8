from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional

import requests

from mcpflow.config import get_setting

_TAGS = re.compile(r"<[^>]+>")


@dataclass
class SearchHit:
    """Minimal result metadata handed to later steps."""
    title: str
    url: str
    snippet: str


def _flatten_topics(topics: Iterable[Dict[str, Any]]) -> Iterable[Dict[str, Any]]:
    """Related topics may be grouped under ``Topics``; yield the leaves."""
    for topic in topics:
        if "Topics" in topic:
            yield from _flatten_topics(topic["Topics"])
        else:
            yield topic


def _parse_response(payload: Dict[str, Any]) -> List[SearchHit]:
    hits: List[SearchHit] = []
    if payload.get("AbstractText"):
        hits.append(SearchHit(
            title=payload.get("Heading", ""),
            url=payload.get("AbstractURL", ""),
            snippet=payload["AbstractText"],
        ))
    for topic in _flatten_topics(payload.get("RelatedTopics", [])):
        text = topic.get("Text")
        if not text:
            continue
        title = html.unescape(_TAGS.sub("", topic.get("Result", ""))).strip() or text.split(" - ")[0]
        hits.append(SearchHit(title=title, url=topic.get("FirstURL", ""), snippet=text))
    return hits


def web_search(query: str, limit: Optional[int] = None) -> List[dict]:
    """
    Search the web and return up to *limit* hits.

    Parameters
    ----------
    query : str
        Free-text query.
    limit : int, optional
        Maximum number of hits (defaults to ``max_search_results``).

    Returns
    -------
    list[dict]
        JSON-serialisable hits with keys ``title, url, snippet``.
    """
    logger = logging.getLogger(__name__)
    limit = max(1, int(limit or get_setting("max_search_results")))
    logger.info(f"🔍 Searching the web for: '{query}' (limit: {limit})")

    params = {
        "q": query,
        "format": "json",
        "no_html": 1,
        "skip_disambig": 1,
    }
    resp = requests.get(get_setting("search_endpoint"), params=params, timeout=get_setting("http_timeout"))
    resp.raise_for_status()

    result = [asdict(hit) for hit in _parse_response(resp.json())[:limit]]
    logger.info(f"✅ Found {len(result)} results")
    return result


def fetch_url(url: str) -> str:
    """Fetch *url* and return its body as text."""
    logger = logging.getLogger(__name__)
    logger.info(f"📡 Fetching {url}")
    resp = requests.get(url, timeout=get_setting("http_timeout"))
    resp.raise_for_status()
    return resp.text
