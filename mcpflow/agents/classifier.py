from __future__ import annotations

import re
from typing import List, Optional

_QUOTED = re.compile(r"""["']([^"']+)["']""")
_BARE_PATH = re.compile(r"(?<![\w@])((?:[\w.-]+/)*[\w-]+\.[A-Za-z][A-Za-z0-9]{0,4})\b")
_WRITE_CONTENT = re.compile(r"""write\s+["']([^"']+)["']""", re.IGNORECASE)
_SEARCH_QUERY = re.compile(r"""search\s+(?:for\s+)?["']?([^"']+)["']?""", re.IGNORECASE)
_TRAILING_SAVE = re.compile(r"\s+(?:and\s+)?(?:then\s+)?(?:save|write|store)\b.*$", re.IGNORECASE)

_PLAN_WORDS = ("research", "analyze", "workflow")
_CHAIN_WORDS = ("then", "save", "create")


class RequestClassifier:
    """Keyword heuristics over free-text requests."""

    def needs_plan(self, text: str) -> bool:
        """True when *text* looks like a multi-step request rather than a question."""
        lowered = text.lower()
        words = set(re.findall(r"[a-z]+", lowered))
        if "and" in words and any(w in words for w in _CHAIN_WORDS):
            return True
        if any(w in lowered for w in _PLAN_WORDS):
            return True
        return bool(self.intents(text))

    def intents(self, text: str) -> List[str]:
        """Intent categories mentioned in *text*, in planner order."""
        lowered = text.lower()
        words = set(re.findall(r"[a-z]+", lowered))
        found = []
        if self.is_research_and_save(lowered):
            found.append("research-then-save")
        if "read" in words and ("file" in lowered or self._path_candidate(text)):
            found.append("read-file")
        if "write" in words and "file" in lowered:
            found.append("write-file")
        if "search" in lowered or "find information" in lowered:
            found.append("web-search")
        return found

    @staticmethod
    def is_research_and_save(lowered: str) -> bool:
        return "search" in lowered and "save" in lowered

    def extract_file_path(self, text: str, default: str) -> str:
        return self._path_candidate(text) or default

    def extract_content(self, text: str, default: str = "Generated content") -> str:
        match = _WRITE_CONTENT.search(text)
        return match.group(1) if match else default

    def extract_search_query(self, text: str) -> str:
        match = _SEARCH_QUERY.search(text)
        if not match:
            return text
        query = _TRAILING_SAVE.sub("", match.group(1)).strip()
        return query or text

    @staticmethod
    def _path_candidate(text: str) -> Optional[str]:
        quoted = _QUOTED.findall(text)
        for candidate in quoted:
            if "/" in candidate or "." in candidate:
                return candidate
        if quoted:
            return quoted[0]
        bare = _BARE_PATH.search(text)
        return bare.group(1) if bare else None
