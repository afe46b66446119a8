"""
Tests for the built-in File System and Web Search services.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from mcpflow.agents.orchestrator import Orchestrator
from mcpflow.agents.planner import Planner
from mcpflow.core.types import PlanStatus
from mcpflow.tools import FILE_SYSTEM_ID, WEB_SEARCH_ID, initialize_tools
from mcpflow.tools.filesystem import FileSystem
from mcpflow.tools.websearch import _parse_response, fetch_url, web_search

DDG_PAYLOAD = {
    "Heading": "Python",
    "AbstractText": "Python is a programming language.",
    "AbstractURL": "https://en.wikipedia.org/wiki/Python",
    "RelatedTopics": [
        {
            "Text": "CPython - reference implementation",
            "FirstURL": "https://duckduckgo.com/CPython",
            "Result": "<a href=\"https://duckduckgo.com/CPython\">CPython</a> - reference implementation",
        },
        {
            "Name": "Libraries",
            "Topics": [
                {"Text": "NumPy - arrays", "FirstURL": "https://duckduckgo.com/NumPy", "Result": ""},
                {"FirstURL": "https://duckduckgo.com/empty"},
            ],
        },
    ],
}


def _mock_response(payload=None, text=""):
    response = MagicMock()
    response.json.return_value = payload
    response.text = text
    response.raise_for_status.return_value = None
    return response


class TestFileSystem:
    """Test the workspace-confined file tools."""

    def test_write_then_read(self, tmp_path):
        files = FileSystem(tmp_path)
        message = files.write_file("out/notes.txt", "hello")
        assert message == "Wrote 5 characters to out/notes.txt"
        assert (tmp_path / "out" / "notes.txt").read_text() == "hello"
        assert files.read_file("out/notes.txt") == "hello"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="File not found: nope.txt"):
            FileSystem(tmp_path).read_file("nope.txt")

    def test_list_directory_marks_subdirectories(self, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a").mkdir()
        files = FileSystem(tmp_path)
        assert files.list_directory("/") == ["a/", "b.txt"]
        assert files.list_directory("a") == []

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Directory not found"):
            FileSystem(tmp_path).list_directory("ghost")

    def test_leading_slash_is_workspace_root(self, tmp_path):
        (tmp_path / "notes.txt").write_text("x")
        assert FileSystem(tmp_path).read_file("/notes.txt") == "x"

    def test_refuses_paths_outside_root(self, tmp_path):
        files = FileSystem(tmp_path / "ws")
        with pytest.raises(PermissionError):
            files.write_file("../escape.txt", "x")
        assert not (tmp_path / "escape.txt").exists()


class TestWebSearch:
    """Test the instant-answer search client."""

    def test_parse_response_flattens_topics(self):
        hits = _parse_response(DDG_PAYLOAD)
        assert [h.title for h in hits] == ["Python", "CPython - reference implementation", "NumPy"]
        assert hits[2].url == "https://duckduckgo.com/NumPy"

    def test_parse_empty_response(self):
        assert _parse_response({}) == []

    @patch("mcpflow.tools.websearch.requests.get")
    def test_web_search_limits_results(self, mock_get):
        mock_get.return_value = _mock_response(DDG_PAYLOAD)

        result = web_search("python", limit=2)

        assert len(result) == 2
        assert result[0] == {
            "title": "Python",
            "url": "https://en.wikipedia.org/wiki/Python",
            "snippet": "Python is a programming language.",
        }
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["q"] == "python"
        assert kwargs["params"]["format"] == "json"

    @patch("mcpflow.tools.websearch.requests.get")
    def test_http_errors_propagate(self, mock_get):
        response = _mock_response()
        response.raise_for_status.side_effect = RuntimeError("503 Service Unavailable")
        mock_get.return_value = response
        with pytest.raises(RuntimeError):
            web_search("python")

    @patch("mcpflow.tools.websearch.requests.get")
    def test_fetch_url(self, mock_get):
        mock_get.return_value = _mock_response(text="<html></html>")
        assert fetch_url("https://example.com") == "<html></html>"


class TestInitializeTools:
    """Test built-in service registration end to end."""

    def test_registers_both_services(self, tmp_path):
        registry = initialize_tools(workspace_root=str(tmp_path))
        assert [s.id for s in registry.list_available()] == [FILE_SYSTEM_ID, WEB_SEARCH_ID]
        tools = {t.tool for t in registry.list_tools()}
        assert tools == {"read_file", "write_file", "list_directory", "web_search", "fetch_url"}

    def test_without_connect(self, tmp_path):
        registry = initialize_tools(workspace_root=str(tmp_path), connect=False)
        assert registry.list_available() == []

    @pytest.mark.asyncio
    @patch("mcpflow.tools.websearch.requests.get")
    async def test_research_and_save_writes_workspace_file(self, mock_get, tmp_path):
        mock_get.return_value = _mock_response(DDG_PAYLOAD)
        registry = initialize_tools(workspace_root=str(tmp_path))
        planner = Planner(default_path="example.txt", save_path="research_results.txt", numeric_default=3)

        final = await Orchestrator(registry, planner=planner).run("search for python and save results")

        assert final.status == PlanStatus.COMPLETED
        saved = json.loads((tmp_path / "research_results.txt").read_text())
        assert [hit["title"] for hit in saved] == ["Python", "CPython - reference implementation", "NumPy"]
