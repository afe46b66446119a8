"""
Shared fixtures for the MCPFlow test suite.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from mcpflow.core.errors import ToolError
from mcpflow.core.tool_registry import ServiceRegistry, ToolResult
from mcpflow.tools.filesystem_schema import LIST_DIRECTORY_SCHEMA, READ_FILE_SCHEMA, WRITE_FILE_SCHEMA
from mcpflow.tools.websearch_schema import WEB_SEARCH_SCHEMA


class FakeServices:
    """In-memory File System and Web Search services."""

    def __init__(self, files: Optional[Dict[str, str]] = None, names: Tuple[str, str] = ("File System", "Web Search")):
        self.files: Dict[str, str] = dict(files or {})
        self.searches: List[str] = []
        self.registry = ServiceRegistry()

        fs_name, search_name = names
        self.registry.register_service("filesystem", fs_name)
        self.registry.register_from_schema("filesystem", READ_FILE_SCHEMA, self.read_file)
        self.registry.register_from_schema("filesystem", WRITE_FILE_SCHEMA, self.write_file)
        self.registry.register_from_schema("filesystem", LIST_DIRECTORY_SCHEMA, self.list_directory)

        self.registry.register_service("websearch", search_name)
        self.registry.register_from_schema("websearch", WEB_SEARCH_SCHEMA, self.web_search)

        self.registry.connect("filesystem")
        self.registry.connect("websearch")

    def read_file(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(f"File not found: {path}")
        return self.files[path]

    def write_file(self, path: str, content: str) -> str:
        self.files[path] = content
        return f"Wrote {len(content)} characters to {path}"

    def list_directory(self, path: str) -> List[str]:
        return sorted(self.files)

    def web_search(self, query: str, limit: int = 10) -> List[dict]:
        self.searches.append(query)
        return [{"title": f"{query} report", "url": "https://example.com/1", "snippet": "Revenue grew 12%"}]


class ScriptedInvoker:
    """
    Invoker double: ``script`` maps tool names to a value, an exception
    instance, or a callable taking the arguments.
    """

    def __init__(self, script: Dict[str, Any], delay: float = 0.0):
        self.script = script
        self.delay = delay
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.active = 0
        self.max_active = 0

    async def call(self, service: str, tool: str, arguments: Dict[str, Any]) -> ToolResult:
        self.calls.append((service, tool, dict(arguments)))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self.script.get(tool, f"{tool} ok")
            if isinstance(outcome, Exception):
                raise outcome
            if callable(outcome):
                outcome = outcome(arguments)
            return ToolResult(result=outcome)
        finally:
            self.active -= 1


class Recorder:
    """Observer collecting every published snapshot."""

    def __init__(self, on_publish: Optional[Callable] = None):
        self.snapshots = []
        self.on_publish = on_publish

    def __call__(self, plan) -> None:
        self.snapshots.append(plan)
        if self.on_publish:
            self.on_publish(plan)

    def step_events(self) -> List[Tuple[str, str]]:
        """(step id, status) in the order statuses were first observed."""
        seen = set()
        events = []
        for snapshot in self.snapshots:
            for step in snapshot.steps:
                key = (step.id, step.status.value)
                if key not in seen:
                    seen.add(key)
                    events.append(key)
        return events


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_orchestrator():
    from mcpflow.agents.orchestrator import Orchestrator
    from mcpflow.agents.planner import Planner

    def factory(registry, invoker=None, **kwargs):
        planner = kwargs.pop("planner", None) or Planner(
            default_path="example.txt", save_path="research_results.txt", numeric_default=10
        )
        return Orchestrator(registry, invoker, planner=planner, **kwargs)

    return factory
