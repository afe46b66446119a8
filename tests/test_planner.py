"""
Tests for request classification and planning.
"""

import pytest

from mcpflow.agents.classifier import RequestClassifier
from mcpflow.agents.planner import Planner
from mcpflow.core.tool_registry import ServiceRegistry
from mcpflow.core.types import PREVIOUS_RESULT, PlanStatus, StepStatus

from conftest import FakeServices


@pytest.fixture
def planner():
    return Planner(default_path="example.txt", save_path="research_results.txt", numeric_default=10)


class TestRequestClassifier:
    """Test keyword heuristics."""

    def test_needs_plan(self):
        classifier = RequestClassifier()
        assert classifier.needs_plan("search for revenue and save results")
        assert classifier.needs_plan("research solar panels")
        assert classifier.needs_plan("read 'notes.txt'")
        assert not classifier.needs_plan("hello")
        assert not classifier.needs_plan("I am already here")

    def test_extract_file_path(self):
        classifier = RequestClassifier()
        assert classifier.extract_file_path("read 'notes.txt'", "x") == "notes.txt"
        assert classifier.extract_file_path("write 'hello' to file 'out/greeting.md'", "x") == "out/greeting.md"
        assert classifier.extract_file_path("read the file docs/readme.md please", "x") == "docs/readme.md"
        assert classifier.extract_file_path("read a file", "example.txt") == "example.txt"

    def test_extract_search_query(self):
        classifier = RequestClassifier()
        assert classifier.extract_search_query("search for quarterly revenue and save results") == "quarterly revenue"
        assert classifier.extract_search_query("search 'python asyncio'") == "python asyncio"
        assert classifier.extract_search_query("find information") == "find information"

    def test_extract_content(self):
        classifier = RequestClassifier()
        assert classifier.extract_content("write 'hello there' to file 'a.txt'") == "hello there"
        assert classifier.extract_content("write a file") == "Generated content"


class TestPlanner:
    """Test plan construction over available services."""

    def test_search_then_save_compound(self, planner):
        services = FakeServices(names=("FileSystem", "WebSearch"))
        plan = planner.create_plan(
            "search for quarterly revenue and save results",
            services.registry.list_available(),
        )

        assert plan.status == PlanStatus.PLANNING
        assert len(plan.steps) == 2
        producer, consumer = plan.steps
        assert (producer.service, producer.tool) == ("WebSearch", "web_search")
        assert producer.args == {"query": "quarterly revenue"}
        assert (consumer.service, consumer.tool) == ("FileSystem", "write_file")
        assert consumer.dependencies == [producer.id]
        assert consumer.args == {"path": "research_results.txt", "content": PREVIOUS_RESULT}
        assert all(s.status == StepStatus.PENDING for s in plan.steps)

    def test_research_needs_both_services(self, planner, services):
        services.registry.disconnect("filesystem")
        plan = planner.create_plan("research batteries and save it", services.registry.list_available())
        assert [s.tool for s in plan.steps] == ["web_search"]

    def test_read_file(self, planner, services):
        plan = planner.create_plan("read 'notes.txt'", [services.registry.resolve("File System")])
        assert len(plan.steps) == 1
        step = plan.steps[0]
        assert (step.service, step.tool, step.args) == ("File System", "read_file", {"path": "notes.txt"})
        assert step.dependencies == []

    def test_independent_intents_accumulate(self, planner, services):
        plan = planner.create_plan(
            "read file 'in.txt' then search for tariffs",
            services.registry.list_available(),
        )
        assert [s.tool for s in plan.steps] == ["read_file", "web_search"]
        assert [s.id for s in plan.steps] == ["step_0", "step_1"]
        assert all(not s.dependencies for s in plan.steps)

    def test_write_file(self, planner, services):
        plan = planner.create_plan("write 'hi' to file 'greeting.txt'", services.registry.list_available())
        assert plan.steps[0].args == {"path": "greeting.txt", "content": "hi"}

    def test_fallback_uses_first_tool_schema(self, planner):
        registry = ServiceRegistry()
        registry.register_service("db", "Database")
        registry.register_tool("db", "execute_query", lambda **kw: kw, "Run SQL", {
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "file_path": {"type": "string"},
                "limit": {"type": "number"},
                "dry_run": {"type": "boolean"},
                "params": {"type": "array"},
            },
        })
        registry.connect("db")

        plan = planner.create_plan("count the users", registry.list_available())
        assert len(plan.steps) == 1
        step = plan.steps[0]
        assert (step.service, step.tool) == ("Database", "execute_query")
        assert step.args == {"query": "count the users", "file_path": "example.txt", "limit": 10, "dry_run": True}

    def test_fallback_when_intent_service_missing(self, planner, services):
        only_search = [services.registry.resolve("Web Search")]
        plan = planner.create_plan("read 'notes.txt'", only_search)
        assert [s.tool for s in plan.steps] == ["web_search"]
        assert plan.steps[0].args == {"query": "read 'notes.txt'", "limit": 10}

    def test_no_services_gives_empty_plan(self, planner):
        plan = planner.create_plan("hello", [])
        assert plan.steps == []
        assert plan.progress == 0
        assert plan.status == PlanStatus.PLANNING
        assert plan.description == "Orchestration plan for: hello"

    def test_same_input_same_plan(self, planner, services):
        available = services.registry.list_available()
        first = planner.create_plan("search for x and save results", available)
        second = planner.create_plan("search for x and save results", available)
        assert first.id != second.id
        assert [s.model_dump(exclude={"created_at"}) for s in first.steps] == \
            [s.model_dump(exclude={"created_at"}) for s in second.steps]
