from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence

from mcpflow.agents.classifier import RequestClassifier
from mcpflow.config import get_setting
from mcpflow.core.tool_registry import ServiceInfo, ToolDefinition, service_key
from mcpflow.core.types import PREVIOUS_RESULT, Plan, Step

FILE_SYSTEM = "File System"
WEB_SEARCH = "Web Search"


class Planner:
    """
    Turn a request into a plan of steps over the available services.

    Intent categories are tried in order. The research-then-save compound
    is tried first and, when it matches, is the whole plan; otherwise
    read-file, write-file and web-search each add their step. A request
    matching nothing falls back to the first tool of the first service
    that has one.

    Parameters
    ----------
    classifier : RequestClassifier, optional
        Keyword heuristics used to read the request.
    default_path : str, optional
        Path used when the request names none (``default_path`` setting).
    save_path : str, optional
        Target of the compound consumer step (``save_path`` setting).
    numeric_default : int, optional
        Value for numeric parameters of the fallback tool.
    """

    def __init__(
        self,
        classifier: Optional[RequestClassifier] = None,
        *,
        default_path: Optional[str] = None,
        save_path: Optional[str] = None,
        numeric_default: Optional[int] = None,
    ) -> None:
        self.classifier = classifier or RequestClassifier()
        self.default_path = default_path or get_setting("default_path")
        self.save_path = save_path or get_setting("save_path")
        self.numeric_default = numeric_default if numeric_default is not None else get_setting("numeric_default")
        self.logger = logging.getLogger(__name__)

    def create_plan(self, request: str, services: Sequence[ServiceInfo]) -> Plan:
        plan = Plan(description=f"Orchestration plan for: {request}")
        for step in self._analyze(request, list(services)):
            plan.add_step(step)
        plan.validate_dependencies()

        self.logger.info(f"📋 Created {plan.id} with {len(plan.steps)} steps")
        for step in plan.steps:
            deps = f" after {', '.join(step.dependencies)}" if step.dependencies else ""
            self.logger.info(f"  {step.id}: {step.service}.{step.tool}{deps}")
        return plan

    def _analyze(self, request: str, services: List[ServiceInfo]) -> List[Step]:
        lowered = request.lower()
        intents = self.classifier.intents(request)
        files = _find_service(services, FILE_SYSTEM)
        search = _find_service(services, WEB_SEARCH)
        counter = itertools.count()

        def next_id() -> str:
            return f"step_{next(counter)}"

        if "research-then-save" in intents and files and search:
            producer = Step(
                id=next_id(),
                service=search.name,
                tool="web_search",
                args={"query": self.classifier.extract_search_query(request)},
            )
            consumer = Step(
                id=next_id(),
                service=files.name,
                tool="write_file",
                args={"path": self.save_path, "content": PREVIOUS_RESULT},
                dependencies=[producer.id],
            )
            return [producer, consumer]

        steps: List[Step] = []
        if "read-file" in intents and files:
            steps.append(Step(
                id=next_id(),
                service=files.name,
                tool="read_file",
                args={"path": self.classifier.extract_file_path(request, self.default_path)},
            ))
        if "write-file" in intents and files:
            steps.append(Step(
                id=next_id(),
                service=files.name,
                tool="write_file",
                args={
                    "path": self.classifier.extract_file_path(request, self.default_path),
                    "content": self.classifier.extract_content(request),
                },
            ))
        if "web-search" in intents and search:
            steps.append(Step(
                id=next_id(),
                service=search.name,
                tool="web_search",
                args={"query": self.classifier.extract_search_query(request)},
            ))

        if not steps:
            fallback = next((s for s in services if s.tools), None)
            if fallback is not None:
                tool = fallback.tools[0]
                self.logger.debug(f"Nothing planned for '{lowered}', falling back to {fallback.name}.{tool.name}")
                steps.append(Step(
                    id=next_id(),
                    service=fallback.name,
                    tool=tool.name,
                    args=self.generic_args(tool, request),
                ))
        return steps

    def generic_args(self, tool: ToolDefinition, request: str) -> Dict[str, Any]:
        """Best-effort arguments synthesised from the tool's parameter schema."""
        args: Dict[str, Any] = {}
        properties = (tool.input_schema or {}).get("properties") or {}
        for key, prop in properties.items():
            prop_type = prop.get("type") if isinstance(prop, dict) else None
            if prop_type == "string":
                args[key] = self.default_path if "path" in key.lower() else request
            elif prop_type in ("number", "integer"):
                args[key] = self.numeric_default
            elif prop_type == "boolean":
                args[key] = True
        return args


def _find_service(services: Sequence[ServiceInfo], name: str) -> Optional[ServiceInfo]:
    key = service_key(name)
    return next((s for s in services if service_key(s.name) == key), None)
