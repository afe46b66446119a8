from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from mcpflow.agents.resolver import serialize_result
from mcpflow.core.errors import ToolError
from mcpflow.core.llmclient import LLMClient
from mcpflow.core.tool_registry import ServiceRegistry, ToolInvoker, service_key
from mcpflow.core.types import Plan
from mcpflow.prompts.system import build_system_prompt


class Responder:
    """
    Answer a request in a single model turn.

    The model sees every available tool (named ``<service>_<tool>``); tool
    calls it makes are executed through the invoker and their results are
    sent back for the final answer.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        invoker: Optional[ToolInvoker] = None,
        llm: Optional[LLMClient] = None,
    ) -> None:
        self.registry = registry
        self.invoker = invoker or ToolInvoker(registry)
        self.llm = llm
        self.logger = logging.getLogger(__name__)

    async def answer(self, request: str, plan: Optional[Plan] = None) -> str:
        if self.llm is None:
            self.llm = LLMClient()
        self.llm.reset_conversation()
        self.llm.set_system_prompt(build_system_prompt(self.registry.list_available(), plan))

        tools = self.registry.get_openai_tools()
        if not tools:
            return self.llm.generate(request)

        response = self.llm.generate_with_tools(request, tools, tool_choice="auto")
        if not response["tool_calls"]:
            return response["content"]

        results = []
        for call in response["tool_calls"]:
            self.logger.info(f"🔧 Model requested {call['function']['name']}")
            results.append({"tool_call_id": call["id"], "result": await self._run_tool_call(call)})
        return self.llm.continue_conversation(results)

    def _tool_index(self) -> Dict[str, Tuple[str, str]]:
        return {
            f"{service_key(s.name)}_{t.name}": (s.name, t.name)
            for s in self.registry.list_available()
            for t in s.tools
        }

    async def _run_tool_call(self, call: Dict[str, Any]) -> str:
        name = call["function"]["name"]
        target = self._tool_index().get(name)
        if target is None:
            return json.dumps({"success": False, "tool": name, "error": f"Unknown tool {name}"})

        service, tool = target
        try:
            args = json.loads(call["function"].get("arguments") or "{}")
            outcome = await self.invoker.call(service, tool, args)
        except (ToolError, json.JSONDecodeError) as e:
            self.logger.warning(f"❌ {service}.{tool} failed: {e}")
            return json.dumps({"success": False, "service": service, "tool": tool, "error": str(e)})

        return serialize_result({
            "success": True,
            "service": service,
            "tool": tool,
            "result": outcome.result,
            "timestamp": outcome.timestamp.isoformat(),
        })
