from textwrap import dedent
from typing import Optional, Sequence

from mcpflow.core.tool_registry import ServiceInfo
from mcpflow.core.types import Plan


_BASE_PROMPT = dedent(
    """\
    You are an intelligent assistant with access to tool-providing services
    and multi-step orchestration. When a request needs an external tool, call
    the matching function with correct parameters and explain the result.

    Current capabilities:
    - General conversation and assistance
    - Function calling with connected services
    - Multi-step orchestration with dependencies between steps
    """
)

_GUIDELINES = dedent(
    """\
    ORCHESTRATION GUIDELINES:
    1. Break multi-step tasks into logical sequences
    2. Use appropriate tools with correct parameters
    3. Respect dependencies between steps
    4. Interpret and explain results to the user
    5. Handle errors gracefully and suggest alternatives
    """
)

_NO_SERVICES = (
    "Note: No services are currently connected. You can still help with general "
    "questions, but external tools and orchestration are not available."
)


def build_system_prompt(services: Sequence[ServiceInfo], plan: Optional[Plan] = None) -> str:
    """Return the system prompt describing *services* and, if given, *plan*."""
    if not services:
        return f"{_BASE_PROMPT}\n{_NO_SERVICES}"

    lines = [_BASE_PROMPT, "Available services and tools:"]
    for service in services:
        lines.append(f"- {service.name} ({len(service.tools)} tools):")
        lines.extend(f"  • {tool.name}: {tool.description}" for tool in service.tools)
    lines.append("")
    lines.append(_GUIDELINES)

    if plan is not None:
        lines.append(
            f"ORCHESTRATION PLAN CREATED:\nA plan with {len(plan.steps)} steps "
            f"({plan.id}) has been created for this request."
        )
    return "\n".join(lines)
