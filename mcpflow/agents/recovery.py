from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from mcpflow.core.errors import InvalidTransition
from mcpflow.core.tool_registry import ToolResult
from mcpflow.core.types import Plan, Step, StepStatus

Invoke = Callable[[str, str, Dict[str, Any]], Awaitable[ToolResult]]


@dataclass
class Invocation:
    """A replacement call proposed for a failed step."""
    tool: str
    args: Dict[str, Any] = field(default_factory=dict)
    service: Optional[str] = None


class RecoveryStrategy(Protocol):
    name: str

    def propose(self, step: Step, plan: Plan) -> Optional[Invocation]:
        """Return a replacement invocation for *step*, or None to pass."""
        ...


def parent_path(path: Any) -> str:
    """'a/b/c.txt' -> 'a/b'; a bare file name maps to the root '/'."""
    parent = posixpath.dirname(str(path or "").rstrip("/"))
    return parent or "/"


class ReadFileFallback:
    """A file that cannot be read is replaced by a listing of its directory."""

    name = "read-file-fallback"

    def propose(self, step: Step, plan: Plan) -> Optional[Invocation]:
        if step.tool != "read_file" or "not found" not in (step.error or "").lower():
            return None
        return Invocation(tool="list_directory", args={"path": parent_path(step.args.get("path"))})


class RecoveryPolicy:
    """
    Give a failed step one second chance.

    Strategies are asked in order; the first proposal is applied to the
    step in place and invoked once. A step gets at most one recovery
    attempt for its lifetime.
    """

    def __init__(self, strategies: Optional[Sequence[RecoveryStrategy]] = None) -> None:
        self.strategies: List[RecoveryStrategy] = list(strategies) if strategies is not None else [ReadFileFallback()]
        self.logger = logging.getLogger(__name__)

    async def attempt(self, step: Step, plan: Plan, invoke: Invoke) -> bool:
        """Try to recover *step*; True when it ended ``completed``."""
        if step.status != StepStatus.FAILED or step.recovery_attempted:
            return False

        strategy, invocation = self._propose(step, plan)
        if invocation is None:
            return False

        step.recovery_attempted = True
        original_error = step.error
        step.service = invocation.service or step.service
        step.tool = invocation.tool
        step.args = dict(invocation.args)
        self.logger.info(f"🩹 Recovering {step.id} with {strategy.name}: {step.service}.{step.tool}({step.args})")

        try:
            outcome = await invoke(step.service, step.tool, step.args)
        except InvalidTransition:
            raise
        except Exception as e:
            reason = str(e) or e.__class__.__name__
            step.error = f"{original_error} (recovery with {step.tool} failed: {reason})"
            self.logger.warning(f"❌ Recovery of {step.id} failed: {e}")
            return False

        plan.mark_recovered(step.id, outcome.result)
        self.logger.info(f"✅ Recovered {step.id} via {step.tool}")
        return True

    def _propose(self, step: Step, plan: Plan):
        for strategy in self.strategies:
            invocation = strategy.propose(step, plan)
            if invocation is not None:
                return strategy, invocation
        return None, None
