from __future__ import annotations

from typing import List, Sequence


class OrchestrationError(Exception):
    """Base class for every error raised by the orchestration core."""


class InvalidTransition(OrchestrationError):
    """A step was moved out of a state it is not in."""

    def __init__(self, step_id: str, current: str, target: str) -> None:
        self.step_id = step_id
        self.current = current
        self.target = target
        super().__init__(f"Step {step_id} cannot go from {current} to {target}")


class ToolError(OrchestrationError):
    """The invoked capability failed. Recorded on the step, eligible for recovery."""


class ServiceUnavailable(ToolError):
    """The named service is absent, disabled or not connected."""

    def __init__(self, service: str) -> None:
        self.service = service
        super().__init__(f"Service {service} is not available")


class PlanBlocked(OrchestrationError):
    """No step can run and the plan has not finished."""

    def __init__(self, failed_step_ids: Sequence[str] = ()) -> None:
        self.failed_step_ids: List[str] = list(failed_step_ids)
        if self.failed_step_ids:
            message = f"Execution blocked by failed steps: {', '.join(self.failed_step_ids)}"
        else:
            message = "Execution blocked: remaining steps can never become ready"
        super().__init__(message)


class CyclicDependency(OrchestrationError):
    """The step graph has a cycle or references a step that does not exist."""

    def __init__(self, cycle: Sequence[str], message: str | None = None) -> None:
        self.cycle: List[str] = list(cycle)
        super().__init__(message or f"Cyclic dependency: {' -> '.join(self.cycle)}")


class DuplicateStep(OrchestrationError, ValueError):
    """A step id is already used by another step of the plan."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(f"Duplicate step id {step_id}")


class PlanNotFound(OrchestrationError, KeyError):
    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(f"Plan {plan_id} not found")

    def __str__(self) -> str:
        return self.args[0]


class PlanCancelled(OrchestrationError):
    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__("Plan cancelled")
