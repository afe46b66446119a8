from __future__ import annotations

import math
import time
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, JsonValue

from mcpflow.core.errors import CyclicDependency, DuplicateStep, InvalidTransition

# Substituted with the result of the most recently completed step.
PREVIOUS_RESULT = "{{PREVIOUS_RESULT}}"


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PlanStatus(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


def new_plan_id() -> str:
    return f"plan_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class Step(BaseModel):
    id: str
    service: str
    tool: str
    args: Dict[str, JsonValue] = Field(default_factory=dict)
    status: StepStatus = StepStatus.PENDING
    result: Any = None
    error: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    recovery_attempted: bool = False


class Plan(BaseModel):
    """
    A graph of dependent steps derived from one request.

    Step state is only changed through the ``mark_*`` methods, which check
    the prior state and keep :pyattr:`progress` in sync.
    """
    id: str = Field(default_factory=new_plan_id)
    description: str
    steps: List[Step] = Field(default_factory=list)
    status: PlanStatus = PlanStatus.PLANNING
    progress: int = 0
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    error: Optional[str] = None

    # graph construction
    def add_step(self, step: Step) -> Step:
        """Append *step*; its dependencies must already be in the plan."""
        known = {s.id for s in self.steps}
        if step.id in known:
            raise DuplicateStep(step.id)
        missing = [dep for dep in step.dependencies if dep not in known]
        if missing:
            raise CyclicDependency(
                missing, f"Step {step.id} depends on unknown steps: {', '.join(missing)}"
            )
        self.steps.append(step)
        self._refresh_progress()
        return step

    def validate_dependencies(self) -> None:
        """
        Reject unknown dependency ids and cycles.

        Raises
        ------
        CyclicDependency
            With the offending ids in ``cycle``.
        """
        by_id = {s.id: s for s in self.steps}
        for step in self.steps:
            missing = [dep for dep in step.dependencies if dep not in by_id]
            if missing:
                raise CyclicDependency(
                    missing, f"Step {step.id} depends on unknown steps: {', '.join(missing)}"
                )

        visiting: List[str] = []
        done: Set[str] = set()

        def visit(step_id: str) -> None:
            if step_id in done:
                return
            if step_id in visiting:
                raise CyclicDependency(visiting[visiting.index(step_id):] + [step_id])
            visiting.append(step_id)
            for dep in by_id[step_id].dependencies:
                visit(dep)
            visiting.pop()
            done.add(step_id)

        for step in self.steps:
            visit(step.id)

    # queries
    def get_step(self, step_id: str) -> Step:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Step {step_id} not in plan {self.id}")

    def completed_ids(self) -> Set[str]:
        return {s.id for s in self.steps if s.status == StepStatus.COMPLETED}

    def failed_ids(self) -> List[str]:
        return [s.id for s in self.steps if s.status == StepStatus.FAILED]

    def ready_steps(self, completed: Set[str]) -> List[Step]:
        """Pending steps whose every dependency is in *completed*."""
        return [
            s for s in self.steps
            if s.status == StepStatus.PENDING and all(dep in completed for dep in s.dependencies)
        ]

    # transitions
    def mark_running(self, step_id: str) -> Step:
        step = self._expect(step_id, StepStatus.PENDING, StepStatus.RUNNING)
        step.status = StepStatus.RUNNING
        step.started_at = datetime.now()
        self._refresh_progress()
        return step

    def mark_completed(self, step_id: str, result: Any) -> Step:
        step = self._expect(step_id, StepStatus.RUNNING, StepStatus.COMPLETED)
        step.status = StepStatus.COMPLETED
        step.result = result
        step.error = None
        step.finished_at = datetime.now()
        self._refresh_progress()
        return step

    def mark_failed(self, step_id: str, error: str) -> Step:
        step = self._expect(step_id, StepStatus.RUNNING, StepStatus.FAILED)
        step.status = StepStatus.FAILED
        step.result = None
        step.error = error
        step.finished_at = datetime.now()
        self._refresh_progress()
        return step

    def mark_recovered(self, step_id: str, result: Any) -> Step:
        """The one way out of ``failed``: a successful recovery invocation."""
        step = self._expect(step_id, StepStatus.FAILED, StepStatus.COMPLETED)
        step.status = StepStatus.COMPLETED
        step.result = result
        step.error = None
        step.finished_at = datetime.now()
        self._refresh_progress()
        return step

    def _expect(self, step_id: str, expected: StepStatus, target: StepStatus) -> Step:
        step = self.get_step(step_id)
        if step.status != expected:
            raise InvalidTransition(step_id, step.status.value, target.value)
        return step

    def _refresh_progress(self) -> None:
        total = len(self.steps)
        if total == 0:
            self.progress = 0
            return
        done = sum(1 for s in self.steps if s.status == StepStatus.COMPLETED)
        # half-up, so 12.5 -> 13
        self.progress = int(math.floor(100 * done / total + 0.5))
