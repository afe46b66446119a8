from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Union

from mcpflow.agents.planner import Planner
from mcpflow.agents.recovery import RecoveryPolicy
from mcpflow.agents.resolver import ArgumentResolver
from mcpflow.core.errors import (
    InvalidTransition, PlanBlocked, PlanCancelled, PlanNotFound, ServiceUnavailable,
)
from mcpflow.core.tool_registry import ServiceInfo, ServiceRegistry, ToolInvoker, ToolResult
from mcpflow.core.types import Plan, PlanStatus, Step

PlanObserver = Callable[[Plan], None]


class PlanStore:
    """
    Table of plans keyed by id.

    The executor owns the live :class:`Plan`; everyone else reads the last
    published deep copy. Registration and publication are serialised.
    """

    def __init__(self) -> None:
        self._live: Dict[str, Plan] = {}
        self._published: Dict[str, Plan] = {}
        self._cancelled: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, plan: Plan) -> Plan:
        with self._lock:
            self._live[plan.id] = plan
            self._published[plan.id] = plan.model_copy(deep=True)
            return self._published[plan.id].model_copy(deep=True)

    def live(self, plan_id: str) -> Plan:
        with self._lock:
            plan = self._live.get(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def publish(self, plan: Plan) -> Plan:
        snapshot = plan.model_copy(deep=True)
        with self._lock:
            self._published[plan.id] = snapshot
        return snapshot.model_copy(deep=True)

    def get(self, plan_id: str) -> Optional[Plan]:
        with self._lock:
            snapshot = self._published.get(plan_id)
            return snapshot.model_copy(deep=True) if snapshot else None

    def all(self) -> List[Plan]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._published.values()]

    def cancel(self, plan_id: str) -> None:
        with self._lock:
            if plan_id not in self._live:
                raise PlanNotFound(plan_id)
            self._cancelled.add(plan_id)

    def is_cancelled(self, plan_id: str) -> bool:
        with self._lock:
            return plan_id in self._cancelled


class Orchestrator:
    """
    Plans requests and executes plans wavefront by wavefront.

    Every pending step whose dependencies have completed runs concurrently;
    the wavefront is joined before the next ready set is computed. Step
    failures stay on the step (after one recovery attempt); only a plan
    that can no longer make progress ends ``failed``.

    Parameters
    ----------
    registry : ServiceRegistry
        Services and tools; steps are resolved against it at run time.
    invoker : ToolInvoker, optional
        Executes tools. Defaults to one over *registry*.
    planner, resolver, recovery : optional
        Replaceable components; defaults are the built-in ones.
    store : PlanStore, optional
        Plan table, shared when several orchestrators should see one set of plans.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        invoker: Optional[ToolInvoker] = None,
        *,
        planner: Optional[Planner] = None,
        resolver: Optional[ArgumentResolver] = None,
        recovery: Optional[RecoveryPolicy] = None,
        store: Optional[PlanStore] = None,
    ) -> None:
        self.registry = registry
        self.invoker = invoker or ToolInvoker(registry)
        self.planner = planner or Planner()
        self.resolver = resolver or ArgumentResolver()
        self.recovery = recovery or RecoveryPolicy()
        self.store = store or PlanStore()
        self.logger = logging.getLogger(__name__)

    # plan table
    def create_plan(self, request: str, services: Optional[Sequence[ServiceInfo]] = None) -> Plan:
        """Plan *request* over *services* (default: every available service)."""
        if services is None:
            services = self.registry.list_available()
        plan = self.planner.create_plan(request, services)
        return self.store.add(plan)

    def add_plan(self, plan: Plan) -> Plan:
        """Register a plan built elsewhere."""
        return self.store.add(plan)

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        return self.store.get(plan_id)

    def list_plans(self) -> List[Plan]:
        return self.store.all()

    def cancel_plan(self, plan_id: str) -> None:
        """Stop *plan_id* at its next wavefront boundary."""
        self.store.cancel(plan_id)
        self.logger.info(f"🛑 Cancellation requested for {plan_id}")

    async def run(self, request: str, on_change: Optional[PlanObserver] = None) -> Plan:
        """Create a plan for *request* and execute it."""
        plan = self.create_plan(request)
        return await self.execute_plan(plan.id, on_change)

    # execution
    async def execute_plan(self, plan_id: Union[str, Plan], on_change: Optional[PlanObserver] = None) -> Plan:
        """
        Run a plan to a terminal state and return its final snapshot.

        *on_change* is called with a snapshot at every state change, on the
        executor's own task.

        Raises
        ------
        PlanNotFound
            Unknown plan id.
        InvalidTransition
            The plan is not in ``planning`` state.
        """
        plan = self.store.live(plan_id.id if isinstance(plan_id, Plan) else plan_id)
        if plan.status != PlanStatus.PLANNING:
            raise InvalidTransition(plan.id, plan.status.value, PlanStatus.EXECUTING.value)

        def publish() -> None:
            snapshot = self.store.publish(plan)
            if on_change is None:
                return
            try:
                on_change(snapshot)
            except Exception:
                self.logger.exception(f"Observer for {plan.id} raised")

        self.logger.info(f"🚀 Executing {plan.id} ({len(plan.steps)} steps)")
        plan.status = PlanStatus.EXECUTING
        publish()

        try:
            await self._run_wavefronts(plan, publish)
            plan.status = PlanStatus.COMPLETED
        except (PlanBlocked, PlanCancelled) as e:
            plan.status = PlanStatus.FAILED
            plan.error = str(e)
            self.logger.error(f"❌ {plan.id} failed: {e}")

        plan.end_time = datetime.now()
        publish()
        if plan.status == PlanStatus.COMPLETED:
            self.logger.info(f"✅ {plan.id} completed ({plan.progress}%)")
        return self.store.get(plan.id)

    async def _run_wavefronts(self, plan: Plan, publish: Callable[[], None]) -> None:
        completed = frozenset(plan.completed_ids())
        while len(completed) < len(plan.steps):
            if self.store.is_cancelled(plan.id):
                raise PlanCancelled(plan.id)

            ready = plan.ready_steps(completed)
            if not ready:
                raise PlanBlocked(plan.failed_ids())

            self.logger.info(f"🌊 {plan.id} wavefront: {', '.join(s.id for s in ready)}")
            await asyncio.gather(*(self._execute_step(plan, step, completed, publish) for step in ready))

            completed = frozenset(plan.completed_ids())
            publish()

    async def _execute_step(
        self,
        plan: Plan,
        step: Step,
        completed: FrozenSet[str],
        publish: Callable[[], None],
    ) -> None:
        plan.mark_running(step.id)
        publish()
        self.logger.info(f"⚙️  {step.id}: {step.service}.{step.tool}")

        try:
            step.args = self.resolver.resolve(step.args, plan, completed)
            outcome = await self._invoke(step.service, step.tool, step.args)
        except InvalidTransition:
            raise
        except Exception as e:
            plan.mark_failed(step.id, str(e) or e.__class__.__name__)
            publish()
            self.logger.warning(f"❌ {step.id} failed: {step.error}")
            if await self.recovery.attempt(step, plan, self._invoke):
                publish()
            return

        plan.mark_completed(step.id, outcome.result)
        publish()
        self.logger.info(f"✅ {step.id} completed")

    async def _invoke(self, service: str, tool: str, args: Dict[str, Any]) -> ToolResult:
        info = self.registry.resolve(service)
        if info is None or not info.available:
            raise ServiceUnavailable(service)
        return await self.invoker.call(info.name, tool, args)
