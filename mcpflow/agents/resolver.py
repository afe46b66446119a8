from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable

from mcpflow.core.types import PREVIOUS_RESULT, Plan

logger = logging.getLogger(__name__)


def serialize_result(result: Any) -> str:
    """Canonical string form of a step result."""
    if isinstance(result, str):
        return result
    return json.dumps(result, sort_keys=True, default=str, ensure_ascii=False)


class ArgumentResolver:
    """Substitute the previous-result placeholder in a step's arguments."""

    def __init__(self, placeholder: str = PREVIOUS_RESULT) -> None:
        self.placeholder = placeholder

    def resolve(self, args: Dict[str, Any], plan: Plan, completed: Iterable[str]) -> Dict[str, Any]:
        """
        Return a copy of *args* with every placeholder value replaced by the
        result of the last completed step in plan order. *args* is not touched.
        """
        resolved = dict(args)
        keys = [key for key, value in resolved.items() if value == self.placeholder]
        if not keys:
            return resolved

        done = set(completed)
        previous = [s for s in plan.steps if s.id in done]
        if not previous:
            logger.warning(f"⚠️ No completed step to substitute for {', '.join(keys)} in {plan.id}")
            return resolved

        value = serialize_result(previous[-1].result)
        for key in keys:
            resolved[key] = value
        return resolved
