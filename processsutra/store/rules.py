"""
Rule Store - In-memory, tenant-keyed flow rules

The engine only reads rules; this store is the write boundary where rule
data is validated:
- schema validation (known TAT type, positive TAT, required fields)
- one start rule per system
- cycle detection (warning by default)
"""

from copy import copy
from typing import Any, List, Optional, Union
import logging

from pydantic import ValidationError

from ..core.entities import FlowRule
from ..core.exceptions import DuplicateStartRuleError, InvalidFlowRuleError
from ..core.schemas import FlowRuleCreate
from ..engine.cycles import detect_cycle, validate_no_cycle

logger = logging.getLogger(__name__)


class InMemoryRuleStore:
    """
    Flow rules grouped by organization.

    Reads return copies, so a projection works on a stable snapshot while
    rules keep changing.
    """

    def __init__(self, reject_cycles: bool = False):
        self.reject_cycles = reject_cycles
        self._rules: dict[str, list[FlowRule]] = {}

    def add(
        self,
        organization_id: str,
        data: Union[FlowRuleCreate, dict[str, Any]],
        created_by: str = "system"
    ) -> FlowRule:
        """Validate and store a rule for an organization."""
        payload = self._validate(data)
        existing = self.list(organization_id, payload.system)

        if not payload.current_task and any(r.is_start_rule for r in existing):
            raise DuplicateStartRuleError(payload.system)

        if self.reject_cycles:
            validate_no_cycle(existing, payload.current_task, payload.next_task, payload.status)
        else:
            result = detect_cycle(existing, payload.current_task, payload.next_task, payload.status)
            if result.has_cycle:
                logger.warning("%s (path: %s)", result.message, " → ".join(result.cycle))

        rule = payload.to_rule(organization_id)
        self._rules.setdefault(organization_id, []).append(rule)

        logger.info(
            "Flow rule created by %s: system=%r task=%r doer=%r",
            created_by, rule.system, rule.next_task, rule.doer
        )
        return copy(rule)

    def _validate(self, data: Union[FlowRuleCreate, dict[str, Any]]) -> FlowRuleCreate:
        if isinstance(data, FlowRuleCreate):
            return data
        try:
            return FlowRuleCreate.model_validate(data)
        except ValidationError as exc:
            errors = [
                {"path": ".".join(str(p) for p in issue["loc"]), "message": issue["msg"]}
                for issue in exc.errors()
            ]
            raise InvalidFlowRuleError("Validation failed", errors) from exc

    def get(self, organization_id: str, rule_id: str) -> Optional[FlowRule]:
        for rule in self._rules.get(organization_id, []):
            if rule.id == rule_id:
                return copy(rule)
        return None

    def list(self, organization_id: str, system: Optional[str] = None) -> List[FlowRule]:
        """Snapshot of an organization's rules, optionally for one system."""
        return [
            copy(rule) for rule in self._rules.get(organization_id, [])
            if system is None or rule.system == system
        ]

    def systems(self, organization_id: str) -> List[str]:
        """Distinct systems in creation order."""
        seen: dict[str, None] = {}
        for rule in self._rules.get(organization_id, []):
            seen.setdefault(rule.system, None)
        return list(seen)

    def remove(self, organization_id: str, rule_id: str) -> bool:
        rules = self._rules.get(organization_id, [])
        for i, rule in enumerate(rules):
            if rule.id == rule_id:
                del rules[i]
                return True
        return False
