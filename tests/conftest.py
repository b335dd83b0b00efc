"""Pytest configuration and fixtures for the flow engine tests.

All times are fixed naive datetimes; 2025-01-01 is a Wednesday.
"""

from datetime import datetime

import pytest

from processsutra.core.entities import FlowRule, TatType
from processsutra.engine.walker import NoWaitingTime
from processsutra.store import InMemoryRuleStore


def make_rule(
    current_task: str,
    next_task: str,
    status: str = "Done",
    tat: float = 1,
    tat_type: TatType = TatType.HOUR,
    system: str = "S",
    email: str = "doer@example.com",
    **kwargs,
) -> FlowRule:
    """Build a FlowRule with test defaults. Start rules get an empty status."""
    return FlowRule(
        system=system,
        current_task=current_task,
        status="" if current_task == "" else status,
        next_task=next_task,
        tat=tat,
        tat_type=tat_type,
        doer=kwargs.pop("doer", "Doer"),
        email=email,
        **kwargs,
    )


@pytest.fixture
def wednesday_9am() -> datetime:
    return datetime(2025, 1, 1, 9, 0)


@pytest.fixture
def no_wait() -> NoWaitingTime:
    return NoWaitingTime()


@pytest.fixture
def two_step_rules() -> list[FlowRule]:
    """Start -> A (1 hour), A/Done -> B (1 working day)."""
    return [
        make_rule("", "A", tat=1, tat_type=TatType.HOUR, email="a@example.com"),
        make_rule("A", "B", tat=1, tat_type=TatType.DAY, email="b@example.com"),
    ]


@pytest.fixture
def store() -> InMemoryRuleStore:
    return InMemoryRuleStore()


@pytest.fixture(name="make_rule")
def make_rule_fixture():
    return make_rule
