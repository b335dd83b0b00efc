"""Unit tests for the live flow runtime."""

from datetime import datetime

import pytest

from processsutra.core.entities import TatType
from processsutra.core.exceptions import (
    FlowStartError,
    FormRequiredError,
    InvalidTATError,
    NoStartRuleError,
    TaskNotFoundError,
    TaskStateError,
    TenantAccessError,
)
from processsutra.core.schemas import FlowRuleCreate
from processsutra.runtime import FlowRuntime, TaskInstanceStatus

ORG = "org-1"
START = datetime(2025, 1, 1, 10, 0)


def add(store, current, status, next_task, tat=2, tat_type="hourtat", system="Orders", **extra):
    data = {
        "system": system,
        "currentTask": current,
        "status": status,
        "nextTask": next_task,
        "tat": tat,
        "tatType": tat_type,
        "doer": "Ops",
        "email": f"{next_task.lower()}@example.com",
    }
    data.update(extra)
    return store.add(ORG, data)


@pytest.fixture
def order_store(store):
    add(store, "", "", "Review", tat=2)
    add(store, "Review", "Approved", "Ship", tat=1, tat_type="daytat")
    add(store, "Review", "Rejected", "Rework", tat=4)
    add(store, "Rework", "Done", "Review", tat=2)
    return store


@pytest.fixture
def runtime(order_store) -> FlowRuntime:
    return FlowRuntime(order_store)


def start(runtime, system="Orders"):
    return runtime.start_flow(ORG, system, "ORD-1", "First order", "admin@example.com", START)


class TestStartFlow:
    """Flow creation."""

    def test_creates_first_task(self, runtime):
        flow, task = start(runtime)

        assert flow.order_number == "ORD-1"
        assert flow.initiated_at == START
        assert task.task_name == "Review"
        assert task.doer_email == "review@example.com"
        assert task.status == TaskInstanceStatus.PENDING
        assert task.planned_time == datetime(2025, 1, 1, 12, 0)
        assert runtime.get_flow(flow.flow_id) is flow
        assert runtime.tasks_for_flow(flow.flow_id) == [task]

    def test_required_fields(self, runtime):
        with pytest.raises(FlowStartError) as exc_info:
            runtime.start_flow(ORG, "Orders", "", "desc", "admin@example.com", START)
        assert exc_info.value.details == {"field": "order_number"}

        with pytest.raises(FlowStartError):
            runtime.start_flow(ORG, "Orders", "ORD-1", "", "admin@example.com", START)

    def test_system_without_start_rule(self, runtime):
        with pytest.raises(NoStartRuleError) as exc_info:
            start(runtime, system="Unknown")
        assert exc_info.value.message == "No starting rule found for this system"

    def test_rules_are_tenant_scoped(self, runtime):
        with pytest.raises(NoStartRuleError):
            runtime.start_flow("org-2", "Orders", "ORD-1", "desc", "admin@example.com", START)


class TestCompleteTask:
    """Completion and next-task creation."""

    def test_status_selects_branch(self, runtime):
        _, review = start(runtime)
        done, created = runtime.complete_task(
            ORG, review.id, "Approved", "review@example.com", datetime(2025, 1, 1, 11, 0)
        )

        assert done.status == TaskInstanceStatus.COMPLETED
        assert done.completion_status == "Approved"
        assert done.completed_at == datetime(2025, 1, 1, 11, 0)
        assert [t.task_name for t in created] == ["Ship"]
        assert created[0].planned_time == datetime(2025, 1, 2, 11, 0)

    def test_rejected_branch(self, runtime):
        _, review = start(runtime)
        _, created = runtime.complete_task(
            ORG, review.id, "Rejected", "review@example.com", datetime(2025, 1, 1, 11, 0)
        )
        assert [t.task_name for t in created] == ["Rework"]
        assert created[0].planned_time == datetime(2025, 1, 1, 15, 0)

    def test_loop_back_creates_new_task(self, runtime):
        flow, review = start(runtime)
        _, (rework,) = runtime.complete_task(ORG, review.id, "Rejected", "r@example.com", START)
        _, (second_review,) = runtime.complete_task(ORG, rework.id, "Done", "w@example.com", START)

        assert second_review.task_name == "Review"
        assert second_review.id != review.id
        assert len(runtime.tasks_for_flow(flow.flow_id)) == 3

    def test_unmapped_status_ends_flow(self, runtime):
        _, review = start(runtime)
        done, created = runtime.complete_task(ORG, review.id, "Escalated", "r@example.com", START)
        assert done.status == TaskInstanceStatus.COMPLETED
        assert created == []

    def test_terminal_rule_creates_nothing(self, order_store, runtime):
        add(order_store, "Ship", "Delivered", "")
        _, review = start(runtime)
        _, (ship,) = runtime.complete_task(ORG, review.id, "Approved", "r@example.com", START)
        _, created = runtime.complete_task(ORG, ship.id, "Delivered", "s@example.com", START)
        assert created == []

    def test_status_is_required(self, runtime):
        _, review = start(runtime)
        with pytest.raises(ValueError):
            runtime.complete_task(ORG, review.id, "", "r@example.com", START)

    def test_unknown_task(self, runtime):
        with pytest.raises(TaskNotFoundError):
            runtime.complete_task(ORG, "missing", "Approved", "r@example.com", START)

    def test_other_tenant_is_denied(self, runtime):
        _, review = start(runtime)
        with pytest.raises(TenantAccessError):
            runtime.complete_task("org-2", review.id, "Approved", "r@example.com", START)
        assert runtime.get_task(review.id).status == TaskInstanceStatus.PENDING

    def test_cannot_complete_twice(self, runtime):
        _, review = start(runtime)
        runtime.complete_task(ORG, review.id, "Approved", "r@example.com", START)
        with pytest.raises(TaskStateError):
            runtime.complete_task(ORG, review.id, "Approved", "r@example.com", START)


class TestFormGate:
    """Tasks linked to a form."""

    @pytest.fixture
    def form_runtime(self, store):
        add(store, "", "", "KYC", formId="kyc-form")
        add(store, "KYC", "Done", "Approve")
        return FlowRuntime(store)

    def test_completion_requires_submission(self, form_runtime):
        _, kyc = start(form_runtime)
        assert kyc.form_id == "kyc-form"

        with pytest.raises(FormRequiredError) as exc_info:
            form_runtime.complete_task(ORG, kyc.id, "Done", "kyc@example.com", START)
        assert exc_info.value.details["form_id"] == "kyc-form"

        submission = form_runtime.submit_form(kyc.id, {"pan": "ABCDE1234F"}, "kyc@example.com", START)
        assert submission.response_id.startswith("resp_")
        assert form_runtime.submissions_for_task(kyc.id) == [submission]

        _, created = form_runtime.complete_task(ORG, kyc.id, "Done", "kyc@example.com", START)
        assert [t.task_name for t in created] == ["Approve"]

    def test_submit_to_unknown_task(self, form_runtime):
        with pytest.raises(TaskNotFoundError):
            form_runtime.submit_form("missing", {}, "kyc@example.com", START)


class TestMerge:
    """Several rules leading to one task."""

    def _parallel(self, store, merge):
        add(store, "", "", "Intake")
        add(store, "Intake", "Done", "Legal")
        add(store, "Intake", "Done", "Finance")
        add(store, "Legal", "Done", "Sign", mergeCondition=merge)
        add(store, "Finance", "Done", "Sign", mergeCondition=merge)
        runtime = FlowRuntime(store)
        _, intake = start(runtime)
        _, parallel = runtime.complete_task(ORG, intake.id, "Done", "i@example.com", START)
        return runtime, {t.task_name: t for t in parallel}

    def test_fan_out(self, store):
        _, parallel = self._parallel(store, "all")
        assert set(parallel) == {"Legal", "Finance"}

    def test_all_waits_for_every_branch(self, store):
        runtime, parallel = self._parallel(store, "all")

        _, created = runtime.complete_task(ORG, parallel["Legal"].id, "Done", "l@example.com", START)
        assert created == []

        _, created = runtime.complete_task(ORG, parallel["Finance"].id, "Done", "f@example.com", START)
        assert [t.task_name for t in created] == ["Sign"]

    def test_any_proceeds_once(self, store):
        runtime, parallel = self._parallel(store, "any")

        _, created = runtime.complete_task(ORG, parallel["Finance"].id, "Done", "f@example.com", START)
        assert [t.task_name for t in created] == ["Sign"]

        _, created = runtime.complete_task(ORG, parallel["Legal"].id, "Done", "l@example.com", START)
        assert created == []


class TestLoops:
    """Follow-up loops back into a task that is not the first."""

    def test_loop_edge_is_not_a_merge_prerequisite(self, store):
        add(store, "", "", "Collect")
        add(store, "Collect", "Done", "Verify")
        add(store, "Verify", "Rejected", "Followup")
        add(store, "Followup", "Done", "Verify")
        runtime = FlowRuntime(store)

        flow, collect = start(runtime)
        _, (verify,) = runtime.complete_task(ORG, collect.id, "Done", "c@example.com", START)
        assert verify.task_name == "Verify"

        _, (followup,) = runtime.complete_task(ORG, verify.id, "Rejected", "v@example.com", START)
        _, (second_verify,) = runtime.complete_task(ORG, followup.id, "Done", "f@example.com", START)

        assert second_verify.task_name == "Verify"
        assert second_verify.id != verify.id
        assert [t.task_name for t in runtime.tasks_for_flow(flow.flow_id)] == [
            "Collect", "Verify", "Followup", "Verify"
        ]


def unchecked_rule(current, status, next_task, tat, tat_type):
    """A rule that skips schema validation, as rules loaded from elsewhere may."""
    return FlowRuleCreate.model_construct(
        system="Orders",
        current_task=current,
        status=status,
        next_task=next_task,
        tat=tat,
        tat_type=tat_type,
        doer="Ops",
        email="ops@example.com",
    )


class TestFailedPlanning:
    """A TAT that cannot be planned leaves no partial state."""

    def test_completion_is_retryable(self, store):
        add(store, "", "", "A")
        bad = store.add(ORG, unchecked_rule("A", "Done", "B", 30, TatType.SPECIFY))
        runtime = FlowRuntime(store)
        flow, task = start(runtime)

        with pytest.raises(InvalidTATError):
            runtime.complete_task(ORG, task.id, "Done", "a@example.com", START)

        assert runtime.get_task(task.id).status == TaskInstanceStatus.PENDING
        assert runtime.get_task(task.id).completed_at is None
        assert [t.task_name for t in runtime.tasks_for_flow(flow.flow_id)] == ["A"]

        store.remove(ORG, bad.id)
        add(store, "A", "Done", "B", tat=14, tat_type="specifytat")
        done, created = runtime.complete_task(ORG, task.id, "Done", "a@example.com", START)
        assert done.status == TaskInstanceStatus.COMPLETED
        assert [t.planned_time for t in created] == [datetime(2025, 1, 2, 14, 0)]

    def test_failed_start_registers_nothing(self, store):
        store.add(ORG, unchecked_rule("", "", "A", 30, TatType.SPECIFY))
        runtime = FlowRuntime(store)

        with pytest.raises(InvalidTATError):
            start(runtime)
        assert runtime.flows_for_organization(ORG) == []

    def test_start_rule_without_first_task(self, store):
        store.add(ORG, unchecked_rule("", "", "", 1, TatType.HOUR))
        runtime = FlowRuntime(store)

        with pytest.raises(FlowStartError) as exc_info:
            start(runtime)
        assert exc_info.value.details == {"field": "next_task"}
        assert runtime.flows_for_organization(ORG) == []
