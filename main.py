#!/usr/bin/env python3
"""
ProcessSutra Flow Engine - Main Demo

This script demonstrates the flow engine on a sample onboarding workflow.

It runs:
1. Timeline projection from the flow rules
2. A simulated playback of that timeline
3. A live flow started and advanced through the runtime
"""

from datetime import datetime
import logging

from processsutra.config import get_settings
from processsutra.engine import detect_cycle, project_timeline
from processsutra.runtime import FlowRuntime
from processsutra.simulation import MetricsCalculator, Simulator
from processsutra.store import InMemoryRuleStore

DEMO_ORG = "demo-org"
DEMO_SYSTEM = "CRM Onboarding"

DEMO_RULES = [
    {"system": DEMO_SYSTEM, "currentTask": "", "status": "", "nextTask": "Collect Documents",
     "tat": 2, "tatType": "hourtat", "doer": "Sales", "email": "sales@example.com"},
    {"system": DEMO_SYSTEM, "currentTask": "Collect Documents", "status": "Done",
     "nextTask": "Verify KYC", "tat": 1, "tatType": "daytat", "doer": "Compliance",
     "email": "kyc@example.com", "formId": "kyc-form"},
    {"system": DEMO_SYSTEM, "currentTask": "Verify KYC", "status": "Done",
     "nextTask": "Create Account", "tat": 3, "tatType": "hourtat", "doer": "Ops",
     "email": "ops@example.com"},
    {"system": DEMO_SYSTEM, "currentTask": "Verify KYC", "status": "Rejected",
     "nextTask": "Followup", "tat": 4, "tatType": "hourtat", "doer": "Sales",
     "email": "sales@example.com"},
    {"system": DEMO_SYSTEM, "currentTask": "Followup", "status": "Done",
     "nextTask": "Verify KYC", "tat": 1, "tatType": "daytat", "doer": "Compliance",
     "email": "kyc@example.com"},
    {"system": DEMO_SYSTEM, "currentTask": "Create Account", "status": "Done",
     "nextTask": "Welcome Call", "tat": 1, "tatType": "beforetat", "doer": "Support",
     "email": "support@example.com"},
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def build_store(reject_cycles: bool) -> InMemoryRuleStore:
    store = InMemoryRuleStore(reject_cycles=reject_cycles)
    for data in DEMO_RULES:
        store.add(DEMO_ORG, data, created_by="demo")
    return store


def run_projection_demo(store: InMemoryRuleStore, now: datetime) -> None:
    """Project the onboarding flow."""
    settings = get_settings()
    print("=" * 60)
    print(f"PROJECTED TIMELINE: {DEMO_SYSTEM}")
    print("=" * 60)

    tasks = project_timeline(
        DEMO_SYSTEM,
        store.list(DEMO_ORG, DEMO_SYSTEM),
        now,
        params=settings.throughput.to_params(),
        office_hours=settings.office_hours.to_office_hours(),
        max_steps=settings.simulation.max_steps,
        completion_status=settings.simulation.completion_status
    )
    if not tasks:
        print("No starting rule found for this system")
        return

    print(f"{'#':<3} {'Task':<20} {'Doer':<22} {'Start':<17} {'Planned end':<17}")
    print("-" * 80)
    for i, task in enumerate(tasks, 1):
        print(
            f"{i:<3} {task.task_name:<20} {task.doer_email:<22} "
            f"{task.start_time:%Y-%m-%d %H:%M} {task.planned_end_time:%Y-%m-%d %H:%M}"
        )
    print()


def run_simulation_demo(store: InMemoryRuleStore, now: datetime) -> None:
    """Play the projected timeline on a simulated clock."""
    settings = get_settings()
    print("=" * 60)
    print("SIMULATION")
    print("=" * 60)

    simulator = Simulator(settings.simulation_config())
    simulation = simulator.start(DEMO_SYSTEM, store.list(DEMO_ORG, DEMO_SYSTEM), now)
    summary = simulator.run()

    print(f"Order: {simulation.order_number}, ticks: {simulation.ticks}")
    print(f"Completed: {summary.completed_count}/{summary.total} ({summary.performance_percent:.0f}%)")
    print(f"Total throughput time: {summary.total_throughput_hours:.1f} hours")

    metrics = MetricsCalculator().calculate(simulation.tasks)
    print(f"On-time rate: {metrics.on_time_rate:.0%}, bottleneck: {metrics.bottleneck}")
    for doer in metrics.doers.values():
        print(f"  - {doer.doer_email:<22} tasks={doer.task_count} planned={doer.planned_hours:.1f}h")
    print()


def run_runtime_demo(store: InMemoryRuleStore, now: datetime) -> None:
    """Start a live flow and complete its first tasks."""
    settings = get_settings()
    print("=" * 60)
    print("LIVE FLOW")
    print("=" * 60)

    runtime = FlowRuntime(store, settings.calendar.to_tat_config())
    flow, task = runtime.start_flow(
        DEMO_ORG, DEMO_SYSTEM, "ORD-1001", "Onboard ACME Corp", "admin@example.com", now
    )
    print(f"Flow {flow.flow_id} started; first task {task.task_name!r} due {task.planned_time:%Y-%m-%d %H:%M}")

    _, created = runtime.complete_task(DEMO_ORG, task.id, "Done", task.doer_email, task.planned_time)
    for next_task in created:
        print(f"  -> {next_task.task_name!r} for {next_task.doer_email} due {next_task.planned_time:%Y-%m-%d %H:%M}")

    check = detect_cycle(store.list(DEMO_ORG, DEMO_SYSTEM), "Welcome Call", "Collect Documents", "Done")
    print(f"Adding 'Welcome Call -> Collect Documents' would loop: {check.has_cycle}")
    print()


def main():
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)

    now = datetime.now().replace(hour=9, minute=0, second=0, microsecond=0)
    store = build_store(settings.reject_cycles)

    run_projection_demo(store, now)
    run_simulation_demo(store, now)
    run_runtime_demo(store, now)


if __name__ == "__main__":
    main()
