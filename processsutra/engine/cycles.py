"""
Flow Rule Cycle Detection

Depth-first search over the rule graph of one system to find loops a new
rule would close, e.g.:
- Self-reference: A -> A
- Two-step: A -> B -> A
- Multi-step: A -> B -> C -> D -> B

Loops are legal in projections (they are bounded by max_steps); the store
uses this check to warn, or to reject when configured to.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..core.entities import FlowRule
from ..core.exceptions import CycleDetectedError


@dataclass
class CycleDetectionResult:
    """Outcome of a cycle check."""
    has_cycle: bool = False
    cycle: list = field(default_factory=list)
    message: Optional[str] = None


def _build_graph(rules: Iterable[FlowRule]) -> dict[str, set]:
    """Task -> successor tasks across all statuses. Start rules are skipped."""
    graph: dict[str, set] = defaultdict(set)
    for rule in rules:
        if not rule.current_task:
            continue
        if rule.next_task:
            graph[rule.current_task].add(rule.next_task)
        else:
            graph.setdefault(rule.current_task, set())
    return graph


def reachable_tasks(rules: Iterable[FlowRule], start: str) -> set:
    """Tasks reachable from `start` by following rules of any status, `start` excluded unless it loops."""
    graph = _build_graph(rules)
    seen: set = set()
    stack = list(graph.get(start, ()))
    while stack:
        task = stack.pop()
        if task in seen:
            continue
        seen.add(task)
        stack.extend(graph.get(task, ()))
    return seen


def detect_cycle(
    existing_rules: Iterable[FlowRule],
    current_task: str,
    next_task: str,
    status: str = ""
) -> CycleDetectionResult:
    """Check whether adding current_task -[status]-> next_task creates a loop."""
    if current_task and current_task == next_task:
        return CycleDetectionResult(
            has_cycle=True,
            cycle=[current_task, next_task],
            message=(
                f'Self-referencing rule detected: Task "{current_task}" points to itself. '
                "This would create an infinite loop."
            )
        )

    candidate = FlowRule(current_task=current_task, next_task=next_task, status=status)
    graph = _build_graph([*existing_rules, candidate])

    visited: set = set()
    on_path: set = set()
    path: list = []

    def dfs(task: str) -> Optional[list]:
        visited.add(task)
        on_path.add(task)
        path.append(task)

        for neighbor in sorted(graph.get(task, ())):
            if neighbor in on_path:
                start = path.index(neighbor)
                return path[start:] + [neighbor]
            if neighbor not in visited:
                found = dfs(neighbor)
                if found:
                    return found

        on_path.discard(task)
        path.pop()
        return None

    if next_task:
        cycle = dfs(next_task)
        if cycle:
            return CycleDetectionResult(
                has_cycle=True,
                cycle=cycle,
                message=(
                    f"Circular dependency detected: {' → '.join(cycle)}. "
                    "This would create an infinite workflow loop."
                )
            )

    return CycleDetectionResult()


def validate_no_cycle(
    existing_rules: Iterable[FlowRule],
    current_task: str,
    next_task: str,
    status: str = ""
) -> None:
    """Raise CycleDetectedError if the rule would close a loop."""
    result = detect_cycle(existing_rules, current_task, next_task, status)
    if result.has_cycle:
        raise CycleDetectedError(result.message or "Circular dependency detected", result.cycle)
