"""Rule storage used by the flow runtime and the demo."""

from .rules import InMemoryRuleStore

__all__ = ["InMemoryRuleStore"]
