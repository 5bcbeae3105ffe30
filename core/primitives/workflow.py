"""
Studio Workflow Primitive - Generic State Machine
===================================================
Deterministic state machine schema shared by every lifecycle
that tracks a status (quotes, invoices).

RULES (NON-NEGOTIABLE):
- Invalid transitions are REJECTED, no silent state skips
- Terminal states accept no further transition
- The definition is immutable

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Hashable, Optional

from core.commands.rejection import ReasonCode, RejectionReason


def _state_name(state: Any) -> str:
    return getattr(state, "value", state)


# ══════════════════════════════════════════════════════════════
# WORKFLOW DEFINITION (state machine schema)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Defines the valid states and transitions for a workflow type.

    Fields:
        name:            Identifier for this workflow type (e.g. "quote")
        initial_state:   Starting state for all new instances
        terminal_states: States from which no further transitions are allowed
        transitions:     Dict of {from_state → frozenset(allowed_to_states)}
    """
    name: str
    initial_state: Hashable
    terminal_states: FrozenSet[Hashable]
    transitions: Dict[Hashable, FrozenSet[Hashable]]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{_state_name(self.initial_state)}' not in transitions."
            )
        for state in self.terminal_states:
            if self.transitions.get(state):
                raise ValueError(
                    f"terminal state '{_state_name(state)}' must not declare transitions."
                )

    def is_valid_transition(self, from_state: Hashable, to_state: Hashable) -> bool:
        """Check if a transition is allowed by this definition."""
        allowed = self.transitions.get(from_state, frozenset())
        return to_state in allowed

    def is_terminal(self, state: Hashable) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: Hashable) -> FrozenSet[Hashable]:
        return self.transitions.get(from_state, frozenset())

    def transition_rejection(
        self,
        from_state: Hashable,
        to_state: Hashable,
        policy_name: str,
    ) -> Optional[RejectionReason]:
        """RejectionReason describing a disallowed transition, else None."""
        if self.is_valid_transition(from_state, to_state):
            return None

        current, attempted = _state_name(from_state), _state_name(to_state)
        if self.is_terminal(from_state):
            message = (
                f"{self.name} is {current} (terminal); "
                f"cannot transition to {attempted}."
            )
        else:
            allowed = sorted(_state_name(s) for s in self.allowed_next_states(from_state))
            message = (
                f"{self.name} cannot transition from {current} to {attempted}. "
                f"Allowed: {allowed}."
            )
        return RejectionReason(
            code=ReasonCode.INVALID_TRANSITION,
            message=message,
            policy_name=policy_name,
            details={
                "entity": self.name,
                "current": current,
                "attempted": attempted,
            },
        )
