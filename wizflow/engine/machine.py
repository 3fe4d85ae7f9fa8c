"""Transition resolution and side-effect free traversal of a machine."""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .schema import (
    ConfirmState,
    Machine,
    PromptState,
    SelectState,
    TaskState,
    TextState,
    Value,
    flag_name,
)


def resolve_next(state: PromptState, value: Value) -> Optional[str]:
    """Resolve the next state id after a prompt state produced `value`.

    Fixed and terminal transitions ignore the value; a callable transition
    is invoked exactly once.
    """
    if isinstance(state, (TextState, SelectState, ConfirmState)):
        if state.next is None or isinstance(state.next, str):
            return state.next
        return state.next(value)
    raise TypeError(f"resolve_next does not handle {type(state).__name__}")


def resolve_task_next(state: TaskState, outcome: str) -> Optional[str]:
    """Look up the transition for a task outcome ('ok' or 'err')."""
    if outcome == 'ok':
        return state.next.ok
    if outcome == 'err':
        return state.next.err
    raise ValueError(f"Unknown task outcome: {outcome}")


def placeholder_value(state: PromptState) -> Value:
    """Direction-only value used when nothing was supplied and no default exists."""
    if isinstance(state, ConfirmState):
        return False
    if isinstance(state, SelectState):
        return state.options[0].value
    if isinstance(state, TextState):
        return ''
    raise TypeError(f"No placeholder for {type(state).__name__}")


def traverse_machine(machine: Machine, provided: Mapping[str, Value]) -> List[Tuple[str, PromptState]]:
    """Walk the prompt path a run would take, without running any task.

    Task states are assumed to succeed. Returns (state_id, state) pairs in
    visiting order. The walk stops at a terminal transition, an unknown id,
    or the first state visited twice.
    """
    visited: List[Tuple[str, PromptState]] = []
    seen = set()
    current_id = machine.initial

    while current_id is not None and current_id not in seen:
        state = machine.states.get(current_id)
        if state is None:
            break
        seen.add(current_id)

        if isinstance(state, TaskState):
            current_id = state.next.ok
            continue

        visited.append((current_id, state))
        if current_id in provided:
            effective = provided[current_id]
        elif state.default_value is not None:
            effective = state.default_value
        else:
            effective = placeholder_value(state)
        current_id = resolve_next(state, effective)

    return visited


def skipped_prefill(machine: Machine, provided: Mapping[str, Value]) -> List[Tuple[str, Value]]:
    """List (state_id, value) for prompts on the path already answered by `provided`."""
    return [
        (state_id, provided[state_id])
        for state_id, _ in traverse_machine(machine, provided)
        if state_id in provided
    ]


def interpolate_message(message: str, values: Dict[str, Any]) -> str:
    """Replace {key} placeholders with collected values.

    Unknown keys are left as-is.

    Examples:
        >>> interpolate_message("Install deps for {name}?", {'name': 'demo'})
        'Install deps for demo?'
    """
    def replacer(match):
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)

    return re.sub(r'\{([^{}]+)\}', replacer, message)


def validation_message(validator, value: Optional[str]) -> Optional[str]:
    """Run a text validator and return its error message, if any.

    Validators either return the message or raise ValueError.
    """
    if validator is None:
        return None
    try:
        return validator(value) or None
    except ValueError as e:
        return str(e) or 'invalid value'
