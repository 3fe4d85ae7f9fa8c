"""Pydantic models for wizard machine definitions."""

import re
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


Value = Union[str, bool]
Transition = Union[str, None, Callable[..., Optional[str]]]


def flag_name(state_id: str) -> str:
    """Return the command-line flag for a state id.

    Examples:
        >>> flag_name('projectName')
        '--project-name'
        >>> flag_name('use_git')
        '--use-git'
    """
    kebab = re.sub(r'([A-Z])', lambda m: f'-{m.group(1).lower()}', state_id)
    return '--' + kebab.replace('_', '-').lstrip('-')


class Option(BaseModel):
    """A single choice offered by a select state."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: str = Field(..., description="Value recorded when this option is chosen")
    label: Optional[str] = Field(None, description="Display label (defaults to value)")
    hint: Optional[str] = Field(None, description="Secondary text shown next to the label")

    @property
    def display(self) -> str:
        return self.label if self.label is not None else self.value


class TextState(BaseModel):
    """
    Free-text prompt.

    The validator receives the raw string (or None) and returns an error
    message, or None when the value is acceptable. A validator that raises
    ValueError is treated as having returned the exception text.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["text"] = "text"
    message: str = Field(..., description="Prompt text shown to the user")
    placeholder: Optional[str] = Field(None, description="Hint shown in an empty input")
    default_value: Optional[str] = Field(None, description="Value used when nothing is supplied")
    positional: bool = Field(False, description="Accept this value as the positional argument")
    validator: Optional[Callable[..., Optional[str]]] = Field(None, description="Value check")
    next: Transition = Field(None, description="Next state id, None, or callable on the value")


class SelectState(BaseModel):
    """Single choice from an ordered list of options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["select"] = "select"
    message: str = Field(..., description="Prompt text shown to the user")
    options: List[Option] = Field(..., description="Ordered, non-empty list of choices")
    default_value: Optional[str] = Field(None, description="Value of the preselected option")
    next: Transition = Field(None, description="Next state id, None, or callable on the value")

    @model_validator(mode="after")
    def check_options(self) -> "SelectState":
        if not self.options:
            raise ValueError("select state needs at least one option")
        values = self.option_values()
        if len(set(values)) != len(values):
            raise ValueError(f"duplicate option values: {', '.join(values)}")
        if self.default_value is not None and self.default_value not in values:
            raise ValueError(
                f"default_value {self.default_value!r} is not one of {', '.join(values)}"
            )
        return self

    def option_values(self) -> List[str]:
        return [option.value for option in self.options]


class ConfirmState(BaseModel):
    """Yes/no question."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["confirm"] = "confirm"
    message: str = Field(..., description="Prompt text shown to the user")
    default_value: Optional[bool] = Field(None, description="Answer used when nothing is supplied")
    next: Transition = Field(None, description="Next state id, None, or callable on the value")


class TaskNext(BaseModel):
    """Where to go after a task succeeds or fails."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ok: Optional[str] = None
    err: Optional[str] = None


class TaskState(BaseModel):
    """
    Side effect run between prompts.

    `run` is called with a read-only copy of the values collected so far and
    may be a coroutine function. Tasks never contribute to the output.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["task"] = "task"
    message: str = Field(..., description="Progress text shown while the task runs")
    run: Callable[..., Any] = Field(..., description="Effect called with the collected values")
    next: TaskNext = Field(default_factory=TaskNext, description="Targets for ok/err outcomes")
    timeout: Optional[float] = Field(None, gt=0, description="Seconds before the task is failed")


PromptState = Union[TextState, SelectState, ConfirmState]
State = Annotated[
    Union[TextState, SelectState, ConfirmState, TaskState],
    Field(discriminator="type"),
]


def fixed_targets(state: Any) -> List[str]:
    """State ids a state can move to without calling user code."""
    if isinstance(state, TaskState):
        return [t for t in (state.next.ok, state.next.err) if t is not None]
    if isinstance(state.next, str):
        return [state.next]
    return []


class Machine(BaseModel):
    """
    Immutable wizard definition: an initial state id and the state graph.

    Construction fails when the initial state or any fixed transition target
    is unknown, when more than one text state is positional, when two
    prompt states share a command-line flag, or when fixed transitions
    form a cycle.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial: str = Field(..., description="Id of the first state")
    states: Dict[str, State] = Field(..., description="State definitions keyed by id")

    @model_validator(mode="after")
    def check_graph(self) -> "Machine":
        if self.initial not in self.states:
            raise ValueError(f"initial state {self.initial!r} is not defined")

        for state_id, state in self.states.items():
            for target in fixed_targets(state):
                if target not in self.states:
                    raise ValueError(
                        f"state {state_id!r} transitions to unknown state {target!r}"
                    )

        positional = [
            state_id for state_id, state in self.states.items()
            if isinstance(state, TextState) and state.positional
        ]
        if len(positional) > 1:
            raise ValueError(f"only one positional state allowed, got {', '.join(positional)}")

        owners: Dict[str, str] = {}
        for state_id, state in self.states.items():
            if isinstance(state, TaskState):
                continue
            flag = flag_name(state_id)
            names = [flag]
            if isinstance(state, ConfirmState):
                names.append('--no-' + flag[2:])
            for name in names:
                if name in owners:
                    raise ValueError(
                        f"states {owners[name]!r} and {state_id!r} both map to flag {name}"
                    )
                owners[name] = state_id

        cycle = self._find_fixed_cycle()
        if cycle:
            raise ValueError(f"transitions form a cycle: {' -> '.join(cycle)}")

        return self

    def _find_fixed_cycle(self) -> Optional[List[str]]:
        # Iterative DFS with white/grey/black colouring
        colour: Dict[str, int] = {}
        for root in self.states:
            if colour.get(root):
                continue
            stack = [(root, iter(fixed_targets(self.states[root])))]
            path = [root]
            colour[root] = 1
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    colour[node] = 2
                    stack.pop()
                    path.pop()
                    continue
                if colour.get(child) == 1:
                    return path[path.index(child):] + [child]
                if not colour.get(child):
                    colour[child] = 1
                    path.append(child)
                    stack.append((child, iter(fixed_targets(self.states[child]))))
        return None

    def prompt_ids(self) -> List[str]:
        """Ids of every non-task state in declaration order."""
        return [
            state_id for state_id, state in self.states.items()
            if not isinstance(state, TaskState)
        ]

    def positional_id(self) -> Optional[str]:
        for state_id, state in self.states.items():
            if isinstance(state, TextState) and state.positional:
                return state_id
        return None


def define_machine(initial: str, states: Dict[str, Any]) -> Machine:
    """
    Build a validated Machine from state models or plain dicts.

    Raises:
        pydantic.ValidationError: If the definition is malformed
    """
    return Machine(initial=initial, states=states)
