"""Run results and the closed set of wizard failures."""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class Cancelled(BaseModel):
    """The user aborted an interactive prompt."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["cancel"] = "cancel"

    def describe(self) -> str:
        return "Cancelled."


class TaskFailed(BaseModel):
    """A task failed and no error branch took over."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["task"] = "task"
    state_id: str
    cause: Any = None

    def describe(self) -> str:
        return f"Task '{self.state_id}' failed: {self.cause}"


class InvalidValue(BaseModel):
    """A supplied value was rejected, or a required one was missing."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["validation"] = "validation"
    state_id: Optional[str] = None
    message: str

    def describe(self) -> str:
        return self.message


WizardError = Union[Cancelled, TaskFailed, InvalidValue]


class WizardAbort(Exception):
    """Carries a WizardError out of the executor loop."""

    def __init__(self, error: WizardError):
        super().__init__(error.describe())
        self.error = error


class Result(BaseModel):
    """
    Outcome of one wizard run.

    Exactly one of `value` (on success) or `error` (on failure) is set.
    Partial output is never returned with a failure.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    value: Optional[Dict[str, Union[str, bool]]] = None
    error: Optional[WizardError] = None

    @classmethod
    def success(cls, value: Dict[str, Union[str, bool]]) -> "Result":
        return cls(ok=True, value=dict(value))

    @classmethod
    def failure(cls, error: WizardError) -> "Result":
        return cls(ok=False, error=error)

    def unwrap(self) -> Dict[str, Union[str, bool]]:
        """Return the output, raising WizardAbort if the run failed."""
        if not self.ok:
            raise WizardAbort(self.error)
        return self.value
