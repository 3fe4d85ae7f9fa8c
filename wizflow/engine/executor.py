"""Live execution loop shared by the headless and interactive executors."""

import asyncio
import inspect
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from .machine import flag_name, resolve_next, resolve_task_next, validation_message
from .renderer import parse_bool
from .result import Cancelled, InvalidValue, Result, TaskFailed, WizardAbort
from .schema import ConfirmState, Machine, PromptState, SelectState, TaskState, TextState, Value

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1000


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def interpret_outcome(outcome: Any) -> Tuple[bool, Any]:
    """Map what a task returned to (succeeded, cause).

    None and True mean success, False means failure, and a Result is
    taken at face value.
    """
    if isinstance(outcome, Result):
        return outcome.ok, outcome.error
    if outcome is False:
        return False, 'task reported failure'
    return True, None


async def execute_effect(state: TaskState, values: Dict[str, Value],
                         cancel_event: Optional[asyncio.Event] = None) -> Tuple[bool, Any]:
    """Run a task effect, honouring its timeout and an optional cancel event.

    Exceptions raised by the effect become the failure cause. Setting
    `cancel_event` while the effect runs raises WizardAbort(Cancelled()).
    A synchronous effect blocks the loop, so its timeout cannot fire early.
    """
    async def invoke():
        return await maybe_await(state.run(values))

    effect = asyncio.ensure_future(invoke())
    waiters = {effect}
    cancel_waiter = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=state.timeout,
                                     return_when=asyncio.FIRST_COMPLETED)
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if effect not in done:
        effect.cancel()
        try:
            await effect
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.debug("Task raised while being cancelled", exc_info=True)
        if cancel_event is not None and cancel_event.is_set():
            raise WizardAbort(Cancelled())
        return False, TimeoutError(f"timed out after {state.timeout}s")

    try:
        outcome = effect.result()
    except Exception as e:
        return False, e
    return interpret_outcome(outcome)


def check_value(state_id: str, state: PromptState, value: Any) -> Value:
    """Validate a supplied value for a prompt state.

    Returns the value to record (confirm answers given as text are parsed).

    Raises:
        WizardAbort: With InvalidValue if the value is rejected
    """
    flag = flag_name(state_id)

    if isinstance(state, TextState):
        if not isinstance(value, str):
            raise WizardAbort(InvalidValue(state_id=state_id, message=f"{flag}: expected a string"))
        error = validation_message(state.validator, value)
        if error:
            raise WizardAbort(InvalidValue(state_id=state_id, message=f"{flag}: {error}"))
        return value

    if isinstance(state, SelectState):
        valid = state.option_values()
        if not isinstance(value, str) or value not in valid:
            raise WizardAbort(InvalidValue(
                state_id=state_id, message=f"{flag}: must be one of {', '.join(valid)}"
            ))
        return value

    if isinstance(state, ConfirmState):
        if isinstance(value, bool):
            return value
        answer = parse_bool(str(value))
        if answer is None:
            raise WizardAbort(InvalidValue(state_id=state_id, message=f"{flag}: expected true or false"))
        return answer

    raise TypeError(f"check_value does not handle {type(state).__name__}")


class LiveExecutor:
    """
    Drives a machine from its initial state, running task effects.

    Subclasses decide how a prompt state gets its value and how task
    progress is reported. The output map belongs to a single run.
    """

    def __init__(self, machine: Machine, cancel_event: Optional[asyncio.Event] = None,
                 max_steps: int = DEFAULT_MAX_STEPS):
        self.machine = machine
        self.cancel_event = cancel_event
        self.max_steps = max_steps

    async def run(self) -> Result:
        output: Dict[str, Value] = {}
        try:
            await self._walk(output)
        except WizardAbort as e:
            logger.debug("Run aborted: %s", e.error.describe())
            return Result.failure(e.error)
        return Result.success(output)

    async def _walk(self, output: Dict[str, Value]) -> None:
        current_id: Optional[str] = self.machine.initial
        steps = 0

        while current_id is not None:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise WizardAbort(Cancelled())

            state = self.machine.states.get(current_id)
            if state is None:
                break

            steps += 1
            if steps > self.max_steps:
                raise WizardAbort(InvalidValue(
                    state_id=current_id,
                    message=f"flow did not terminate within {self.max_steps} steps",
                ))

            if isinstance(state, TaskState):
                current_id = await self._run_task(current_id, state, output)
                continue

            try:
                value = await self.resolve_value(current_id, state, output)
            except WizardAbort:
                raise
            except Exception as e:
                raise self._callable_failed(current_id, 'value check', e) from e
            output[current_id] = value
            logger.debug("State %s -> %r", current_id, value)

            try:
                target = resolve_next(state, value)
            except Exception as e:
                raise self._callable_failed(current_id, 'transition', e) from e
            current_id = self._checked(current_id, target)

    def _callable_failed(self, state_id: str, step: str, error: Exception) -> WizardAbort:
        # Validators and transitions are user code; what they raise ends the run
        logger.debug("State %s %s raised", state_id, step, exc_info=True)
        return WizardAbort(InvalidValue(
            state_id=state_id, message=f"state '{state_id}' {step} failed: {error}"
        ))

    async def _run_task(self, state_id: str, state: TaskState, output: Dict[str, Value]) -> Optional[str]:
        self.task_started(state_id, state, output)
        try:
            succeeded, cause = await execute_effect(state, dict(output), self.cancel_event)
        except WizardAbort as e:
            self.task_finished(state_id, state, output, False, e.error.describe())
            raise
        self.task_finished(state_id, state, output, succeeded, cause)
        logger.debug("Task %s %s", state_id, 'succeeded' if succeeded else f'failed: {cause}')

        if succeeded:
            return self._checked(state_id, resolve_task_next(state, 'ok'))

        target = resolve_task_next(state, 'err')
        if target is None:
            raise WizardAbort(TaskFailed(state_id=state_id, cause=cause))
        return self._checked(state_id, target)

    def _checked(self, state_id: str, target: Optional[str]) -> Optional[str]:
        # Fixed targets are checked when the machine is built; this catches callables
        if target is not None and target not in self.machine.states:
            raise WizardAbort(InvalidValue(
                state_id=state_id,
                message=f"state '{state_id}' moved to unknown state '{target}'",
            ))
        return target

    async def resolve_value(self, state_id: str, state: PromptState, output: Mapping[str, Value]) -> Value:
        raise NotImplementedError

    def task_started(self, state_id: str, state: TaskState, output: Mapping[str, Value]) -> None:
        pass

    def task_finished(self, state_id: str, state: TaskState, output: Mapping[str, Value],
                      succeeded: bool, cause: Any) -> None:
        pass
