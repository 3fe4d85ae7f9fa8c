"""Headless execution - every value comes from prefill or defaults."""

import asyncio
import logging
from typing import Mapping, Optional

from .executor import DEFAULT_MAX_STEPS, LiveExecutor, check_value
from .machine import flag_name
from .result import InvalidValue, Result, WizardAbort
from .schema import ConfirmState, Machine, PromptState, Value

logger = logging.getLogger(__name__)


class HeadlessExecutor(LiveExecutor):
    """
    Runs a machine without asking anyone anything.

    For each prompt state the value is, in order: the supplied value
    (validated), the declared default, False for confirm states. Text and
    select states with neither fail the run. Tasks run for real.
    """

    def __init__(self, machine: Machine, provided: Mapping[str, Value],
                 accept_defaults: bool = False, cancel_event: Optional[asyncio.Event] = None,
                 max_steps: int = DEFAULT_MAX_STEPS):
        super().__init__(machine, cancel_event=cancel_event, max_steps=max_steps)
        self.provided = dict(provided)
        self.accept_defaults = accept_defaults

    async def resolve_value(self, state_id: str, state: PromptState, output) -> Value:
        if state_id in self.provided:
            return check_value(state_id, state, self.provided[state_id])

        if state.default_value is not None:
            return state.default_value

        if isinstance(state, ConfirmState):
            return False

        flag = flag_name(state_id)
        if self.accept_defaults:
            message = f"no default for {flag}"
        else:
            message = f"missing required flag {flag}"
        raise WizardAbort(InvalidValue(state_id=state_id, message=message))

    def task_started(self, state_id, state, output):
        logger.info("Running task %s: %s", state_id, state.message)


async def run_headless(machine: Machine, provided: Mapping[str, Value],
                       accept_defaults: bool = False,
                       cancel_event: Optional[asyncio.Event] = None,
                       max_steps: int = DEFAULT_MAX_STEPS) -> Result:
    """
    Run a machine headlessly.

    Args:
        machine: Machine to run
        provided: Values merged from flags, config and the positional argument
        accept_defaults: True when the caller asked for defaults (--yes);
            only changes the wording of missing-value errors
        cancel_event: Setting it aborts the run with a Cancelled error
        max_steps: Upper bound on transitions before the run is failed

    Returns:
        Result with the output, or the first error encountered
    """
    executor = HeadlessExecutor(machine, provided, accept_defaults=accept_defaults,
                                cancel_event=cancel_event, max_steps=max_steps)
    return await executor.run()
