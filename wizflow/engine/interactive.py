"""Interactive execution - prompts for whatever prefill does not cover."""

import asyncio
import logging
from typing import Mapping, Optional

from .executor import DEFAULT_MAX_STEPS, LiveExecutor, check_value, maybe_await
from .machine import interpolate_message
from .renderer import PromptRenderer, is_cancel
from .result import Cancelled, Result, WizardAbort
from .schema import ConfirmState, Machine, PromptState, SelectState, TextState, Value

logger = logging.getLogger(__name__)


class InteractiveExecutor(LiveExecutor):
    """
    Runs a machine, asking the renderer for any value not prefilled.

    Prefilled values are validated first; a rejected prefill is reported
    and the user is asked instead. Task progress is shown as a spinner.
    """

    def __init__(self, machine: Machine, prefill: Mapping[str, Value], renderer: PromptRenderer,
                 cancel_event: Optional[asyncio.Event] = None,
                 max_steps: int = DEFAULT_MAX_STEPS):
        super().__init__(machine, cancel_event=cancel_event, max_steps=max_steps)
        self.prefill = dict(prefill)
        self.renderer = renderer

    async def resolve_value(self, state_id: str, state: PromptState, output) -> Value:
        if state_id in self.prefill:
            try:
                return check_value(state_id, state, self.prefill[state_id])
            except WizardAbort as e:
                self.renderer.info(f"Ignoring {e.error.describe()}")

        answer = await maybe_await(self._prompt(state, output))
        if is_cancel(answer):
            self.renderer.cancel("Cancelled.")
            raise WizardAbort(Cancelled())
        return answer

    def _prompt(self, state: PromptState, output):
        message = interpolate_message(state.message, output)

        if isinstance(state, TextState):
            return self.renderer.text(message, placeholder=state.placeholder,
                                      initial=state.default_value, validator=state.validator)
        if isinstance(state, SelectState):
            return self.renderer.select(message, state.options, initial=state.default_value)
        if isinstance(state, ConfirmState):
            initial = state.default_value if state.default_value is not None else False
            return self.renderer.confirm(message, initial=initial)
        raise TypeError(f"Cannot prompt for {type(state).__name__}")

    def task_started(self, state_id, state, output):
        self.renderer.spinner_start(interpolate_message(state.message, output))

    def task_finished(self, state_id, state, output, succeeded, cause):
        message = interpolate_message(state.message, output)
        if succeeded:
            self.renderer.spinner_stop(message)
        else:
            self.renderer.spinner_stop(f"{message}: {cause}", failed=True)


async def run_interactive(machine: Machine, prefill: Mapping[str, Value], renderer: PromptRenderer,
                          cancel_event: Optional[asyncio.Event] = None,
                          max_steps: int = DEFAULT_MAX_STEPS) -> Result:
    """
    Run a machine, prompting through `renderer` for missing values.

    Returns:
        Result with the output, Cancelled if the user aborted, or the
        first task/validation error
    """
    executor = InteractiveExecutor(machine, prefill, renderer,
                                   cancel_event=cancel_event, max_steps=max_steps)
    return await executor.run()
