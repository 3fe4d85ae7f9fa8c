"""PromptRenderer interface - all user interaction goes here."""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Union

from .machine import validation_message
from .schema import Option


class _CancelSignal:
    """Returned by a renderer instead of a value when the user aborts."""

    def __repr__(self):
        return 'CANCEL'


CANCEL = _CancelSignal()

TRUE_WORDS = ('y', 'yes', 'true', '1')
FALSE_WORDS = ('n', 'no', 'false', '0')


def is_cancel(value: Any) -> bool:
    return value is CANCEL


def parse_bool(text: str) -> Optional[bool]:
    """Parse y/yes/true/1 or n/no/false/0; None for anything else."""
    word = text.lower().strip()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    return None


class PromptRenderer(ABC):
    """Interface for prompting the user and reporting progress."""

    @abstractmethod
    def text(self, message: str, placeholder: Optional[str] = None,
             initial: Optional[str] = None,
             validator: Optional[Callable[..., Optional[str]]] = None) -> Union[str, _CancelSignal]:
        """Ask for free text, re-prompting until the validator accepts it."""
        pass

    @abstractmethod
    def select(self, message: str, options: Sequence[Option],
               initial: Optional[str] = None) -> Union[str, _CancelSignal]:
        """Ask the user to choose one option; returns the option value."""
        pass

    @abstractmethod
    def confirm(self, message: str, initial: bool = False) -> Union[bool, _CancelSignal]:
        """Ask a yes/no question."""
        pass

    @abstractmethod
    def spinner_start(self, message: str) -> None:
        """Show a progress indicator while a task runs."""
        pass

    @abstractmethod
    def spinner_stop(self, message: str, failed: bool = False) -> None:
        """Replace the progress indicator with a done or failed message."""
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        """Show an informational line."""
        pass

    @abstractmethod
    def intro(self, message: str) -> None:
        pass

    @abstractmethod
    def outro(self, message: str) -> None:
        pass

    @abstractmethod
    def cancel(self, message: str) -> None:
        """Tell the user the wizard was aborted."""
        pass


class ConsoleRenderer(PromptRenderer):
    """Real implementation - reads stdin and writes stdout."""

    def __init__(self, input_fn: Callable[[str], str] = input, output_fn: Callable[..., None] = print):
        self._input = input_fn
        self._print = output_fn

    def _ask(self, prompt: str) -> Union[str, _CancelSignal]:
        try:
            return self._input(prompt).strip()
        except (EOFError, KeyboardInterrupt):
            self._print()
            return CANCEL

    def text(self, message, placeholder=None, initial=None, validator=None):
        hint = f" ({placeholder})" if placeholder and not initial else ''
        default_display = f" [{initial}]" if initial else ''
        while True:
            response = self._ask(f"{message}{hint}{default_display}: ")
            if is_cancel(response):
                return CANCEL
            value = response or (initial or '')
            error = validation_message(validator, value)
            if error:
                self._print(f"Error: {error}")
                continue
            return value

    def select(self, message, options, initial=None):
        self._print(message)
        for i, option in enumerate(options, 1):
            marker = '*' if option.value == initial else ' '
            hint = f"  ({option.hint})" if option.hint else ''
            self._print(f" {marker}{i}. {option.display}{hint}")

        values = [option.value for option in options]
        fallback = initial if initial is not None else values[0]
        while True:
            response = self._ask(f"Choose 1-{len(options)} [{fallback}]: ")
            if is_cancel(response):
                return CANCEL
            if not response:
                return fallback
            if response.isdigit() and 1 <= int(response) <= len(options):
                return values[int(response) - 1]
            if response in values:
                return response
            self._print(f"Error: must be one of {', '.join(values)}")

    def confirm(self, message, initial=False):
        default_display = 'Y/n' if initial else 'y/N'
        while True:
            response = self._ask(f"{message} [{default_display}]: ")
            if is_cancel(response):
                return CANCEL
            if not response:
                return initial
            answer = parse_bool(response)
            if answer is not None:
                return answer
            self._print("Error: please answer y or n")

    def spinner_start(self, message):
        self._print(f"… {message}")

    def spinner_stop(self, message, failed=False):
        self._print(f"{'✗' if failed else '✓'} {message}")

    def info(self, message):
        self._print(f"• {message}")

    def intro(self, message):
        self._print(message)
        self._print()

    def outro(self, message):
        self._print()
        self._print(message)

    def cancel(self, message):
        self._print(message)


class MockRenderer(PromptRenderer):
    """Mock for testing - records calls and answers from input_queue.

    Queue entries are returned as-is, except '' (take the initial value) and
    CANCEL (abort the prompt). A text answer rejected by the validator is
    recorded as an ('error', message) call and the next entry is used.
    A confirm entry that is not a recognised yes/no string raises ValueError.
    """

    def __init__(self, input_queue: Optional[List[Any]] = None):
        self.calls: List[tuple] = []
        self.input_queue: List[Any] = list(input_queue or [])

    def _next(self):
        return self.input_queue.pop(0) if self.input_queue else ''

    def text(self, message, placeholder=None, initial=None, validator=None):
        self.calls.append(('text', message, placeholder, initial))
        while True:
            response = self._next()
            if is_cancel(response):
                return CANCEL
            value = response if response != '' else (initial or '')
            error = validation_message(validator, value)
            if error is None:
                return value
            self.calls.append(('error', error))
            if not self.input_queue:
                # Nothing left to retry with; treat like the user giving up
                return CANCEL

    def select(self, message, options, initial=None):
        self.calls.append(('select', message, [o.value for o in options], initial))
        response = self._next()
        if is_cancel(response):
            return CANCEL
        if response == '':
            return initial if initial is not None else options[0].value
        return response

    def confirm(self, message, initial=False):
        self.calls.append(('confirm', message, initial))
        response = self._next()
        if is_cancel(response):
            return CANCEL
        if response == '':
            return initial
        if isinstance(response, str):
            answer = parse_bool(response)
            if answer is None:
                raise ValueError(f"MockRenderer cannot read {response!r} as a yes/no answer")
            return answer
        return bool(response)

    def spinner_start(self, message):
        self.calls.append(('spinner_start', message))

    def spinner_stop(self, message, failed=False):
        self.calls.append(('spinner_stop', message, failed))

    def info(self, message):
        self.calls.append(('info', message))

    def intro(self, message):
        self.calls.append(('intro', message))

    def outro(self, message):
        self.calls.append(('outro', message))

    def cancel(self, message):
        self.calls.append(('cancel', message))
