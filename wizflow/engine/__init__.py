"""Wizard engine - declarative state machines run headlessly or interactively."""

from .schema import (
    Option,
    TextState,
    SelectState,
    ConfirmState,
    TaskState,
    TaskNext,
    Machine,
    define_machine,
)
from .result import Cancelled, TaskFailed, InvalidValue, Result, WizardAbort
from .machine import resolve_next, resolve_task_next, traverse_machine, skipped_prefill, flag_name
from .headless import HeadlessExecutor, run_headless
from .interactive import InteractiveExecutor, run_interactive
from .renderer import PromptRenderer, ConsoleRenderer, MockRenderer, CANCEL, is_cancel
from .introspect import generate_schema, format_help
from .loader import ConfigError, MachineLoader, load_config

__all__ = [
    'Option',
    'TextState',
    'SelectState',
    'ConfirmState',
    'TaskState',
    'TaskNext',
    'Machine',
    'define_machine',
    'Cancelled',
    'TaskFailed',
    'InvalidValue',
    'Result',
    'WizardAbort',
    'resolve_next',
    'resolve_task_next',
    'traverse_machine',
    'skipped_prefill',
    'flag_name',
    'HeadlessExecutor',
    'run_headless',
    'InteractiveExecutor',
    'run_interactive',
    'PromptRenderer',
    'ConsoleRenderer',
    'MockRenderer',
    'CANCEL',
    'is_cancel',
    'generate_schema',
    'format_help',
    'ConfigError',
    'MachineLoader',
    'load_config',
]
