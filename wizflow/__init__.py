"""wizflow - declare a question flow once, run it interactively, headlessly or as a schema."""

from .cli import CLIOptions, CLIOutcome, create_cli, exit_with, run_cli
from .engine import (
    Option,
    TextState,
    SelectState,
    ConfirmState,
    TaskState,
    Machine,
    define_machine,
    Result,
    run_headless,
    run_interactive,
    generate_schema,
)

__version__ = '0.1.0'

__all__ = [
    'CLIOptions',
    'CLIOutcome',
    'create_cli',
    'exit_with',
    'run_cli',
    'Option',
    'TextState',
    'SelectState',
    'ConfirmState',
    'TaskState',
    'Machine',
    'define_machine',
    'Result',
    'run_headless',
    'run_interactive',
    'generate_schema',
]
