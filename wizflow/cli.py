"""Command-line front end: flag parsing, value merging and mode selection."""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .engine.headless import run_headless
from .engine.interactive import run_interactive
from .engine.introspect import format_help, generate_schema
from .engine.loader import ConfigError, load_config
from .engine.machine import flag_name, skipped_prefill
from .engine.renderer import ConsoleRenderer, PromptRenderer
from .engine.result import InvalidValue, Result
from .engine.schema import ConfirmState, Machine, TaskState, Value

logger = logging.getLogger(__name__)

VERBOSE_ENV = 'WIZFLOW_VERBOSE'
RESERVED_FLAGS = ('--config', '--schema', '--yes', '--help', '--verbose', '-y', '-h')

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def configure_logging(log_level: str = "INFO"):
    """Configure logging for wizard runs (first call wins).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    if hasattr(configure_logging, "has_run"):
        return

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger('wizflow')
    root.addHandler(handler)
    root.setLevel(numeric_level)

    configure_logging.has_run = True
    logger.debug("Logging configured at level: %s", log_level)


class CLIOptions(BaseModel):
    """Presentation and argv settings for create_cli."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    prog: str = Field('wizard', description="Program name shown in --help")
    description: Optional[str] = Field(None, description="Text shown above --help usage")
    intro: Optional[str] = Field(None, description="Banner shown before interactive prompts")
    outro: Union[str, Callable[[Dict[str, Value]], str], None] = Field(
        None, description="Closing text, or a callable building it from the output"
    )
    args: Optional[List[str]] = Field(None, description="Arguments to parse (default: sys.argv[1:])")


class CLIOutcome(BaseModel):
    """What the process should do once the wizard returns."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    exit_code: int
    message: str = ''
    result: Optional[Result] = None


class FlagError(ValueError):
    """Command-line arguments could not be parsed."""


class _FlagParser(argparse.ArgumentParser):
    def error(self, message):
        raise FlagError(message)


class ParsedFlags(NamedTuple):
    values: Dict[str, Value]
    positionals: List[str]
    config: Optional[str]
    schema: bool
    yes: bool
    help: bool
    verbose: bool


def build_parser(machine: Machine, prog: str = 'wizard') -> argparse.ArgumentParser:
    """Build a non-strict parser with one option per prompt state.

    Confirm states get --flag/--no-flag. State options have no parser
    default so that absent flags never shadow config values.
    """
    parser = _FlagParser(prog=prog, add_help=False, allow_abbrev=False)

    for state_id, state in machine.states.items():
        if isinstance(state, TaskState):
            continue
        flag = flag_name(state_id)
        if flag in RESERVED_FLAGS:
            raise ValueError(f"State '{state_id}' maps to reserved flag {flag}")
        if isinstance(state, ConfirmState):
            parser.add_argument(flag, dest=state_id, action=argparse.BooleanOptionalAction,
                                default=argparse.SUPPRESS)
        else:
            parser.add_argument(flag, dest=state_id, default=argparse.SUPPRESS)

    parser.add_argument('--config', dest='_config', default=None)
    parser.add_argument('--schema', dest='_schema', action='store_true')
    parser.add_argument('-y', '--yes', dest='_yes', action='store_true')
    parser.add_argument('-h', '--help', dest='_help', action='store_true')
    parser.add_argument('--verbose', dest='_verbose', action='store_true')
    return parser


def parse_flags(machine: Machine, args: Sequence[str], prog: str = 'wizard') -> ParsedFlags:
    """
    Parse argv for a machine.

    Unknown flags are tolerated; leftover tokens not starting with '-'
    are returned as positionals.

    Raises:
        FlagError: If a known flag is malformed (e.g., missing its value)
    """
    parser = build_parser(machine, prog)
    namespace, extras = parser.parse_known_args(list(args))
    parsed = vars(namespace)

    unknown = [token for token in extras if token.startswith('-')]
    if unknown:
        logger.debug("Ignoring unknown flags: %s", ' '.join(unknown))

    return ParsedFlags(
        values={k: v for k, v in parsed.items() if not k.startswith('_')},
        positionals=[token for token in extras if not token.startswith('-')],
        config=parsed['_config'],
        schema=parsed['_schema'],
        yes=parsed['_yes'],
        help=parsed['_help'],
        verbose=parsed['_verbose'],
    )


def merge_values(machine: Machine, flags: Mapping[str, Value],
                 config: Optional[Mapping[str, Any]] = None,
                 positionals: Sequence[str] = ()) -> Dict[str, Value]:
    """
    Merge value sources into one prefill map.

    Precedence: flags, then config (keys may be state ids or flag names
    without dashes), then the first positional for the positional state.
    Defaults are applied later by the executors.
    """
    merged: Dict[str, Value] = dict(flags)

    lookup = {}
    for state_id in machine.prompt_ids():
        lookup[flag_name(state_id)[2:]] = state_id
        lookup[state_id] = state_id

    for key, value in (config or {}).items():
        state_id = lookup.get(key)
        if state_id is None:
            logger.debug("Ignoring config key with no matching state: %s", key)
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, (str, bool)):
            logger.warning("Ignoring config value for %s: expected string or boolean", key)
            continue
        merged.setdefault(state_id, value)

    positional_id = machine.positional_id()
    if positional_id is not None and positionals and positional_id not in merged:
        merged[positional_id] = positionals[0]

    return merged


def _outro_text(options: CLIOptions, output: Dict[str, Value]) -> str:
    if callable(options.outro):
        return options.outro(output)
    return options.outro if options.outro is not None else "Done!"


def _failed(result: Result) -> CLIOutcome:
    error = result.error
    if error.kind == 'cancel':
        return CLIOutcome(exit_code=EXIT_CANCELLED, message='', result=result)
    return CLIOutcome(exit_code=EXIT_FAILURE, message=f"Error: {error.describe()}", result=result)


async def create_cli(machine: Machine, options: Optional[CLIOptions] = None,
                     renderer: Optional[PromptRenderer] = None,
                     interactive: Optional[bool] = None,
                     cancel_event: Optional[asyncio.Event] = None) -> CLIOutcome:
    """
    Run a machine as a command-line wizard.

    --schema and --help short-circuit. Otherwise values are merged from
    flags, --config and the positional argument, and the machine runs
    headlessly when stdin is not a terminal or --yes was given, and
    interactively through `renderer` otherwise.

    Args:
        machine: Machine to run
        options: Presentation and argv settings
        renderer: Prompt renderer for interactive mode (default: ConsoleRenderer)
        interactive: Override terminal detection
        cancel_event: Setting it aborts the run with a Cancelled error

    Returns:
        CLIOutcome; the caller decides whether to print it and exit
    """
    options = options or CLIOptions()
    args = options.args if options.args is not None else sys.argv[1:]

    try:
        parsed = parse_flags(machine, args, prog=options.prog)
    except FlagError as e:
        return _failed(Result.failure(InvalidValue(message=str(e))))

    if parsed.verbose or os.environ.get(VERBOSE_ENV):
        configure_logging("DEBUG")

    if parsed.schema:
        return CLIOutcome(exit_code=EXIT_OK, message=json.dumps(generate_schema(machine), indent=2))

    if parsed.help:
        return CLIOutcome(exit_code=EXIT_OK,
                          message=format_help(machine, prog=options.prog, description=options.description))

    config = None
    if parsed.config is not None:
        try:
            config = load_config(parsed.config)
        except ConfigError as e:
            return _failed(Result.failure(InvalidValue(message=str(e))))

    values = merge_values(machine, parsed.values, config, parsed.positionals)

    if interactive is None:
        interactive = sys.stdin.isatty()

    if not interactive or parsed.yes:
        logger.debug("Running headless with %d prefilled values", len(values))
        result = await run_headless(machine, values, accept_defaults=parsed.yes,
                                    cancel_event=cancel_event)
        if not result.ok:
            return _failed(result)
        return CLIOutcome(exit_code=EXIT_OK, message=_outro_text(options, result.value), result=result)

    renderer = renderer or ConsoleRenderer()
    renderer.intro(options.intro or options.prog)
    for state_id, value in skipped_prefill(machine, values):
        renderer.info(f"{flag_name(state_id)[2:]}: {value}")

    result = await run_interactive(machine, values, renderer, cancel_event=cancel_event)
    if not result.ok:
        return _failed(result)
    renderer.outro(_outro_text(options, result.value))
    return CLIOutcome(exit_code=EXIT_OK, result=result)


def run_cli(machine: Machine, options: Optional[CLIOptions] = None, **kwargs) -> CLIOutcome:
    """Synchronous wrapper around create_cli."""
    return asyncio.run(create_cli(machine, options, **kwargs))


def exit_with(outcome: CLIOutcome):
    """Print the outcome message and terminate the process with its exit code."""
    if outcome.message:
        stream = sys.stdout if outcome.exit_code == EXIT_OK else sys.stderr
        print(outcome.message, file=stream)
    sys.exit(outcome.exit_code)
