"""Machine introspection - JSON Schema and help text."""

from typing import Any, Dict, List, Optional

from .machine import flag_name
from .schema import ConfirmState, Machine, SelectState, TaskState, TextState

SCHEMA_DRAFT = "https://json-schema.org/draft-07/schema"


def generate_schema(machine: Machine) -> Dict[str, Any]:
    """
    Describe the inputs a machine accepts as a JSON Schema document.

    Text states are required unless they have a default. Confirm states
    always carry a default (False when none is declared). The "x-cli"
    block maps every prompt id to its flag and names the positional state.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []
    flags: Dict[str, str] = {}
    positional: Optional[str] = None

    for state_id, state in machine.states.items():
        if isinstance(state, TaskState):
            continue
        flags[state_id] = flag_name(state_id)

        if isinstance(state, TextState):
            prop: Dict[str, Any] = {'type': 'string', 'description': state.message}
            if state.default_value is not None:
                prop['default'] = state.default_value
            else:
                required.append(state_id)
            if state.positional:
                positional = state_id
        elif isinstance(state, SelectState):
            prop = {
                'type': 'string',
                'enum': state.option_values(),
                'description': state.message,
            }
            if state.default_value is not None:
                prop['default'] = state.default_value
        elif isinstance(state, ConfirmState):
            prop = {
                'type': 'boolean',
                'description': state.message,
                'default': state.default_value if state.default_value is not None else False,
            }
        else:
            raise TypeError(f"Unhandled state type: {type(state).__name__}")

        properties[state_id] = prop

    x_cli: Dict[str, Any] = {'flags': flags}
    if positional is not None:
        x_cli['positional'] = positional

    return {
        '$schema': SCHEMA_DRAFT,
        'type': 'object',
        'properties': properties,
        'required': required,
        'x-cli': x_cli,
    }


FIXED_OPTIONS = [
    ('--config <json|yaml|file>', 'Load values from a JSON/YAML string or file'),
    ('--schema', 'Print JSON Schema and exit'),
    ('-y, --yes', 'Accept all defaults'),
    ('--verbose', 'Show debug logging'),
    ('-h, --help', 'Show this help'),
]


def format_help(machine: Machine, prog: str = 'wizard', description: Optional[str] = None) -> str:
    """Build the --help text: one line per prompt state plus the fixed flags."""
    rows = []
    positional = machine.positional_id()

    for state_id, state in machine.states.items():
        if isinstance(state, TaskState):
            continue
        flag = flag_name(state_id)
        if isinstance(state, TextState):
            flag += ' <string>'
        elif isinstance(state, SelectState):
            flag += f" <{'|'.join(state.option_values())}>"
        elif isinstance(state, ConfirmState):
            flag = f"{flag}, --no-{flag[2:]}"

        text = state.message
        default = state.default_value
        if default is not None:
            shown = str(default).lower() if isinstance(default, bool) else default
            text += f" (default: {shown})"
        rows.append((flag, text))

    rows.extend(FIXED_OPTIONS)
    width = max(len(flag) for flag, _ in rows)

    lines = []
    if description:
        lines.extend([description, ''])
    usage = f"  {prog} [options]"
    if positional is not None:
        usage += f" [{positional}]"
    lines.extend(['Usage:', usage, '', 'Options:'])
    lines.extend(f"  {flag.ljust(width)}  {text}" for flag, text in rows)
    return '\n'.join(lines)
