"""Loaders for --config documents and YAML-declared machines."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml

from .schema import Machine

CONFIG_FILE_SUFFIXES = ('.json', '.yaml', '.yml')


class ConfigError(ValueError):
    """A --config value could not be read or is not a key/value object."""


def _parse_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON config ({source}): {e}") from e


def _parse_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML config ({source}): {e}") from e


def load_config(raw: str) -> Dict[str, Any]:
    """
    Parse a --config argument into a key/value dict.

    The argument is a path when it ends in .json/.yaml/.yml, inline JSON
    when it looks like {...}, and inline YAML otherwise.

    Raises:
        ConfigError: If the file is missing or unreadable, the text does not parse,
            or the document is not an object
    """
    stripped = raw.strip()

    if stripped.endswith(CONFIG_FILE_SUFFIXES):
        path = Path(stripped)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if stripped.endswith('.json'):
            data = _parse_json(text, str(path))
        else:
            data = _parse_yaml(text, str(path))
    elif stripped.startswith('{') and stripped.endswith('}'):
        data = _parse_json(stripped, 'inline')
    else:
        data = _parse_yaml(stripped, 'inline')

    if not isinstance(data, dict):
        raise ConfigError("Invalid config: expected an object")
    return data


def _branch(state_id: str, branch: Dict[str, Any]) -> Callable[[Any], Optional[str]]:
    table = branch.get('when_value') or {}
    otherwise = branch.get('otherwise')

    def choose(value):
        return table.get(value, otherwise)

    choose.__name__ = f"{state_id}_next"
    choose.targets = [t for t in list(table.values()) + [otherwise] if t is not None]
    return choose


class MachineLoader:
    """
    Loads machine definitions from YAML files.

    Validators and task effects are referenced by name and resolved
    against the registries passed to load_machine. A prompt's `next` may
    be a state id, null, or {when_value: {value: id}, otherwise: id}.
    """

    def __init__(self, base_path: Optional[Union[str, Path]] = None):
        """
        Initialize loader.

        Args:
            base_path: Directory holding <name>.yaml files (default: ./flows)
        """
        if base_path is None:
            base_path = Path.cwd() / "flows"
        self.base_path = Path(base_path)

    def load_machine(self, name: str,
                     validators: Optional[Dict[str, Callable]] = None,
                     tasks: Optional[Dict[str, Callable]] = None) -> Machine:
        """
        Load and validate a machine.

        Args:
            name: File name without extension (e.g., 'starter')
            validators: Validator callables by name
            tasks: Task effect callables by name

        Returns:
            Validated Machine instance

        Raises:
            FileNotFoundError: If the YAML file doesn't exist
            KeyError: If a validator or task name is not registered
            ValueError: If a when_value branch names an unknown state
            pydantic.ValidationError: If the definition is malformed
        """
        path = self.base_path / f"{name}.yaml"

        if not path.exists():
            raise FileNotFoundError(f"Machine definition not found: {path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return self.build(data, validators or {}, tasks or {})

    def build(self, data: Dict[str, Any], validators: Dict[str, Callable],
              tasks: Dict[str, Callable]) -> Machine:
        """Turn a parsed YAML document into a Machine."""
        states = {}
        branch_targets = []

        for state_id, raw in (data.get('states') or {}).items():
            state = dict(raw)

            if 'validator' in state and state['validator'] is not None:
                name = state['validator']
                if name not in validators:
                    raise KeyError(f"Validator not registered: {name}")
                state['validator'] = validators[name]

            if state.get('type') == 'task':
                name = state.get('run')
                if name not in tasks:
                    raise KeyError(f"Task not registered: {name}")
                state['run'] = tasks[name]
            elif isinstance(state.get('next'), dict):
                state['next'] = _branch(state_id, state['next'])
                branch_targets.extend((state_id, t) for t in state['next'].targets)

            states[state_id] = state

        for state_id, target in branch_targets:
            if target not in states:
                raise ValueError(f"state {state_id!r} branches to unknown state {target!r}")

        return Machine(initial=data.get('initial'), states=states)
