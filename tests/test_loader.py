"""Tests for config and machine loaders."""

import asyncio
import json

import pytest
from pydantic import ValidationError

from wizflow.engine.headless import run_headless
from wizflow.engine.loader import ConfigError, MachineLoader, load_config
from wizflow.engine.schema import SelectState, TaskState


class TestLoadConfig:
    """Test --config sniffing and parsing."""

    def test_inline_json(self):
        assert load_config('{"name": "demo", "nx": true}') == {'name': 'demo', 'nx': True}

    def test_inline_yaml(self):
        assert load_config('name: demo\nnx: false') == {'name': 'demo', 'nx': False}

    def test_inline_yaml_flow_mapping_is_not_json(self):
        """Anything shaped like {...} is parsed as JSON."""
        with pytest.raises(ConfigError, match='Invalid JSON config'):
            load_config('{name: demo}')

    def test_json_file(self, tmp_path):
        path = tmp_path / 'answers.json'
        path.write_text(json.dumps({'name': 'demo'}))

        assert load_config(str(path)) == {'name': 'demo'}

    def test_yaml_file(self, tmp_path):
        path = tmp_path / 'answers.yml'
        path.write_text('name: demo\ncolor: b\n')

        assert load_config(str(path)) == {'name': 'demo', 'color': 'b'}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match='not found'):
            load_config(str(tmp_path / 'nope.yaml'))

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / 'answers.yaml'
        path.write_bytes(b'name: \xff\xfe')

        with pytest.raises(ConfigError, match='Cannot read config file'):
            load_config(str(path))

    def test_non_object_rejected(self):
        with pytest.raises(ConfigError, match='expected an object'):
            load_config('- a\n- b')

    def test_json_array_rejected(self, tmp_path):
        path = tmp_path / 'list.json'
        path.write_text('[1, 2]')

        with pytest.raises(ConfigError, match='expected an object'):
            load_config(str(path))

    def test_malformed_yaml(self):
        with pytest.raises(ConfigError, match='Invalid YAML config'):
            load_config('name: [unclosed')

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


@pytest.fixture
def flows_dir(tmp_path):
    """Create a flows directory with a starter machine."""
    (tmp_path / 'starter.yaml').write_text("""
initial: name
states:
  name:
    type: text
    message: Project name
    positional: true
    validator: not_empty
    next: kind
  kind:
    type: select
    message: Kind
    options:
      - value: lib
        label: Library
      - value: app
    default_value: lib
    next:
      when_value:
        app: port
      otherwise: install
  port:
    type: text
    message: Port
    default_value: "8080"
    next: install
  install:
    type: task
    message: Installing
    run: install
    next:
      ok: null
      err: null
""")
    return tmp_path


class TestMachineLoader:
    """Test loading YAML-declared machines."""

    def test_load_machine(self, flows_dir):
        loader = MachineLoader(base_path=flows_dir)

        machine = loader.load_machine(
            'starter',
            validators={'not_empty': lambda v: None if v else 'required'},
            tasks={'install': lambda values: None},
        )

        assert machine.initial == 'name'
        assert isinstance(machine.states['kind'], SelectState)
        assert isinstance(machine.states['install'], TaskState)
        assert machine.states['kind'].options[0].label == 'Library'

    def test_when_value_branches(self, flows_dir):
        machine = MachineLoader(flows_dir).load_machine(
            'starter',
            validators={'not_empty': lambda v: None if v else 'required'},
            tasks={'install': lambda values: None},
        )

        lib = asyncio.run(run_headless(machine, {'name': 'demo'}))
        app = asyncio.run(run_headless(machine, {'name': 'demo', 'kind': 'app'}))

        assert lib.value == {'name': 'demo', 'kind': 'lib'}
        assert app.value == {'name': 'demo', 'kind': 'app', 'port': '8080'}

    def test_registered_validator_applies(self, flows_dir):
        machine = MachineLoader(flows_dir).load_machine(
            'starter',
            validators={'not_empty': lambda v: None if v else 'required'},
            tasks={'install': lambda values: None},
        )

        result = asyncio.run(run_headless(machine, {'name': ''}))

        assert result.error.message == '--name: required'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MachineLoader(tmp_path).load_machine('nope')

    def test_unregistered_task(self, flows_dir):
        with pytest.raises(KeyError, match='install'):
            MachineLoader(flows_dir).load_machine('starter', validators={'not_empty': lambda v: None})

    def test_unregistered_validator(self, flows_dir):
        with pytest.raises(KeyError, match='not_empty'):
            MachineLoader(flows_dir).load_machine('starter', tasks={'install': lambda v: None})

    def test_branch_to_unknown_state(self, tmp_path):
        (tmp_path / 'bad.yaml').write_text("""
initial: go
states:
  go:
    type: confirm
    message: Go?
    next:
      when_value:
        true: nowhere
""")

        with pytest.raises(ValueError, match="unknown state 'nowhere'"):
            MachineLoader(tmp_path).load_machine('bad')

    def test_malformed_machine(self, tmp_path):
        (tmp_path / 'bad.yaml').write_text("initial: go\nstates:\n  go:\n    type: confirm\n")

        with pytest.raises(ValidationError):
            MachineLoader(tmp_path).load_machine('bad')
