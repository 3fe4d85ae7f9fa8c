"""Shared machines for wizard engine tests."""

import pytest

from wizflow.engine.renderer import MockRenderer
from wizflow.engine.schema import define_machine


@pytest.fixture
def mock_renderer():
    """Create a mock renderer for testing."""
    return MockRenderer()


@pytest.fixture
def name_flag_machine():
    """Positional name followed by a confirm defaulting to False."""
    return define_machine(
        initial='name',
        states={
            'name': {'type': 'text', 'message': 'Project name', 'positional': True, 'next': 'flag'},
            'flag': {'type': 'confirm', 'message': 'Enable flag?', 'default_value': False, 'next': None},
        },
    )


@pytest.fixture
def task_calls():
    """Values seen by the starter machine install task."""
    return []


@pytest.fixture
def starter_machine(task_calls):
    """Text, select, confirm and a recording task, in that order."""
    def record(values):
        task_calls.append(dict(values))

    return define_machine(
        initial='name',
        states={
            'name': {
                'type': 'text',
                'message': 'Project name',
                'placeholder': 'my-project',
                'positional': True,
                'validator': lambda v: None if v and v.strip() else 'Project name is required',
                'next': 'color',
            },
            'color': {
                'type': 'select',
                'message': 'Color for {name}',
                'options': [{'value': 'a', 'label': 'Alpha'}, {'value': 'b', 'hint': 'second'}],
                'default_value': 'a',
                'next': 'useGit',
            },
            'useGit': {'type': 'confirm', 'message': 'Init git?', 'next': 'install'},
            'install': {
                'type': 'task',
                'message': 'Installing {name}',
                'run': record,
                'next': {'ok': None, 'err': None},
            },
        },
    )
