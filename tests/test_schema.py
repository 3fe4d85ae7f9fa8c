"""Tests for Pydantic machine models."""

import pytest
from pydantic import ValidationError

from wizflow.engine.schema import (
    ConfirmState,
    Machine,
    Option,
    SelectState,
    TaskState,
    TextState,
    define_machine,
)


def test_text_state_minimal_valid():
    """TextState can be created with only a message."""
    state = TextState(message='Project name')

    assert state.type == 'text'
    assert state.placeholder is None
    assert state.default_value is None
    assert state.positional is False
    assert state.validator is None
    assert state.next is None


def test_text_state_with_all_fields():
    """TextState keeps every optional field."""
    check = lambda v: None
    state = TextState(
        message='Project name',
        placeholder='my-project',
        default_value='demo',
        positional=True,
        validator=check,
        next='layout',
    )

    assert state.placeholder == 'my-project'
    assert state.default_value == 'demo'
    assert state.positional is True
    assert state.validator is check
    assert state.next == 'layout'


def test_prompt_state_accepts_callable_next():
    """next can be a function of the produced value."""
    state = ConfirmState(message='Continue?', next=lambda v: 'yes' if v else None)

    assert callable(state.next)
    assert state.next(True) == 'yes'


def test_select_requires_options():
    """Select with no options is rejected."""
    with pytest.raises(ValidationError):
        SelectState(message='Pick', options=[])


def test_select_default_must_be_an_option():
    """default_value must equal one of the option values."""
    with pytest.raises(ValidationError, match='not one of a, b'):
        SelectState(message='Pick', options=[Option(value='a'), Option(value='b')], default_value='c')


def test_select_rejects_duplicate_values():
    """Option values are unique."""
    with pytest.raises(ValidationError, match='duplicate'):
        SelectState(message='Pick', options=[Option(value='a'), Option(value='a')])


def test_option_display_falls_back_to_value():
    """Option label defaults to its value."""
    assert Option(value='tsc').display == 'tsc'
    assert Option(value='tsc', label='TypeScript').display == 'TypeScript'


def test_states_are_immutable():
    """State models are frozen."""
    state = ConfirmState(message='Continue?')

    with pytest.raises(ValidationError):
        state.message = 'changed'


class TestMachine:
    """Test Machine construction checks."""

    def test_define_machine_from_dicts(self):
        """Plain dicts become typed state models."""
        machine = define_machine(
            initial='name',
            states={
                'name': {'type': 'text', 'message': 'Name', 'next': 'color'},
                'color': {'type': 'select', 'message': 'Color', 'options': [{'value': 'a'}], 'next': 'ok'},
                'ok': {'type': 'confirm', 'message': 'OK?', 'next': 'run'},
                'run': {'type': 'task', 'message': 'Running', 'run': lambda v: None},
            },
        )

        assert isinstance(machine.states['name'], TextState)
        assert isinstance(machine.states['color'], SelectState)
        assert isinstance(machine.states['ok'], ConfirmState)
        assert isinstance(machine.states['run'], TaskState)
        assert machine.states['run'].next.ok is None
        assert machine.states['run'].next.err is None

    def test_initial_must_exist(self):
        """initial must be a key of states."""
        with pytest.raises(ValidationError, match="initial state 'missing'"):
            define_machine(initial='missing', states={'a': {'type': 'confirm', 'message': 'A'}})

    def test_dangling_fixed_target_rejected(self):
        """A fixed next pointing nowhere fails construction."""
        with pytest.raises(ValidationError, match="unknown state 'nowhere'"):
            define_machine(
                initial='a',
                states={'a': {'type': 'confirm', 'message': 'A', 'next': 'nowhere'}},
            )

    def test_dangling_task_branch_rejected(self):
        """Task ok/err targets are checked too."""
        with pytest.raises(ValidationError, match="unknown state 'recover'"):
            define_machine(
                initial='t',
                states={
                    't': {'type': 'task', 'message': 'T', 'run': lambda v: None,
                          'next': {'ok': None, 'err': 'recover'}},
                },
            )

    def test_fixed_cycle_rejected(self):
        """Fixed transitions forming a loop fail construction."""
        with pytest.raises(ValidationError, match='cycle: a -> b -> a'):
            define_machine(
                initial='a',
                states={
                    'a': {'type': 'confirm', 'message': 'A', 'next': 'b'},
                    'b': {'type': 'confirm', 'message': 'B', 'next': 'a'},
                },
            )

    def test_callable_loop_allowed_at_construction(self):
        """Loops through callables cannot be detected statically."""
        machine = define_machine(
            initial='a',
            states={
                'a': {'type': 'confirm', 'message': 'A', 'next': lambda v: 'b'},
                'b': {'type': 'confirm', 'message': 'B', 'next': lambda v: 'a'},
            },
        )

        assert machine.initial == 'a'

    def test_single_positional(self):
        """Only one text state may be positional."""
        with pytest.raises(ValidationError, match='only one positional'):
            define_machine(
                initial='a',
                states={
                    'a': {'type': 'text', 'message': 'A', 'positional': True, 'next': 'b'},
                    'b': {'type': 'text', 'message': 'B', 'positional': True},
                },
            )

    def test_states_sharing_a_flag_rejected(self):
        """camelCase and snake_case ids that kebab to the same flag clash."""
        with pytest.raises(ValidationError, match='both map to flag --use-git'):
            define_machine(
                initial='useGit',
                states={
                    'useGit': {'type': 'confirm', 'message': 'Git?', 'next': 'use_git'},
                    'use_git': {'type': 'text', 'message': 'Git remote'},
                },
            )

    def test_negated_confirm_flag_clash_rejected(self):
        """A confirm's --no- form counts as one of its flags."""
        with pytest.raises(ValidationError, match='both map to flag --no-color'):
            define_machine(
                initial='color',
                states={
                    'color': {'type': 'confirm', 'message': 'Color?', 'next': 'noColor'},
                    'noColor': {'type': 'text', 'message': 'Plain style'},
                },
            )

    def test_task_ids_do_not_claim_flags(self):
        machine = define_machine(
            initial='install',
            states={
                'install': {'type': 'task', 'message': 'Installing', 'run': lambda v: None,
                            'next': {'ok': 'Install'}},
                'Install': {'type': 'text', 'message': 'Again'},
            },
        )

        assert machine.prompt_ids() == ['Install']

    def test_prompt_ids_and_positional(self, starter_machine):
        """prompt_ids skips tasks; positional_id finds the positional text state."""
        assert starter_machine.prompt_ids() == ['name', 'color', 'useGit']
        assert starter_machine.positional_id() == 'name'

    def test_machine_accepts_model_instances(self):
        """Machine can be built from state instances directly."""
        machine = Machine(initial='a', states={'a': ConfirmState(message='A')})

        assert machine.states['a'].message == 'A'
