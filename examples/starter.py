#!/usr/bin/env python3
"""Python project starter built on wizflow.

    python examples/starter.py my-project --layout flat --tests
    python examples/starter.py --schema
"""

import re
from pathlib import Path

from wizflow import CLIOptions, define_machine, exit_with, run_cli


def validate_name(value):
    if not value or not value.strip():
        return "Project name is required"
    if not re.match(r'^[a-z0-9_.-]+$', value):
        return "Use lowercase letters, numbers, hyphens, dots or underscores"
    return None


def check_target(values):
    target = Path.cwd() / values['name']
    if target.exists():
        raise FileExistsError(f"Directory already exists: {values['name']}")


machine = define_machine(
    initial='name',
    states={
        'name': {
            'type': 'text',
            'message': 'Project name',
            'placeholder': 'my-project',
            'positional': True,
            'validator': validate_name,
            'next': 'layout',
        },
        'layout': {
            'type': 'select',
            'message': 'Package layout',
            'options': [
                {'value': 'src', 'label': 'src/', 'hint': 'package under src/'},
                {'value': 'flat', 'label': 'flat', 'hint': 'package at the repository root'},
            ],
            'default_value': 'src',
            'next': 'tests',
        },
        'tests': {
            'type': 'confirm',
            'message': 'Add a pytest suite to {name}?',
            'default_value': True,
            'next': 'check_target',
        },
        'check_target': {
            'type': 'task',
            'message': 'Checking {name} is free',
            'run': check_target,
            'next': {'ok': None, 'err': None},
        },
    },
)


if __name__ == '__main__':
    exit_with(run_cli(machine, CLIOptions(
        prog='starter',
        intro='starter - Python project scaffolder',
        description='Answer a few questions and get a project skeleton',
        outro=lambda r: f"Done! cd {r['name']}",
    )))
