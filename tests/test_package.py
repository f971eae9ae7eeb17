import os
import subprocess
import sys
import warnings

import pytest
from firebase_admin import messaging

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.mark.parametrize('module', ['lifeline.models', 'lifeline.hospitals', 'lifeline.notifications'])
def test_submodules_import_on_their_own(module):
    env = dict(os.environ, DATABASE_URL='sqlite://', FIREBASE_CREDENTIALS='')
    env['PYTHONPATH'] = os.pathsep.join(filter(None, [ROOT, env.get('PYTHONPATH')]))
    result = subprocess.run([sys.executable, '-c', f'import {module}'],
                            cwd=ROOT, env=env, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr


def test_push_messages_build_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter('error', DeprecationWarning)
        messaging.Message(
            notification=messaging.Notification(title='t', body='b'),
            data={'blood_type': 'O+'},
            token='tok',
        )
