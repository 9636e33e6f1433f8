# SPDX-License-Identifier: LGPL-2.1-or-later

# pylint: disable=missing-function-docstring,redefined-outer-name

import argparse
import json
from pathlib import Path

import pytest

from mdevconf import config, tool
from mdevconf.grammar import Revision

BROKEN = '''\
null root:root 666
@1,3 root:root 640
zero root:root 866
'''


@pytest.fixture(autouse=True)
def no_system_config(monkeypatch):
    monkeypatch.setattr(config, 'DEFAULT_CONFIG_DIRS', [])


@pytest.fixture
def rules_file(tmp_path, mdev_conf):
    path = tmp_path / 'mdev.conf'
    path.write_text(mdev_conf)
    return path


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / 'broken.conf'
    path.write_text(BROKEN)
    return path


def test_parse_byte():
    assert tool.parse_byte('0') == 0
    assert tool.parse_byte('255') == 255
    for s in ('256', '-1', 'x'):
        with pytest.raises(argparse.ArgumentTypeError):
            tool.parse_byte(s)


def test_parse_env():
    assert tool.parse_env('SUBSYSTEM=block') == ('SUBSYSTEM', 'block')
    assert tool.parse_env('EMPTY=') == ('EMPTY', '')
    assert tool.parse_env('A=b=c') == ('A', 'b=c')
    for s in ('NOEQUALS', '=value'):
        with pytest.raises(argparse.ArgumentTypeError):
            tool.parse_env(s)


def test_finalize_options(tmp_path):
    conf = tmp_path / 'mdevconf.conf'
    conf.write_text('[Parser]\nRevision=bounded\nStrict=yes\n')

    opts = tool.create_parser().parse_args(['--config', str(conf), 'check', 'x'])
    options = tool.finalize_options(opts)
    assert options.revision is Revision.BOUNDED
    assert options.strict is True

    opts = tool.create_parser().parse_args(
        ['--config', str(conf), 'evaluate', 'x', '--name', 'a', '--major', '1', '--minor', '1'])
    options = tool.finalize_options(opts)
    assert options.revision is Revision.BOUNDED
    assert options.strict is True

    opts = tool.create_parser().parse_args(
        ['--config', str(conf), '--revision', 'simplified',
         'evaluate', 'x', '--name', 'a', '--major', '1', '--minor', '1', '--no-strict'])
    options = tool.finalize_options(opts)
    assert options.revision is Revision.SIMPLIFIED
    assert options.strict is False


def test_check_good(rules_file, capsys):
    assert tool.main(['check', str(rules_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith(f'{rules_file}: 53 rules, ')
    assert out.rstrip().endswith('0 errors')


def test_check_broken(broken_file, rules_file, capsys):
    assert tool.main(['check', str(rules_file), str(broken_file)]) == 1
    lines = capsys.readouterr().out.splitlines()
    assert f"{broken_file}:3:16: mode digit '8' is not an octal digit" in lines
    assert f'{broken_file}: 2 rules, 0 comments, 1 errors' in lines


def test_check_bounded(broken_file, capsys):
    assert tool.main(['--revision', 'bounded', 'check', str(broken_file)]) == 1
    out = capsys.readouterr().out
    assert f'{broken_file}:3:16: Expected ' in out


def test_check_missing_file(tmp_path, capsys):
    assert tool.main(['check', str(tmp_path / 'nope.conf')]) == 1
    assert 'Cannot read' in capsys.readouterr().out


def test_evaluate(rules_file, capsys):
    assert tool.main(['evaluate', str(rules_file),
                      '--name', 'sda', '--major', '8', '--minor', '0',
                      '--env', 'SUBSYSTEM=block']) == 0
    decision = json.loads(capsys.readouterr().out)
    assert decision['owner'] == 'root:disk'
    assert decision['mode'] == '660'
    assert decision['on_creation'] is None
    assert decision['commands'] == ['*/opt/mdev/helpers/storage-device']
    assert decision['suppressed'] is False


def test_evaluate_no_match(rules_file, capsys):
    assert tool.main(['evaluate', str(rules_file), '--name', 'nothing', '--major', '250', '--minor', '0']) == 0
    decision = json.loads(capsys.readouterr().out)
    assert decision['owner'] is None
    assert decision['matched'] == []


def test_evaluate_with_errors(broken_file, capsys):
    args = ['evaluate', str(broken_file), '--name', 'mem', '--major', '1', '--minor', '3']

    assert tool.main(args) == 0
    captured = capsys.readouterr()
    assert '3:16:' in captured.err
    assert json.loads(captured.out)['mode'] == '640'

    assert tool.main([*args, '--strict']) == 1
    captured = capsys.readouterr()
    assert '3:16:' in captured.err
    assert captured.out == ''


@pytest.mark.parametrize('args', [
    [],
    ['check'],
    ['evaluate', 'x', '--name', 'a', '--major', '256', '--minor', '0'],
    ['evaluate', 'x', '--name', 'a', '--major', '1', '--minor', '0', '--env', 'BAD'],
    ['--revision', 'newest', 'check', 'x'],
    ['check', '--strict', 'x'],
    ['--strict', 'check', 'x'],
])
def test_bad_arguments(args):
    with pytest.raises(SystemExit) as e:
        tool.main(args)
    assert e.value.code == 2


@pytest.mark.parametrize('path', sorted(Path(tool.__file__).parent.glob('*.py')), ids=lambda p: p.name)
def test_license_header(path):
    text = path.read_text(encoding='UTF-8')
    assert text.startswith('# SPDX-License-Identifier: LGPL-2.1-or-later\n')
    assert '# mdevconf is distributed in the hope that it will be useful' in text
    assert '# along with mdevconf; If not, see <https://www.gnu.org/licenses/>.' in text
