# SPDX-License-Identifier: LGPL-2.1-or-later
#
# This file is part of mdevconf.
#
# mdevconf is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation; either version 2.1 of the License, or
# (at your option) any later version.
#
# mdevconf is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with mdevconf; If not, see <https://www.gnu.org/licenses/>.

# pylint: disable=missing-function-docstring

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Options, load_config
from .evaluate import DeviceEvent, evaluate
from .grammar import BYTE_MAX, Revision
from .parser import RuleSet, parse_rules

logger = logging.getLogger(__name__)


def parse_byte(s: str) -> int:
    try:
        value = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f'Not a number: {s!r}') from None
    if not 0 <= value <= BYTE_MAX:
        raise argparse.ArgumentTypeError(f'{value} is out of range 0..{BYTE_MAX}')
    return value


def parse_env(s: str) -> tuple[str, str]:
    name, sep, value = s.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f'Expected NAME=VALUE, got {s!r}')
    return name, value


def create_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description='Check mdev device node rules and evaluate them against device events',
        allow_abbrev=False,
    )
    p.add_argument(
        '--config',
        type=Path,
        help='configuration file to use instead of the default search path',
    )
    p.add_argument(
        '--revision',
        choices=[r.value for r in Revision],
        help='grammar revision to parse the rules with',
    )
    p.add_argument(
        '--debug',
        action='store_true',
        help='print debug messages',
    )

    verbs = p.add_subparsers(dest='verb', required=True)

    check = verbs.add_parser('check', help='parse rule files and report bad lines')
    check.add_argument('files', nargs='+', type=Path, metavar='FILE')

    ev = verbs.add_parser('evaluate', help='print the decision for one device event')
    ev.add_argument('file', type=Path, metavar='FILE')
    ev.add_argument('--name', required=True, help='device name')
    ev.add_argument('--major', required=True, type=parse_byte)
    ev.add_argument('--minor', required=True, type=parse_byte)
    ev.add_argument(
        '--env',
        action='append',
        type=parse_env,
        default=[],
        metavar='NAME=VALUE',
        help='environment variable of the event (may be repeated)',
    )
    ev.add_argument(
        '--strict',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='print no decision if any line of the rule file fails to parse',
    )

    return p


def finalize_options(opts: argparse.Namespace) -> Options:
    "Settings from the command line take precedence over the config file."
    options = load_config(opts.config)
    if opts.revision is not None:
        options.revision = Revision(opts.revision)
    # 'check' fails on any bad line already and has no --strict
    strict = getattr(opts, 'strict', None)
    if strict is not None:
        options.strict = strict
    return options


def read_rules(path: Path, options: Options) -> RuleSet:
    text = path.read_text(encoding='UTF-8')
    return parse_rules(text, options.revision, filename=str(path))


def check_files(files: list[Path], options: Options) -> bool:
    "Returns True if any of the files has a problem."
    failed = False

    for path in files:
        try:
            ruleset = read_rules(path, options)
        except OSError as e:
            print(f'Cannot read {path}: {e}')
            failed = True
            continue

        for e in ruleset.errors:
            print(f'{path}:{e}')
            failed = True

        print(f'{path}: {len(ruleset)} rules, {ruleset.comments} comments, {len(ruleset.errors)} errors')

    return failed


def evaluate_event(opts: argparse.Namespace, options: Options) -> int:
    ruleset = read_rules(opts.file, options)
    for e in ruleset.errors:
        print(f'{opts.file}:{e}', file=sys.stderr)
    if ruleset.errors and options.strict:
        return 1

    event = DeviceEvent(opts.name, opts.major, opts.minor, dict(opts.env))
    decision = evaluate(ruleset, event)
    print(json.dumps(decision.to_dict(), indent=2))
    return 0


def main(args: Optional[list[str]] = None) -> int:
    opts = create_parser().parse_args(args)
    logging.basicConfig(stream=sys.stderr, level=logging.DEBUG if opts.debug else logging.WARNING)
    options = finalize_options(opts)

    if opts.verb == 'check':
        return 1 if check_files(opts.files, options) else 0
    if opts.verb == 'evaluate':
        return evaluate_event(opts, options)
    assert False


if __name__ == '__main__':
    sys.exit(main())
