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

# pylint: disable=missing-function-docstring,unused-argument

"""Parsing of rule lines.

A line is a comment, an empty line, or a rule:

    [-][VAR=regex;]...selector user:group mode [=path|>path|!] [@|$|*]cmd [args...]

where selector is @major,minor[-max_minor], $VAR=regex or a device name regex.
A bad line raises RuleSyntaxError or RuleSemanticError; parse_rules() collects
those per line and carries on with the next one.
"""

import dataclasses
import functools
import logging
import re
from collections.abc import Iterator
from typing import Optional

from pyparsing import (Group, Literal, Opt, ParseBaseException, ParserElement,
                       ParseResults, StringEnd, Suppress, ZeroOrMore)

from . import grammar
from .grammar import OutOfDomain, Revision
from .rules import (Command, Comment, DeviceRegex, Empty, EnvMatch, LineResult,
                    MajMin, Matcher, Mode, MoveTo, Prevent, Rule, Symlink,
                    Timing, UserGroup)

logger = logging.getLogger(__name__)


class RuleError(ValueError):
    def __init__(self, message: str, lineno: int = 1, column: int = 1, line: str = ''):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.column = column
        self.line = line

    def __str__(self) -> str:
        return f'{self.lineno}:{self.column}: {self.message}'


class RuleSyntaxError(RuleError):
    "The line does not follow the grammar. expected describes what was wanted at column."

    def __init__(self, expected: str, lineno: int = 1, column: int = 1, line: str = ''):
        found = repr(line[column - 1]) if column <= len(line) else 'end of line'
        super().__init__(f'Expected {expected}, found {found}', lineno, column, line)
        self.expected = expected


class RuleSemanticError(RuleError):
    "The line follows the grammar, but a value is out of its domain."


def _check_pattern(s: str, loc: int, pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise OutOfDomain(s, loc, f'Invalid regex {pattern!r}: {e}') from None


def _make_env_match(s: str, loc: int, toks) -> EnvMatch:
    var_name, pattern = toks
    _check_pattern(s, loc + len(var_name) + 1, pattern)
    return EnvMatch(var_name, pattern)


def _make_majmin(s: str, loc: int, toks) -> MajMin:
    if 'max_minor' in toks:
        max_minor = toks['max_minor']
    elif 'dash' in toks:
        # SIMPLIFIED revision: "@4,64-" reaches up to the last minor
        max_minor = grammar.BYTE_MAX
    else:
        max_minor = None

    if max_minor is not None and max_minor < toks['minor']:
        raise OutOfDomain(s, loc, f'Empty minor range {toks["minor"]}-{max_minor}')
    return MajMin(toks['major'], toks['minor'], max_minor)


def _make_env_regex(s: str, loc: int, toks) -> DeviceRegex:
    env_var, pattern = toks
    _check_pattern(s, loc + len(env_var) + 2, pattern)
    return DeviceRegex(pattern, env_var)


def _make_device_regex(s: str, loc: int, toks) -> DeviceRegex:
    _check_pattern(s, loc, toks[0])
    return DeviceRegex(toks[0])


def _make_matcher(s: str, loc: int, toks) -> Matcher:
    items = list(toks)
    stop = 'stop' in toks
    if stop:
        items = items[1:]
    *env_matches, selector = items
    return Matcher(selector, tuple(env_matches), stop)


def _make_command(s: str, loc: int, toks) -> Command:
    marker, executable, args = toks
    return Command(Timing(marker), executable, tuple(args))


def _field(toks, name: str):
    value = toks.get(name)
    # a results name set on an alternation keeps the match wrapped
    if isinstance(value, ParseResults):
        value = value[0]
    return value


def _make_rule(s: str, loc: int, toks) -> Rule:
    return Rule(matcher=_field(toks, 'matcher'),
                owner=_field(toks, 'owner'),
                mode=_field(toks, 'mode'),
                on_creation=_field(toks, 'on_creation'),
                command=_field(toks, 'command'))


@functools.lru_cache()
def rule_grammar(revision: Revision = Revision.SIMPLIFIED) -> ParserElement:
    sep = grammar.separator()

    env_match = grammar.env_assignment(revision) + grammar.regex() + Suppress(';')
    env_match.set_parse_action(_make_env_match)

    env_regex = Suppress('$') - grammar.env_assignment(revision) - grammar.regex()
    env_regex.set_parse_action(_make_env_regex)

    selector = (grammar.majmin(revision).set_parse_action(_make_majmin) |
                env_regex |
                grammar.device_regex().set_parse_action(_make_device_regex))

    matcher = Opt(Literal('-')('stop')) + ZeroOrMore(env_match) + selector
    matcher.set_parse_action(_make_matcher)

    usergroup = grammar.name() + Suppress(':') + grammar.name()
    usergroup.set_parse_action(lambda s, loc, toks: UserGroup(toks[0], toks[1]))

    mode = grammar.mode(revision).add_parse_action(lambda s, loc, toks: Mode.from_digits(toks[0]))

    on_creation = ((Suppress('=') - grammar.path()).set_parse_action(lambda s, loc, toks: MoveTo(toks[0])) |
                   (Suppress('>') - grammar.path()).set_parse_action(lambda s, loc, toks: Symlink(toks[0])) |
                   Literal('!').set_parse_action(lambda s, loc, toks: Prevent()))

    command = grammar.timing_marker() - grammar.path() + Group(ZeroOrMore(sep + grammar.argument()))
    command.set_parse_action(_make_command)

    rule = (Opt(sep) +
            matcher('matcher') - sep +
            usergroup('owner') - sep +
            mode('mode') +
            Opt(sep + on_creation('on_creation')) +
            Opt(sep + command('command')) +
            Opt(sep) + StringEnd())
    rule.leave_whitespace()
    rule.parse_with_tabs()
    rule.set_parse_action(_make_rule)

    return rule


def _expected(e: ParseBaseException) -> str:
    msg = e.msg or 'valid rule'
    return msg[len('Expected '):] if msg.startswith('Expected ') else msg


def parse_line(text: str,
               lineno: int = 1,
               revision: Revision = Revision.SIMPLIFIED) -> LineResult:
    "Classify one configuration line, returning a Comment, Empty or Rule."

    line = text.rstrip('\r\n')
    body = line.lstrip(' \t')

    if body.startswith('#'):
        comment = body[1:]
        return Comment(comment[1:] if comment.startswith(' ') else comment)
    if not body:
        return Empty()

    try:
        parsed = rule_grammar(revision).parse_string(line, parse_all=True)
    except OutOfDomain as e:
        raise RuleSemanticError(e.msg, lineno, e.loc + 1, line) from None
    except ParseBaseException as e:
        raise RuleSyntaxError(_expected(e), lineno, e.loc + 1, line) from None

    return parsed[0]


@dataclasses.dataclass(frozen=True)
class RuleSet:
    """A parsed configuration text.

    rules holds (lineno, Rule) pairs in file order, errors one RuleError for
    every line that could not be parsed. Instances are never modified; a reload
    makes a new one.
    """

    rules: tuple[tuple[int, Rule], ...] = ()
    errors: tuple[RuleError, ...] = ()
    comments: int = 0
    filename: Optional[str] = None

    def __iter__(self) -> Iterator[Rule]:
        return (rule for _, rule in self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def check(self) -> None:
        "Raise the first error, if any line failed to parse."
        if self.errors:
            raise self.errors[0]


def parse_rules(text: str,
                revision: Revision = Revision.SIMPLIFIED,
                filename: Optional[str] = None) -> RuleSet:
    rules = []
    errors = []
    comments = 0

    for lineno, line in enumerate(text.splitlines(), start=1):
        try:
            result = parse_line(line, lineno, revision)
        except RuleError as e:
            logger.debug('%s:%s', filename or '<string>', e)
            errors.append(e)
            continue

        if isinstance(result, Rule):
            rules.append((lineno, result))
        elif isinstance(result, Comment):
            comments += 1

    return RuleSet(tuple(rules), tuple(errors), comments, filename)
