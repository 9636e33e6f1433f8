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

"""Lexical forms of the rule language, as pyparsing elements.

Two revisions of the grammar exist and both are kept:

BOUNDED encodes the 0-255 bound of major/minor numerals and the octal range of
mode digits in the token patterns, so a violation is a plain syntax error.

SIMPLIFIED accepts any digit run and checks the value in a parse action, which
raises OutOfDomain. Range checks live outside the token patterns in this
revision; the patterns only say what a number looks like.

All elements returned here skip no whitespace on their own. Field separators
are explicit (see separator()), and the pieces of the first field of a rule
must be written without any whitespace between them.
"""

import enum
import string

from pyparsing import (Char, Literal, Optional, ParserElement, ParseSyntaxException,
                       Regex, Suppress, White, Word)

BYTE_MAX = 255

# 0..255 without leading zeros, not followed by another digit
BOUNDED_BYTE = r'(?:25[0-5]|2[0-4][0-9]|1[0-9][0-9]|[1-9]?[0-9])(?![0-9])'

ENVVAR_CHARS = string.ascii_uppercase + '_'
NAME_CHARS = string.ascii_letters


class Revision(enum.Enum):
    BOUNDED = 'bounded'
    SIMPLIFIED = 'simplified'

    @classmethod
    def from_string(cls, s: str) -> 'Revision':
        try:
            return cls(s.strip().lower())
        except ValueError:
            raise ValueError(f'Unknown grammar revision: {s!r}') from None


class OutOfDomain(ParseSyntaxException):
    """A token that is well-formed but carries a value outside its domain.

    This derives from ParseSyntaxException so that pyparsing neither backtracks
    over it nor rewraps it when it is raised behind an error stop ('-').
    """


def _tight(expr: ParserElement) -> ParserElement:
    return expr.leave_whitespace()


def _check_byte(s: str, loc: int, toks) -> int:
    value = int(toks[0])
    if value > BYTE_MAX:
        raise OutOfDomain(s, loc, f'{value} is out of range 0..{BYTE_MAX}')
    return value


def _check_octal(s: str, loc: int, toks) -> str:
    digits = toks[0]
    for i, c in enumerate(digits):
        if c not in string.octdigits:
            raise OutOfDomain(s, loc + i, f'mode digit {c!r} is not an octal digit')
    return digits


def separator() -> ParserElement:
    return _tight(White(' \t')).suppress().set_name('whitespace')


def number(revision: Revision) -> ParserElement:
    if revision is Revision.BOUNDED:
        expr = Regex(BOUNDED_BYTE)
    else:
        expr = Word(string.digits)
    return _tight(expr).set_parse_action(_check_byte).set_name('major/minor number')


def majmin(revision: Revision) -> ParserElement:
    """@major,minor[-max_minor]

    In the BOUNDED revision the '-' must be followed by a numeral. SIMPLIFIED
    also accepts a dangling '-', reported as a 'dash' result without
    'max_minor'.
    """
    num = number(revision)
    if revision is Revision.BOUNDED:
        upper = Literal('-')('dash') - num('max_minor')
    else:
        upper = Literal('-')('dash') + Optional(num('max_minor'))

    expr = Suppress('@') - num('major') - Suppress(',') - num('minor') + Optional(upper)
    return _tight(expr).set_name('major/minor selector')


def mode(revision: Revision) -> ParserElement:
    digit = '[0-7]' if revision is Revision.BOUNDED else '[0-9]'
    expr = Regex(digit + '{3}(?![0-9])')
    return _tight(expr).set_parse_action(_check_octal).set_name('mode')


def name() -> ParserElement:
    return _tight(Word(NAME_CHARS)).set_name('name')


def envvar() -> ParserElement:
    return _tight(Word(ENVVAR_CHARS)).set_name('environment variable')


def env_assignment(revision: Revision) -> ParserElement:
    """VAR= in front of a pattern, giving the variable name.

    BOUNDED lexes the '=' as part of the variable token, so '$FOO root' is
    reported at the variable. SIMPLIFIED has the bare variable token followed
    by a separate '=', and the same line is reported at the missing '='.
    Both accept the same text.
    """
    if revision is Revision.BOUNDED:
        expr = Regex(f'[{ENVVAR_CHARS}]+=').set_parse_action(lambda toks: toks[0][:-1])
        return _tight(expr).set_name('environment variable assignment')
    return _tight(envvar() + Suppress('=')).set_name('environment variable assignment')


def regex() -> ParserElement:
    # Opaque; compiled by the re module, never looked into here.
    return _tight(Regex(r'[^\s;]+')).set_name('regex')


def device_regex() -> ParserElement:
    # '@' and '$' at the start of the selector introduce the other forms.
    return _tight(Regex(r'(?![@$])[^\s;]+')).set_name('device name regex')


def path() -> ParserElement:
    return _tight(Regex(r'/?[^/\s\x00]+(?:/[^/\s\x00]+)*/?')).set_name('path')


def argument() -> ParserElement:
    return _tight(Regex(r'\S+')).set_name('argument')


def timing_marker() -> ParserElement:
    return _tight(Char('@$*')).set_name('timing marker')
