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

# pylint: disable=missing-class-docstring

"""Value types for parsed rule lines.

Everything here is immutable. Rules are created by mdevconf.parser and are
never modified afterwards; str() of any of them gives back the canonical
configuration syntax, so that parse_line(str(rule)) == rule.
"""

import dataclasses
import enum
from typing import Optional, Union


class Timing(enum.Enum):
    "When a command runs relative to node creation. The value is the marker character."

    AFTER = '@'
    BEFORE = '$'
    BOTH = '*'


@dataclasses.dataclass(frozen=True)
class UserGroup:
    user: str
    group: str

    def __str__(self) -> str:
        return f'{self.user}:{self.group}'


@dataclasses.dataclass(frozen=True)
class Mode:
    "A 9-bit permission value, written as three octal digits."

    value: int

    @classmethod
    def from_digits(cls, digits: str) -> 'Mode':
        return cls(int(digits, 8))

    def __str__(self) -> str:
        return f'{self.value:03o}'


@dataclasses.dataclass(frozen=True)
class EnvMatch:
    var_name: str
    pattern: str

    def __str__(self) -> str:
        return f'{self.var_name}={self.pattern};'


@dataclasses.dataclass(frozen=True)
class MajMin:
    major: int
    minor: int
    max_minor: Optional[int] = None

    def __str__(self) -> str:
        s = f'@{self.major},{self.minor}'
        if self.max_minor is not None:
            s += f'-{self.max_minor}'
        return s


@dataclasses.dataclass(frozen=True)
class DeviceRegex:
    pattern: str
    # $VAR= gate: the variable must be present in the event
    env_var: Optional[str] = None

    def __str__(self) -> str:
        if self.env_var is None:
            return self.pattern
        return f'${self.env_var}={self.pattern}'


Selector = Union[MajMin, DeviceRegex]


@dataclasses.dataclass(frozen=True)
class Matcher:
    selector: Selector
    env_matches: tuple[EnvMatch, ...] = ()
    stop: bool = False

    def __str__(self) -> str:
        return ('-' if self.stop else '') + ''.join(map(str, self.env_matches)) + str(self.selector)


@dataclasses.dataclass(frozen=True)
class MoveTo:
    path: str

    def __str__(self) -> str:
        return f'={self.path}'


@dataclasses.dataclass(frozen=True)
class Symlink:
    "Move the node to path and leave a symlink behind under the original name."

    path: str

    def __str__(self) -> str:
        return f'>{self.path}'


@dataclasses.dataclass(frozen=True)
class Prevent:
    def __str__(self) -> str:
        return '!'


OnCreation = Union[MoveTo, Symlink, Prevent]


@dataclasses.dataclass(frozen=True)
class Command:
    timing: Timing
    executable: str
    args: tuple[str, ...] = ()

    def __str__(self) -> str:
        return ' '.join((self.timing.value + self.executable, *self.args))


@dataclasses.dataclass(frozen=True)
class Rule:
    matcher: Matcher
    owner: UserGroup
    mode: Mode
    on_creation: Optional[OnCreation] = None
    command: Optional[Command] = None

    def __str__(self) -> str:
        fields = [self.matcher, self.owner, self.mode, self.on_creation, self.command]
        return ' '.join(str(f) for f in fields if f is not None)


@dataclasses.dataclass(frozen=True)
class Comment:
    text: str = ''


@dataclasses.dataclass(frozen=True)
class Empty:
    pass


LineResult = Union[Comment, Empty, Rule]


def format_rule(rule: Rule) -> str:
    return str(rule)
