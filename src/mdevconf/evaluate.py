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

"""Matching of device events against parsed rules.

evaluate() walks the rules in file order. Every rule whose matcher accepts the
event is applied: owner and mode are taken from the last matching rule, as is
the on-creation action of the last matching rule that has one, and commands
are accumulated in order. A matching rule that carries the stop flag ends the
walk. Nothing here raises on bad input coming from a rule; an event that
matches nothing gives an empty Decision.
"""

import dataclasses
import functools
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Union

from .grammar import BYTE_MAX
from .parser import RuleSet
from .rules import (Command, DeviceRegex, MajMin, Matcher, Mode, MoveTo,
                    OnCreation, Prevent, Rule, Symlink, Timing, UserGroup)

logger = logging.getLogger(__name__)

GROUP_REFERENCE = re.compile(r'%([1-9])')


@dataclasses.dataclass(frozen=True)
class DeviceEvent:
    device_name: str
    major: int
    minor: int
    env: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        for field in ('major', 'minor'):
            value = getattr(self, field)
            if not 0 <= value <= BYTE_MAX:
                raise ValueError(f'Device {field} number {value} is out of range 0..{BYTE_MAX}')


@dataclasses.dataclass(frozen=True)
class Decision:
    """The merged outcome for one event.

    owner and mode are None when no rule matched, meaning the defaults apply.
    suppressed is set when any applied rule said '!', even if a later rule set
    another action. matched lists the line numbers of the applied rules.
    """

    owner: Optional[UserGroup] = None
    mode: Optional[Mode] = None
    on_creation: Optional[OnCreation] = None
    commands: tuple[Command, ...] = ()
    suppressed: bool = False
    matched: tuple[int, ...] = ()

    def commands_at(self, timing: Timing) -> list[Command]:
        "Commands to run at the given point; BOTH commands are included in either case."
        return [c for c in self.commands
                if c.timing is timing or c.timing is Timing.BOTH]

    def to_dict(self) -> dict[str, Any]:
        return {
            'owner': str(self.owner) if self.owner else None,
            'mode': str(self.mode) if self.mode else None,
            'on_creation': str(self.on_creation) if self.on_creation else None,
            'commands': [str(c) for c in self.commands],
            'suppressed': self.suppressed,
            'matched': list(self.matched),
        }


PATTERN_CACHE_SIZE = 512


@functools.lru_cache(maxsize=PATTERN_CACHE_SIZE)
def compile_pattern(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _regex(pattern: str) -> Optional[re.Pattern]:
    try:
        return compile_pattern(pattern)
    except re.error as e:
        logger.warning('Ignoring invalid regex %r: %s', pattern, e)
        return None


def match(matcher: Matcher, event: DeviceEvent) -> Optional[tuple[str, ...]]:
    """Check one matcher against an event.

    Returns None if the event is not matched, otherwise the groups captured by
    the device name regex ('' for groups that did not participate), which is
    an empty tuple for major/minor selectors.

    The VAR=regex; clauses are tried left to right and the first one that
    fails ends the check, later clauses are not looked at.
    """
    for env_match in matcher.env_matches:
        value = event.env.get(env_match.var_name)
        if value is None:
            return None
        regex = _regex(env_match.pattern)
        if regex is None or regex.search(value) is None:
            return None

    selector = matcher.selector

    if isinstance(selector, MajMin):
        if event.major != selector.major:
            return None
        upper = selector.minor if selector.max_minor is None else selector.max_minor
        if not selector.minor <= event.minor <= upper:
            return None
        return ()

    if not isinstance(selector, DeviceRegex):
        raise TypeError(f'Unknown selector type: {type(selector).__name__}')
    if selector.env_var is not None and selector.env_var not in event.env:
        return None

    regex = _regex(selector.pattern)
    if regex is None:
        return None
    m = regex.fullmatch(event.device_name)
    if m is None:
        return None
    return m.groups(default='')


def matches(matcher: Matcher, event: DeviceEvent) -> bool:
    return match(matcher, event) is not None


def resolve_path(path: str, device_name: str, groups: tuple[str, ...] = ()) -> str:
    """Expand %1..%9 from the captured groups, and append the device name
    when the path names a directory (ends in '/')."""

    def group(m: re.Match) -> str:
        n = int(m.group(1))
        return groups[n - 1] if n <= len(groups) else ''

    path = GROUP_REFERENCE.sub(group, path)
    if path.endswith('/'):
        path += device_name
    return path


def resolve_action(action: OnCreation, device_name: str, groups: tuple[str, ...] = ()) -> OnCreation:
    if isinstance(action, MoveTo):
        return MoveTo(resolve_path(action.path, device_name, groups))
    if isinstance(action, Symlink):
        return Symlink(resolve_path(action.path, device_name, groups))
    return action


RuleSource = Union[RuleSet, Iterable[Rule], Iterable[tuple[int, Rule]]]


def _numbered(rules: RuleSource) -> Iterator[tuple[int, Rule]]:
    if isinstance(rules, RuleSet):
        yield from rules.rules
        return
    for n, item in enumerate(rules, start=1):
        # (lineno, Rule) pairs keep their own numbering
        yield item if isinstance(item, tuple) else (n, item)


def evaluate(rules: RuleSource, event: DeviceEvent) -> Decision:
    owner = mode = on_creation = None
    commands = []
    matched = []
    suppressed = False

    for lineno, rule in _numbered(rules):
        groups = match(rule.matcher, event)
        if groups is None:
            continue

        logger.debug('%s: rule %d matched: %s', event.device_name, lineno, rule)
        matched.append(lineno)

        owner = rule.owner
        mode = rule.mode
        if rule.on_creation is not None:
            on_creation = resolve_action(rule.on_creation, event.device_name, groups)
            if isinstance(rule.on_creation, Prevent):
                suppressed = True
        if rule.command is not None:
            commands.append(rule.command)

        if rule.matcher.stop:
            logger.debug('%s: stopping at rule %d', event.device_name, lineno)
            break

    return Decision(owner=owner,
                    mode=mode,
                    on_creation=on_creation,
                    commands=tuple(commands),
                    suppressed=suppressed,
                    matched=tuple(matched))
