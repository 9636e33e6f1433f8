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

"""Parser and evaluator for mdev-style device node rules.

    >>> rules = parse_rules('-@1,1 root:root 600\\n@1,1 root:root 777\\n')
    >>> str(evaluate(rules, DeviceEvent('mem', 1, 1)).mode)
    '600'
"""

from .evaluate import Decision, DeviceEvent, evaluate, match, matches, resolve_path
from .grammar import Revision
from .parser import (RuleError, RuleSemanticError, RuleSet, RuleSyntaxError,
                     parse_line, parse_rules)
from .rules import (Command, Comment, DeviceRegex, Empty, EnvMatch, LineResult,
                    MajMin, Matcher, Mode, MoveTo, OnCreation, Prevent, Rule,
                    Selector, Symlink, Timing, UserGroup, format_rule)

__version__ = '0.1.0'

__all__ = [
    'Command', 'Comment', 'Decision', 'DeviceEvent', 'DeviceRegex', 'Empty',
    'EnvMatch', 'LineResult', 'MajMin', 'Matcher', 'Mode', 'MoveTo',
    'OnCreation', 'Prevent', 'Revision', 'Rule', 'RuleError',
    'RuleSemanticError', 'RuleSet', 'RuleSyntaxError', 'Selector', 'Symlink',
    'Timing', 'UserGroup', 'evaluate', 'format_rule', 'match', 'matches',
    'parse_line', 'parse_rules', 'resolve_path',
]
