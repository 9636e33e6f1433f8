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

import configparser
import dataclasses
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .grammar import Revision

logger = logging.getLogger(__name__)

# Searched in this order when no config file is given; the first file found is used.
DEFAULT_CONFIG_DIRS = ['/etc/mdevconf', '/run/mdevconf', '/usr/local/lib/mdevconf', '/usr/lib/mdevconf']
DEFAULT_CONFIG_FILE = 'mdevconf.conf'


def parse_boolean(s: str) -> bool:
    "Parse 1/true/yes/y/t/on as true and 0/false/no/n/f/off as false"
    s_l = s.lower()
    if s_l in {'1', 'true', 'yes', 'y', 't', 'on'}:
        return True
    if s_l in {'0', 'false', 'no', 'n', 'f', 'off'}:
        return False
    raise ValueError(f'Invalid boolean literal: {s!r}')


@dataclasses.dataclass
class Options:
    revision: Revision = Revision.SIMPLIFIED
    # one bad line invalidates the whole rule file
    strict: bool = False


# config file section/key -> (Options field, converter)
CONFIG_ITEMS: dict[str, tuple[str, Callable[[str], object]]] = {
    'Parser/Revision': ('revision', Revision.from_string),
    'Parser/Strict':   ('strict', parse_boolean),
}  # fmt: skip


def find_config() -> Optional[Path]:
    for config_dir in DEFAULT_CONFIG_DIRS:
        filename = Path(config_dir) / DEFAULT_CONFIG_FILE
        if filename.is_file():
            return filename
    return None


def load_config(filename: Union[str, Path, None] = None,
                options: Optional[Options] = None) -> Options:
    """Read options from filename, or from the first config file found.

    Values not set in the file keep what options (or the defaults) says.
    """
    if options is None:
        options = Options()

    if filename is None:
        filename = find_config()
        if filename is None:
            # No config file specified or found, nothing to do.
            return options
        logger.info('Using found config file: %s', filename)

    cp = configparser.ConfigParser(
        comment_prefixes='#',
        inline_comment_prefixes='#',
        delimiters='=',
        empty_lines_in_values=False,
        interpolation=None,
        strict=False,
    )
    # Do not make keys lowercase
    cp.optionxform = lambda option: option  # type: ignore

    read = cp.read(filename)
    if not read:
        raise OSError(f'Failed to read {filename}')

    for section_name, section in cp.items():
        for key, value in section.items():
            if item := CONFIG_ITEMS.get(f'{section_name}/{key}'):
                dest, convert = item
                setattr(options, dest, convert(value))
            else:
                logger.warning('Unknown config setting [%s] %s=', section_name, key)

    return options
