# This file is part of the MapPrint project.
# Copyright (C) 2026 MapPrint contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from collections import namedtuple


class GridError(Exception):
    pass


class NoTiles(GridError):
    pass


ORIGIN_UL = 'ul'
ORIGIN_LL = 'll'


def origin_from_string(origin):
    if origin is None:
        origin = ORIGIN_UL
    elif origin.lower() in ('ll', 'sw'):
        origin = ORIGIN_LL
    elif origin.lower() in ('ul', 'nw'):
        origin = ORIGIN_UL
    else:
        raise ValueError("unknown origin value '%s'" % origin)
    return origin


class TileRequest(namedtuple('TileRequest', ['layer', 'level', 'x', 'y'])):
    """
    A single tile of a layer, identified by pyramid level, column and row.
    """
    __slots__ = ()

    @property
    def coord(self):
        return self.x, self.y, self.level

    def __repr__(self):
        return 'TileRequest(%r, level=%d, x=%d, y=%d)' % (
            getattr(self.layer, 'name', self.layer), self.level, self.x, self.y)
