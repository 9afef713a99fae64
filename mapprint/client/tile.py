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

"""
Tile locators and clients for HTTP(S) and file sources.
"""
import os
import string

from mapprint.client.http import HTTPClient
from mapprint.image import ImageSource


class FileClientError(Exception):
    pass


class TileURLTemplate(object):
    """
    >>> t = TileURLTemplate('http://foo/tiles/{z}/{x}/{y}.png')
    >>> t.substitute((7, 4, 3))
    'http://foo/tiles/3/7/4.png'

    >>> t = TileURLTemplate('http://foo/tiles/{tc_path}.{ext}')
    >>> t.substitute((7, 4, 3))
    'http://foo/tiles/03/000/000/007/000/000/004.png'

    >>> t = TileURLTemplate('http://foo/tms/1.0.0/lyr/{tms_path}.{ext}')
    >>> t.substitute((7, 4, 3), 'jpeg')
    'http://foo/tms/1.0.0/lyr/3/7/4.jpeg'

    >>> t = TileURLTemplate('http://foo/wmts/{TileMatrix}/{TileRow}/{TileCol}.png')
    >>> t.substitute((7, 4, 3))
    'http://foo/wmts/3/4/7.png'
    """
    placeholders = set(('x', 'y', 'z', 'ext', 'quadkey', 'tc_path', 'tms_path',
                        'TileMatrix', 'TileCol', 'TileRow'))

    def __init__(self, template, format='png'):
        self.template = template
        self.format = format
        fields = set(name for _, name, _, _ in string.Formatter().parse(template)
                     if name is not None)
        unknown = fields - self.placeholders
        if unknown:
            raise ValueError('unknown placeholder(s) in URL template %r: %s' % (
                template, ', '.join(sorted(unknown))))
        self.with_quadkey = 'quadkey' in fields
        self.with_tc_path = 'tc_path' in fields
        self.with_tms_path = 'tms_path' in fields

    def substitute(self, tile_coord, format=None):
        x, y, z = tile_coord
        data = dict(x=x, y=y, z=z, TileCol=x, TileRow=y, TileMatrix=z)
        data['ext'] = format or self.format
        if self.with_quadkey:
            data['quadkey'] = quadkey(tile_coord)
        if self.with_tc_path:
            data['tc_path'] = tilecache_path(tile_coord)
        if self.with_tms_path:
            data['tms_path'] = tms_path(tile_coord)

        return self.template.format(**data)

    @property
    def is_file_template(self):
        return is_file_locator(self.template)

    def __repr__(self):
        return '%s(%r, format=%r)' % (
            self.__class__.__name__, self.template, self.format)


def tilecache_path(tile_coord):
    """
    >>> tilecache_path((1234567, 87654321, 9))
    '09/001/234/567/087/654/321'
    """
    x, y, z = tile_coord
    parts = ("%02d" % z,
             "%03d" % int(x / 1000000),
             "%03d" % (int(x / 1000) % 1000),
             "%03d" % (int(x) % 1000),
             "%03d" % int(y / 1000000),
             "%03d" % (int(y / 1000) % 1000),
             "%03d" % (int(y) % 1000))
    return '/'.join(parts)


def quadkey(tile_coord):
    """
    >>> quadkey((0, 0, 1))
    '0'
    >>> quadkey((1, 0, 1))
    '1'
    >>> quadkey((1, 2, 2))
    '21'
    """
    x, y, z = tile_coord
    quadKey = ""
    for i in range(z, 0, -1):
        digit = 0
        mask = 1 << (i-1)
        if (x & mask) != 0:
            digit += 1
        if (y & mask) != 0:
            digit += 2
        quadKey += str(digit)
    return quadKey


def tms_path(tile_coord):
    """
    >>> tms_path((1234567, 87654321, 9))
    '9/1234567/87654321'
    """
    return '%d/%d/%d' % (tile_coord[2], tile_coord[0], tile_coord[1])


def is_file_locator(locator):
    """
    >>> is_file_locator('file:///tmp/tiles'), is_file_locator('/tmp/tiles')
    (True, True)
    >>> is_file_locator('https://tile.example.org')
    False
    """
    return locator.startswith('file://') or '://' not in locator


def file_path(locator):
    """
    >>> file_path('file:///tmp/tiles/0/0/0.png')
    '/tmp/tiles/0/0/0.png'
    """
    if locator.startswith('file://'):
        locator = locator[len('file://'):]
    return locator


class TileClient(object):
    """
    Retrieves tiles from HTTP(S) URLs.
    """
    def __init__(self, url_template, http_client=None):
        self.url_template = url_template
        self.http_client = http_client or HTTPClient()

    def tile_url(self, tile_coord, format=None):
        return self.url_template.substitute(tile_coord, format)

    def get_tile(self, tile_coord, format=None, headers=None, timeout=None):
        url = self.tile_url(tile_coord, format)
        return self.http_client.open_image(url, headers=headers, timeout=timeout)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.url_template)


class FileClient(object):
    """
    Reads tiles from the local filesystem (``file://`` URLs or plain paths).
    """
    def __init__(self, url_template):
        self.url_template = url_template

    def tile_url(self, tile_coord, format=None):
        return self.url_template.substitute(tile_coord, format)

    def get_tile(self, tile_coord, format=None, headers=None, timeout=None):
        path = file_path(self.tile_url(tile_coord, format))
        if not os.path.exists(path):
            raise FileClientError('file not found: %s' % path)
        try:
            with open(path, 'rb') as f:
                return ImageSource(f.read())
        except IOError as ex:
            raise FileClientError('unable to read %s: %s' % (path, ex))

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.url_template)


def tile_client(url_template, http_client=None):
    """
    Return the client for the locator type of `url_template`.
    """
    if url_template.is_file_template:
        return FileClient(url_template)
    return TileClient(url_template, http_client=http_client)
