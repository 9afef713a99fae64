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
In-memory representation of print jobs.
"""
import uuid
from collections import namedtuple
from types import MappingProxyType

from mapprint.image.opts import ImageFormat
from mapprint.srs import SRS


def freeze(value):
    """
    Return a read-only copy of nested dicts and lists.

    >>> frozen = freeze({'a': [1, {'b': 2}]})
    >>> frozen['a']
    (1, mappingproxy({'b': 2}))
    """
    if isinstance(value, dict):
        return MappingProxyType(dict((k, freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


class Page(namedtuple('Page', ['bbox', 'scale'])):
    """
    One page of a print job.

    :ivar bbox: page extent in job SRS units
    :ivar scale: optional scale denominator
    """
    __slots__ = ()

    def __new__(cls, bbox, scale=None):
        return super(Page, cls).__new__(cls, tuple(float(v) for v in bbox), scale)


class PrintJob(namedtuple('PrintJob', [
        'id', 'layout', 'srs', 'units', 'dpi', 'output_format', 'layers', 'pages',
        'geodetic'])):
    """
    A print job. Immutable, layer descriptors are read-only mappings.

    :ivar srs: the `SRS` of the job
    :ivar layers: layer descriptors in drawing order (bottom layer first)
    :ivar pages: `Page` tuple, only the first page is rendered
    """
    __slots__ = ()

    def __new__(cls, srs, dpi, layers, pages, units=None, layout=None,
                output_format='png', geodetic=False, id=None):
        if id is None:
            id = uuid.uuid4().hex
        srs = SRS(srs) if srs is not None else None
        pages = tuple(p if isinstance(p, Page) else Page(p['bbox'], p.get('scale'))
                      for p in pages)
        return super(PrintJob, cls).__new__(
            cls, id, layout, srs, units, dpi, ImageFormat(output_format or 'png'),
            freeze(list(layers)), pages, bool(geodetic))

    def __repr__(self):
        return 'PrintJob(id=%r, srs=%r, dpi=%r, layers=%d, pages=%d)' % (
            self.id, self.srs, self.dpi, len(self.layers), len(self.pages))
