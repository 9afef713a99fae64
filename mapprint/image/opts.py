# -:- encoding: utf-8 -:-
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

import copy

from PIL import Image, ImageColor


class ImageOptions(object):
    def __init__(self, mode=None, transparent=None,
                 format=None, bgcolor=None, colors=None, encoding_options=None):
        self.transparent = transparent
        if format is not None:
            format = ImageFormat(format)
        self.format = format
        self.mode = mode
        self.bgcolor = bgcolor
        self.colors = colors
        self.encoding_options = encoding_options or {}

    def __repr__(self):
        options = []
        for k in sorted(vars(self)):
            v = getattr(self, k)
            if v is not None and v != {}:
                options.append('%s=%r' % (k, v))
        return 'ImageOptions(%s)' % (', '.join(options), )

    def copy(self):
        opts = copy.copy(self)
        opts.encoding_options = dict(self.encoding_options)
        return opts


# format name -> (PIL format, mime type)
_formats = {
    'png': ('PNG', 'image/png'),
    'png8': ('PNG', 'image/png'),
    'jpeg': ('JPEG', 'image/jpeg'),
    'jpg': ('JPEG', 'image/jpeg'),
    'gif': ('GIF', 'image/gif'),
    'tiff': ('TIFF', 'image/tiff'),
    'tif': ('TIFF', 'image/tiff'),
    'geotiff': ('TIFF', 'image/tiff'),
    'pdf': ('PDF', 'application/pdf'),
}


class ImageFormat(str):
    """
    Output or tile format, either a short name (``png``, ``png8``,
    ``jpeg``, ``geotiff``, ``pdf``) or a mime type (``image/png``).

    >>> ImageFormat('image/png') == 'png'
    True
    >>> ImageFormat('png8').pil_format
    'PNG'
    >>> ImageFormat('pdf').mime_type
    'application/pdf'
    """
    def __new__(cls, value, *args, **keywargs):
        if isinstance(value, ImageFormat):
            return value
        return str.__new__(cls, value)

    @property
    def ext(self):
        ext = self
        if '/' in ext:
            ext = ext.split('/', 1)[1]
        if ';' in ext:
            ext = ext.split(';', 1)[0]

        return ext.strip().lower()

    @property
    def mime_type(self):
        if self.ext in _formats:
            return _formats[self.ext][1]
        if self.startswith(('image/', 'application/')):
            return str(self)
        return 'image/' + self.ext

    @property
    def pil_format(self):
        try:
            return _formats[self.ext][0]
        except KeyError:
            raise ValueError('unsupported image format %r' % str(self))

    @property
    def is_supported(self):
        return self.ext in _formats

    def __eq__(self, other):
        if isinstance(other, str):
            other = ImageFormat(other)
        else:
            return NotImplemented

        return self.ext == other.ext

    def __ne__(self, other):
        return not (self == other)

    def __hash__(self):
        return hash(self.ext)


def create_image(size, image_opts=None):
    """
    Create a new image that is compatible with the given `image_opts`.
    Takes into account mode, transparent, bgcolor.

    >>> create_image((2, 2), ImageOptions(transparent=True, bgcolor='#ff0000')).getpixel((0, 0))
    (255, 0, 0, 0)
    """
    if image_opts is None:
        mode = 'RGB'
        bgcolor = (255, 255, 255)
    else:
        mode = image_opts.mode
        if mode in (None, 'P'):
            if image_opts.transparent:
                mode = 'RGBA'
            else:
                mode = 'RGB'

        bgcolor = image_opts.bgcolor or (255, 255, 255)

        if isinstance(bgcolor, str):
            bgcolor = ImageColor.getrgb(bgcolor)

        if image_opts.transparent and len(bgcolor) == 3:
            bgcolor = bgcolor + (0, )

    if mode == 'RGBA' and len(bgcolor) == 3:
        bgcolor = bgcolor + (255, )

    return Image.new(mode, size, tuple(bgcolor))
