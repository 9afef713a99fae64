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
Image handling: decoding of tile responses and encoding of print output.
"""
import io
from io import BytesIO

from PIL import Image
from PIL.TiffImagePlugin import ImageFileDirectory_v2
from PIL import TiffTags

from mapprint.image.opts import ImageFormat

import logging
log = logging.getLogger('mapprint.image')


magic_bytes = [
    ('png', (b"\211PNG\r\n\032\n",)),
    ('jpeg', (b"\xFF\xD8",)),
    ('tiff', (b"MM\x00\x2a", b"II\x2a\x00",)),
    ('gif', (b"GIF87a", b"GIF89a",)),
    ('pdf', (b"%PDF",)),
]


def peek_image_format(buf):
    """
    >>> peek_image_format(BytesIO(b'GIF89a...'))
    'gif'
    >>> peek_image_format(BytesIO(b'<html>')) is None
    True
    """
    buf.seek(0)
    header = buf.read(10)
    buf.seek(0)
    for format, bytes in magic_bytes:
        if header.startswith(bytes):
            return format
    return None


TIFF_MODELPIXELSCALETAG = 33550
TIFF_MODELTIEPOINTTAG = 33922
TIFF_GEOKEYDIRECTORYTAG = 34735


class GeoReference(object):
    """
    Location of an image in the world, written as GeoTIFF tags.
    """
    def __init__(self, bbox, srs):
        self.bbox = bbox
        self.srs = srs

    def tiepoints(self):
        return (
            0.0, 0.0, 0.0,
            self.bbox[0], self.bbox[3], 0.0,
        )

    def pixelscale(self, img_size):
        width = self.bbox[2] - self.bbox[0]
        height = self.bbox[3] - self.bbox[1]
        return (
            float(width)/img_size[0], float(height)/img_size[1], 0.0,
        )

    def epsg_code(self):
        return self.srs.proj.to_epsg() or 0

    def tiff_tags(self, img_size):
        tags = ImageFileDirectory_v2()
        tags[TIFF_MODELPIXELSCALETAG] = self.pixelscale(img_size)
        tags.tagtype[TIFF_MODELPIXELSCALETAG] = TiffTags.DOUBLE
        tags[TIFF_MODELTIEPOINTTAG] = self.tiepoints()
        tags.tagtype[TIFF_MODELTIEPOINTTAG] = TiffTags.DOUBLE

        if self.srs.is_latlong:
            model_type, crs_key = 2, 2048  # GeographicTypeGeoKey
        else:
            model_type, crs_key = 1, 3072  # ProjectedCSTypeGeoKey
        tags[TIFF_GEOKEYDIRECTORYTAG] = (
            1, 1, 0, 3,  # {KeyDirectoryVersion, KeyRevision, MinorRevision, NumberOfKeys}
            1024, 0, 1, model_type,  # 1 projected, 2 geographic (lat/long)
            1025, 0, 1, 1,  # 1 RasterIsArea, 2 RasterIsPoint
            crs_key, 0, 1, self.epsg_code(),
        )
        tags.tagtype[TIFF_GEOKEYDIRECTORYTAG] = TiffTags.SHORT
        return tags


class ImageSource(object):
    """
    This class wraps either a PIL image, a file-like object, or a file name.
    You can access the result as an image (`as_image`).
    """

    def __init__(self, source, size=None, georef=None):
        """
        :param source: the image
        :type source: PIL `Image`, image file object, or filename
        :param size: the size of the ``source`` in pixel
        """
        self._img = None
        self._buf = None
        self._fname = None
        self.source = source
        self._size = size
        self.georef = georef

    @property
    def source(self):
        return self._img or self._buf or self._fname

    @source.setter
    def source(self, source):
        self._img = None
        self._buf = None
        if isinstance(source, str):
            self._fname = source
        elif isinstance(source, Image.Image):
            self._img = source
        elif isinstance(source, bytes):
            self._buf = BytesIO(source)
        else:
            self._buf = source

    def close_buffers(self):
        if self._buf:
            try:
                self._buf.close()
            except IOError:
                pass

    @property
    def filename(self):
        return self._fname

    def as_image(self):
        """
        Returns the image or the loaded image.

        :rtype: PIL `Image`
        """
        if not self._img:
            self._make_seekable_buf()
            log.debug('file(%s) -> image', self._fname or self._buf)

            try:
                img = Image.open(self._buf)
                img.load()
            except Exception:
                self.close_buffers()
                raise
            self._img = img
        return self._img

    def _make_seekable_buf(self):
        if not self._buf and self._fname:
            self._buf = open(self._fname, 'rb')
        else:
            try:
                self._buf.seek(0)
            except (io.UnsupportedOperation, AttributeError):
                # PIL needs file objects with seek
                self._buf = BytesIO(self._buf.read())

    @property
    def size(self):
        if self._size is None:
            self._size = self.as_image().size
        return self._size


def filter_format(format):
    """
    >>> filter_format('png8'), filter_format('geotiff'), filter_format('jpg')
    ('png', 'tiff', 'jpeg')
    """
    format = format.lower()
    if format in ('geotiff', 'tif'):
        format = 'tiff'
    elif format.startswith('png'):
        format = 'png'
    elif format == 'jpg':
        format = 'jpeg'
    return format


def img_to_buf(img, image_opts, georef=None, dpi=None):
    """
    Encode `img` with the format and encoding options of `image_opts`.

    :param georef: `GeoReference` for GeoTIFF output
    :param dpi: resolution stored in the output (required for PDF page size)
    """
    defaults = {}
    image_opts = image_opts.copy()
    ext = image_opts.format.ext

    if ext == 'png8' and not image_opts.colors:
        image_opts.colors = 256

    format = filter_format(ext)
    if format == 'gif' and not image_opts.colors:
        image_opts.colors = 256

    # quantize if colors is set, but not if we already have a paletted image
    if image_opts.colors and format in ('png', 'gif') and img.mode != 'P':
        quantizer = image_opts.encoding_options.get('quantizer')
        if image_opts.transparent:
            img = quantize(img, colors=image_opts.colors, alpha=True,
                           defaults=defaults, quantizer=quantizer)
        else:
            img = quantize(img, colors=image_opts.colors, quantizer=quantizer)

    if dpi and format in ('png', 'jpeg', 'tiff'):
        defaults['dpi'] = (dpi, dpi)

    buf = BytesIO()
    if format == 'jpeg':
        img = img.convert('RGB')
        defaults['quality'] = image_opts.encoding_options.get('jpeg_quality', 90)

    elif format == 'tiff':
        if georef and ext == 'geotiff':
            defaults['tiffinfo'] = georef.tiff_tags(img.size)
        if 'tiff_compression' in image_opts.encoding_options:
            defaults['compression'] = image_opts.encoding_options['tiff_compression']

    elif format == 'pdf':
        # no alpha in PDF images
        img = img.convert('RGB')
        defaults['resolution'] = float(dpi or 72)

    elif format == 'png' and not image_opts.transparent and img.mode == 'RGBA':
        img = img.convert('RGB')

    img.save(buf, ImageFormat(format).pil_format, **defaults)
    buf.seek(0)
    return buf


def quantize(img, colors=256, alpha=False, defaults=None, quantizer=None):
    if quantizer in (None, 'fastoctree'):
        if not alpha:
            img = img.convert('RGB')
        elif img.mode != 'RGBA':
            img = img.convert('RGBA')
        img = img.quantize(colors, Image.FASTOCTREE)
    else:
        if alpha and img.mode == 'RGBA':
            img.load()  # split might fail if image is not loaded
            alpha = img.split()[3]
            img = img.convert('RGB').convert('P', palette=Image.ADAPTIVE, colors=colors-1)
            mask = Image.eval(alpha, lambda a: 255 if a <= 128 else 0)
            img.paste(255, mask)
            if defaults is not None:
                defaults['transparency'] = 255
        else:
            img = img.convert('RGB').convert('P', palette=Image.ADAPTIVE, colors=colors)

    return img


image_filter = {
    'nearest': Image.NEAREST,
    'bilinear': Image.BILINEAR,
    'bicubic': Image.BICUBIC
}
