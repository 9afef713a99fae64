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
Encoding of the finished canvas into the requested output format.
"""
import shutil

from mapprint.image import img_to_buf
from mapprint.image.opts import ImageFormat, ImageOptions

import logging
log = logging.getLogger('mapprint.print')


class ImageEncoder(object):
    """
    Encodes RGBA images with Pillow.

    Supports ``png``, ``png8``, ``jpeg``, ``gif``, ``tiff``, ``geotiff``
    and ``pdf``.
    """
    def __init__(self, jpeg_quality=90, transparent=False):
        self.jpeg_quality = jpeg_quality
        self.transparent = transparent

    def supports(self, format):
        return ImageFormat(format).is_supported

    def __call__(self, image_source, format, dpi=None):
        """
        :returns: file-like object with the encoded image
        """
        image_opts = ImageOptions(
            format=format,
            transparent=self.transparent,
            encoding_options={'jpeg_quality': self.jpeg_quality},
        )
        return img_to_buf(image_source.as_image(), image_opts, georef=image_source.georef,
                          dpi=dpi)


class OutputAssembler(object):
    """
    Writes the canvas of a print job to a caller supplied sink.

    :param encoder: callable ``(image_source, format, dpi) -> file-like``,
                    with a ``supports(format)`` method
    """
    def __init__(self, encoder=None):
        self.encoder = encoder or ImageEncoder()

    def supports(self, format):
        return self.encoder.supports(format)

    def write(self, canvas, format, out, dpi=None):
        """
        Encode `canvas` and write it to `out` (a file object or a file name).

        :returns: the number of bytes written
        """
        format = ImageFormat(format)
        buf = self.encoder(canvas.as_image_source(), format, dpi=dpi)
        try:
            if isinstance(out, str):
                with open(out, 'wb') as f:
                    shutil.copyfileobj(buf, f)
            else:
                shutil.copyfileobj(buf, out)
            size = buf.tell()
        finally:
            buf.close()
        log.debug('wrote %d bytes of %s', size, format.mime_type)
        return size
