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
Compositing of tiles and layers into the print canvas.
"""
from __future__ import division

from PIL import Image, ImageChops

from mapprint.exception import CompositingError
from mapprint.image import image_filter

import logging
log = logging.getLogger('mapprint.image')


def img_for_compositing(img):
    """
    Convert `img` to RGBA, the only mode alpha_composite accepts.
    """
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    return img


def apply_opacity(img, opacity):
    """
    Fade-out the RGBA `img` by multiplying its alpha with `opacity`.

    >>> img = apply_opacity(Image.new('RGBA', (1, 1), (0, 0, 0, 200)), 0.5)
    >>> img.getpixel((0, 0))[3]
    100
    """
    if opacity is None or opacity >= 1.0:
        return img
    alpha = img.getchannel('A')
    alpha = ImageChops.multiply(
        alpha,
        ImageChops.constant(alpha, int(round(255 * opacity)))
    )
    img.putalpha(alpha)
    return img


class TileCompositor(object):
    """
    Writes tile images into a `Canvas`.

    Each tile is placed at the pixel rectangle of its world extent in the
    canvas transformation. The rectangle edges are rounded to whole pixels,
    so tiles that share an edge in world coordinates share the same pixel
    edge in the canvas (no gap and no double write). The tile is resampled
    to the rectangle size when the resolutions differ.

    :param resampling: ``nearest``, ``bilinear`` or ``bicubic``
    """
    def __init__(self, resampling='bilinear'):
        if resampling not in image_filter:
            raise ValueError('unknown resampling method %r' % resampling)
        self.resampling = resampling

    def dest_rect(self, canvas, bbox):
        """
        Pixel rectangle of the world `bbox` in the `canvas`, not clipped.

        :raises CompositingError: if the rectangle lies outside of the canvas
        """
        fx0, fy0, fx1, fy1 = canvas.transform.transform_bbox(bbox)
        rect = (int(round(fx0)), int(round(fy0)), int(round(fx1)), int(round(fy1)))
        width, height = canvas.size
        if rect[2] < 0 or rect[3] < 0 or rect[0] > width or rect[1] > height:
            raise CompositingError('tile %r maps to %r, outside of the %dx%d canvas' % (
                bbox, rect, width, height))
        return rect

    def composite(self, canvas, img, bbox, opacity=None):
        """
        Alpha-composite `img` (a PIL image covering the world `bbox`)
        into `canvas`.

        :returns: the canvas rectangle ``(x0, y0, x1, y1)`` that was written,
                  ``None`` if the tile covers no canvas pixel
        """
        rect = self.dest_rect(canvas, bbox)
        width, height = canvas.size
        x0, y0 = max(rect[0], 0), max(rect[1], 0)
        x1, y1 = min(rect[2], width), min(rect[3], height)
        if x0 >= x1 or y0 >= y1:
            log.debug('skipping tile %r, no canvas pixel covered', bbox)
            return None

        patch = self._resample(canvas, img, bbox, (x0, y0, x1, y1))
        patch = apply_opacity(patch, opacity)
        canvas.image.alpha_composite(patch, dest=(x0, y0))
        return x0, y0, x1, y1

    def _resample(self, canvas, img, bbox, rect):
        """
        Extract the part of `img` that covers the canvas `rect`.
        """
        img = img_for_compositing(img)
        x0, y0, x1, y1 = rect
        dst_size = (x1 - x0, y1 - y0)

        # canvas pixel edges -> world -> tile pixel
        wx0, wy1 = canvas.transform.inverse((x0, y0))
        wx1, wy0 = canvas.transform.inverse((x1, y1))
        sx_scale = img.size[0] / (bbox[2] - bbox[0])
        sy_scale = img.size[1] / (bbox[3] - bbox[1])
        src_box = (
            (wx0 - bbox[0]) * sx_scale,
            (bbox[3] - wy1) * sy_scale,
            (wx1 - bbox[0]) * sx_scale,
            (bbox[3] - wy0) * sy_scale,
        )

        if self._is_plain_crop(src_box, dst_size):
            box = tuple(int(round(v)) for v in src_box)
            return img.crop(box)

        log.debug('resampling %r of %dx%d tile to %r', src_box, img.size[0], img.size[1],
                  dst_size)
        return img.transform(dst_size, Image.EXTENT, src_box, image_filter[self.resampling])

    def _is_plain_crop(self, src_box, dst_size, tolerance=0.01):
        for v in src_box:
            if abs(v - round(v)) > tolerance:
                return False
        return (round(src_box[2] - src_box[0]) == dst_size[0] and
                round(src_box[3] - src_box[1]) == dst_size[1])
