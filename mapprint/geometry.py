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
Page geometry: canvas size and world-to-pixel transformation of a print job.
"""

from __future__ import division

import math

from mapprint.exception import InvalidGeometryError
from mapprint.grid.resolutions import (
    fit_res,
    meters_per_unit,
    normalize_units,
    res_to_scale,
    scale_to_res,
)
from mapprint.srs import make_lin_transf
from mapprint.util.bbox import bbox_size, bbox_tuple, is_degenerate


class WorldToPixel(object):
    """
    Affine transformation between world coordinates in `bbox` and
    pixel coordinates of an image with `size`.

    (minx, maxy) maps to (0, 0) and (maxx, miny) maps to (width, height).

    >>> t = WorldToPixel((0, 0, 1000, 500), (100, 50))
    >>> t((0, 500)), t((1000, 0))
    ((0.0, 0.0), (100.0, 50.0))
    >>> t.inverse((50, 25))
    (500.0, 250.0)
    """
    def __init__(self, bbox, size):
        self.bbox = bbox
        self.size = size
        self._transf = make_lin_transf(bbox, (0, 0, size[0], size[1]))

    @property
    def pixel_res(self):
        """World units per pixel in x and y direction."""
        return ((self.bbox[2] - self.bbox[0]) / self.size[0],
                (self.bbox[3] - self.bbox[1]) / self.size[1])

    def __call__(self, point):
        return self._transf(point)

    def inverse(self, point):
        px, py = point
        x = self.bbox[0] + px * (self.bbox[2] - self.bbox[0]) / self.size[0]
        y = self.bbox[3] - py * (self.bbox[3] - self.bbox[1]) / self.size[1]
        return (x, y)

    def transform_bbox(self, bbox):
        """
        Pixel rectangle ``(x0, y0, x1, y1)`` of the world `bbox`,
        with x0 <= x1 and y0 <= y1.
        """
        x0, y1 = self((bbox[0], bbox[1]))
        x1, y0 = self((bbox[2], bbox[3]))
        return x0, y0, x1, y1

    def __repr__(self):
        return 'WorldToPixel(%r, %r)' % (self.bbox, self.size)


class CanvasGeometry(object):
    """
    Resolved geometry of one print page.

    :ivar bbox: page extent in job SRS units
    :ivar size: canvas size in pixel ``(width, height)``
    :ivar res: ground resolution in units/pixel
    :ivar transform: the `WorldToPixel` of this canvas
    """
    def __init__(self, bbox, size, res, dpi, units, srs=None):
        self.bbox = bbox
        self.size = size
        self.res = res
        self.dpi = dpi
        self.units = units
        self.srs = srs
        self.transform = WorldToPixel(bbox, size)

    @property
    def scale(self):
        return res_to_scale(self.res, self.dpi, self.units)

    def __repr__(self):
        return 'CanvasGeometry(bbox=%r, size=%r, res=%r, dpi=%r, units=%r)' % (
            self.bbox, self.size, self.res, self.dpi, self.units)


def canvas_size(bbox, res):
    """
    >>> canvas_size((0, 0, 1000, 500), 3.0)
    (334, 167)
    >>> canvas_size((0, 0, 0.3, 0.1), 0.1)
    (3, 1)
    """
    width, height = bbox_size(bbox)
    # float noise must not add another pixel row or column
    return (max(int(math.ceil(width / res - 1e-9)), 1),
            max(int(math.ceil(height / res - 1e-9)), 1))


def resolve_geometry(bbox, dpi, units=None, scale=None, map_size=None, srs=None,
                     max_dpi=None, max_canvas_pixels=None):
    """
    Calculate canvas size and transformation for a page.

    The ground resolution is derived from the `scale` denominator, or if
    no scale is given, from the `map_size` (in points, 1/72 inch) the
    `bbox` needs to fit in.

    :param units: units of the job SRS, defaults to the units of `srs`
    :raises InvalidGeometryError: for degenerate bboxes, invalid DPI,
        unknown units or canvas sizes above `max_canvas_pixels`

    >>> geom = resolve_geometry((0, 0, 7200, 3600), 72, 'm', map_size=(720, 720))
    >>> geom.size, geom.res
    ((720, 360), 10.0)
    """
    try:
        bbox = bbox_tuple(bbox)
    except (ValueError, TypeError) as ex:
        raise InvalidGeometryError('invalid bbox %r: %s' % (bbox, ex))
    if is_degenerate(bbox):
        raise InvalidGeometryError('degenerate bbox %r' % (bbox, ))

    if dpi is None or not dpi > 0:
        raise InvalidGeometryError('dpi must be positive, got %r' % (dpi, ))
    if max_dpi and dpi > max_dpi:
        raise InvalidGeometryError('dpi %r exceeds maximum of %r' % (dpi, max_dpi))

    if units is None and srs is not None:
        units = srs.units
    units = normalize_units(units)
    try:
        meters_per_unit(units)
    except ValueError as ex:
        raise InvalidGeometryError(str(ex))

    if scale is not None:
        if not scale > 0:
            raise InvalidGeometryError('scale must be positive, got %r' % (scale, ))
        res = scale_to_res(scale, dpi, units)
    elif map_size is not None:
        if map_size[0] <= 0 or map_size[1] <= 0:
            raise InvalidGeometryError('invalid map size %r' % (map_size, ))
        res = fit_res(bbox, map_size, dpi)
    else:
        raise InvalidGeometryError('either scale or map size is required')

    size = canvas_size(bbox, res)
    if max_canvas_pixels and size[0] * size[1] > max_canvas_pixels:
        raise InvalidGeometryError('canvas of %dx%d pixel exceeds the limit of %d pixel' % (
            size[0], size[1], max_canvas_pixels))

    return CanvasGeometry(bbox, size, res, dpi, units, srs=srs)
