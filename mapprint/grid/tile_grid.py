import math

from mapprint.grid import GridError, NoTiles, ORIGIN_UL, origin_from_string
from mapprint.grid.resolutions import check_resolutions
from mapprint.util.bbox import bbox_intersection


class TileGrid(object):
    """
    This class represents a regular tile grid with a fixed list of
    resolutions (one per pyramid level, coarsest first).

    :ivar tile_size: the size of each tile in pixel
    :type tile_size: ``int(with), int(height)``
    :ivar bbox: the extent of the grid, the tile origin is at
        the upper-left (``ul``) or lower-left (``ll``) corner
    """

    def __init__(self, bbox, res, tile_size=(256, 256), origin=ORIGIN_UL, name=None):
        """
        >>> grid = TileGrid((-20037508.34, -20037508.34, 20037508.34, 20037508.34),
        ...                 res=[156543.03390625, 78271.516953125])
        >>> grid.grid_sizes
        [(1, 1), (2, 2)]
        """
        if len(tile_size) != 2 or tile_size[0] <= 0 or tile_size[1] <= 0:
            raise GridError('tile size must be positive, got %r' % (tile_size, ))
        if bbox[0] >= bbox[2] or bbox[1] >= bbox[3]:
            raise GridError('invalid grid extent %r' % (bbox, ))
        try:
            check_resolutions(res)
        except ValueError as ex:
            raise GridError(str(ex))

        self.bbox = tuple(bbox)
        self.tile_size = tuple(tile_size)
        self.resolutions = list(res)
        self.levels = len(self.resolutions)
        self.origin = origin_from_string(origin)
        self.flipped_y_axis = self.origin == ORIGIN_UL
        self.name = name
        self.grid_sizes = self._calc_grids()

    def _calc_grids(self):
        width = self.bbox[2] - self.bbox[0]
        height = self.bbox[3] - self.bbox[1]
        grids = []
        for res in self.resolutions:
            # ignore float noise, a grid of exactly 2**z tiles must not grow by one
            x = max(math.ceil(width / res / self.tile_size[0] - 1e-9), 1)
            y = max(math.ceil(height / res / self.tile_size[1] - 1e-9), 1)
            grids.append((int(x), int(y)))
        return grids

    def resolution(self, level):
        """
        Returns the resolution of the `level` in units/pixel.

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[4.0, 2.0, 1.0])
        >>> grid.resolution(1)
        2.0
        """
        return self.resolutions[level]

    def closest_level(self, res):
        """
        Returns the finest level whose resolution is still equal or
        coarser than `res`. Requests coarser than the first level get
        level 0, requests finer than the last level get the last level.

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[8.0, 4.0, 2.0, 1.0])
        >>> [grid.closest_level(r) for r in (16.0, 8.0, 5.0, 4.0, 3.9999999999, 1.5, 0.5)]
        [0, 0, 0, 1, 1, 2, 3]
        """
        # relative tolerance, a float error must not select the finer level
        threshold = res * (1 - 1e-9)
        level = 0
        for l, l_res in enumerate(self.resolutions):
            if l_res < threshold:
                break
            level = l
        return level

    def tile(self, x, y, level):
        """
        Returns the tile id for the given point.

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[4.0, 2.0], tile_size=(256, 256))
        >>> grid.tile(10, 1000, 1)
        (0, 0, 1)
        >>> grid.tile(600, 10, 1)
        (1, 1, 1)
        """
        res = self.resolution(level)
        x = x - self.bbox[0]
        if self.flipped_y_axis:
            y = self.bbox[3] - y
        else:
            y = y - self.bbox[1]
        tile_x = x/float(res*self.tile_size[0])
        tile_y = y/float(res*self.tile_size[1])
        return (int(math.floor(tile_x)), int(math.floor(tile_y)), level)

    def _x_edge(self, col, level):
        return self.bbox[0] + col * self.resolutions[level] * self.tile_size[0]

    def _y_edge(self, row, level):
        if self.flipped_y_axis:
            return self.bbox[3] - row * self.resolutions[level] * self.tile_size[1]
        return self.bbox[1] + row * self.resolutions[level] * self.tile_size[1]

    def tile_bbox(self, tile_coord):
        """
        Returns the bbox of the given tile. Neighbouring tiles share
        the exact same edge values.

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[4.0, 2.0])
        >>> grid.tile_bbox((0, 0, 0))
        (0.0, 0.0, 1024.0, 1024.0)
        >>> grid.tile_bbox((1, 0, 1))
        (512.0, 512.0, 1024.0, 1024.0)
        """
        x, y, z = tile_coord
        x0 = float(self._x_edge(x, z))
        x1 = float(self._x_edge(x + 1, z))
        if self.flipped_y_axis:
            y1 = float(self._y_edge(y, z))
            y0 = float(self._y_edge(y + 1, z))
        else:
            y0 = float(self._y_edge(y, z))
            y1 = float(self._y_edge(y + 1, z))
        return x0, y0, x1, y1

    def limit_tile(self, tile_coord):
        """
        Check if the `tile_coord` is in the grid.

        :returns: the `tile_coord` if it is within the ``grid``,
                  otherwise ``None``.

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[4.0, 2.0])
        >>> grid.limit_tile((-1, 0, 1)) is None
        True
        >>> grid.limit_tile((1, 1, 1))
        (1, 1, 1)
        """
        x, y, z = tile_coord
        if z < 0 or z >= self.levels:
            return None
        grid = self.grid_sizes[z]
        if x < 0 or y < 0 or x >= grid[0] or y >= grid[1]:
            return None
        return x, y, z

    def affected_level_tiles(self, bbox, level, res=None):
        """
        Get all tiles of `level` that intersect `bbox`, clipped to the grid.

        Tiles that overlap `bbox` by less than 1/10 of a pixel are skipped.

        :param res: resolution of the target image, pixels are measured in
                    the finer of `res` and the `level` resolution

        >>> grid = TileGrid((0, 0, 1024, 1024), res=[4.0, 2.0])
        >>> tile_range, tiles = grid.affected_level_tiles((100, 100, 600, 300), 1)
        >>> tile_range
        (0, 1, 1, 1)
        >>> list(tiles)
        [(0, 1, 1), (1, 1, 1)]
        """
        clipped = bbox_intersection(self.bbox, bbox)
        if clipped is None:
            raise NoTiles()

        # remove 1/10 of a pixel so we don't get tiles we only touch
        pixel = self.resolutions[level]
        if res is not None:
            pixel = min(pixel, res)
        delta = pixel / 10.0
        if (clipped[2] - clipped[0] <= 2 * delta or
                clipped[3] - clipped[1] <= 2 * delta):
            raise NoTiles()

        x0, y0, _ = self.tile(clipped[0]+delta, clipped[1]+delta, level)
        x1, y1, _ = self.tile(clipped[2]-delta, clipped[3]-delta, level)
        if self.flipped_y_axis:
            y0, y1 = y1, y0

        grid_w, grid_h = self.grid_sizes[level]
        x0, x1 = max(x0, 0), min(x1, grid_w - 1)
        y0, y1 = max(y0, 0), min(y1, grid_h - 1)
        if x0 > x1 or y0 > y1:
            raise GridError('invalid tile range for %r at level %d' % (bbox, level))

        return (x0, y0, x1, y1), self._tile_iter(x0, y0, x1, y1, level)

    def _tile_iter(self, x0, y0, x1, y1, level):
        if self.flipped_y_axis:
            ys = range(y0, y1 + 1)
        else:
            ys = range(y1, y0 - 1, -1)
        for y in ys:
            for x in range(x0, x1 + 1):
                yield x, y, level

    def __repr__(self):
        return '%s((%.4f, %.4f, %.4f, %.4f), levels=%d, origin=%r)' % (
            self.__class__.__name__, self.bbox[0], self.bbox[1], self.bbox[2], self.bbox[3],
            self.levels, self.origin)
