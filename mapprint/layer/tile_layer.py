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
Tiled raster layers (OSM, XYZ, TMS and RESTful WMTS).
"""

from mapprint.client.tile import TileURLTemplate, tile_client
from mapprint.exception import LayerConfigurationError
from mapprint.grid import GridError, NoTiles, TileRequest
from mapprint.grid.tile_grid import TileGrid
from mapprint.layer import check_layer_srs, check_opacity
from mapprint.util.bbox import bbox_tuple

import logging
log = logging.getLogger('mapprint.config')


class TileLayer(object):
    """
    A layer of pre-rendered tiles in a fixed resolution pyramid.

    :param grid: the `TileGrid` of the tile source
    :param client: `TileClient` or `FileClient` for the tile locators
    :param format: file extension of the tiles
    """
    def __init__(self, name, grid, client, format='png', opacity=1.0):
        self.name = name
        self.grid = grid
        self.client = client
        self.format = format
        self.opacity = opacity

    def tile_requests(self, geometry):
        level = self.grid.closest_level(geometry.res)
        try:
            _tile_range, tiles = self.grid.affected_level_tiles(geometry.bbox, level,
                                                                res=geometry.res)
        except NoTiles:
            log.debug('layer %s: page %r outside of %r', self.name, geometry.bbox,
                      self.grid.bbox)
            return level, iter(())
        return level, (TileRequest(self, z, x, y) for x, y, z in tiles)

    def tile_bbox(self, request):
        return self.grid.tile_bbox(request.coord)

    def fetch_tile(self, request, headers=None, timeout=None):
        return self.client.get_tile(request.coord, format=self.format,
                                    headers=headers, timeout=timeout)

    def __repr__(self):
        return '%s(%r, %r, %r)' % (self.__class__.__name__, self.name, self.grid, self.client)


def _escape_template(s):
    return s.replace('{', '{{').replace('}', '}}')


def url_template_from_conf(conf, name):
    """
    >>> url_template_from_conf({'type': 'OSM', 'baseURL': 'http://tile.openstreetmap.org/'}, 'osm')
    'http://tile.openstreetmap.org/{z}/{x}/{y}.{ext}'
    >>> url_template_from_conf({'type': 'TMS', 'baseURL': 'http://tms', 'layer': 'base'}, 'tms')
    'http://tms/1.0.0/base/{z}/{x}/{y}.{ext}'
    """
    if conf.get('urlTemplate'):
        return conf['urlTemplate']

    type_name = conf['type'].lower()
    base_url = conf.get('baseURL')
    if not base_url:
        raise LayerConfigurationError('missing baseURL or urlTemplate', layer=name)
    base_url = _escape_template(base_url.rstrip('/'))

    if type_name in ('osm', 'xyz'):
        return base_url + '/{z}/{x}/{y}.{ext}'
    if type_name == 'tms':
        if not conf.get('layer'):
            raise LayerConfigurationError('TMS layer requires the TMS layer name (layer)',
                                          layer=name)
        return base_url + '/1.0.0/' + _escape_template(conf['layer']) + '/{z}/{x}/{y}.{ext}'
    raise LayerConfigurationError('%s layer requires urlTemplate' % (conf['type'], ),
                                  layer=name)


default_origins = {
    'osm': 'ul',
    'xyz': 'ul',
    'wmts': 'ul',
    'tms': 'll',
}


def tile_layer_factory(conf, name, job_srs=None, http_client=None):
    """
    Create a `TileLayer` from a layer descriptor of the print job.

    :raises LayerConfigurationError: for missing or invalid options
    """
    check_layer_srs(conf, name, job_srs)
    opacity = check_opacity(conf, name)

    if 'maxExtent' not in conf:
        raise LayerConfigurationError('missing maxExtent', layer=name)
    if not conf.get('resolutions'):
        raise LayerConfigurationError('missing resolutions', layer=name)

    format = conf.get('extension') or 'png'
    origin = conf.get('origin') or default_origins.get(conf['type'].lower(), 'ul')
    try:
        max_extent = bbox_tuple(conf['maxExtent'])
        tile_size = tuple(int(v) for v in conf.get('tileSize', (256, 256)))
        resolutions = [float(r) for r in conf['resolutions']]
        grid = TileGrid(max_extent, res=resolutions, tile_size=tile_size,
                        origin=origin, name=name)
        url_template = TileURLTemplate(url_template_from_conf(conf, name), format=format)
    except (GridError, ValueError, TypeError) as ex:
        raise LayerConfigurationError(str(ex), layer=name)

    client = tile_client(url_template, http_client=http_client)
    return TileLayer(name, grid, client, format=format, opacity=opacity)
