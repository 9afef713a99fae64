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

from mapprint.client.tile import TileURLTemplate, tile_client
from mapprint.exception import LayerConfigurationError
from mapprint.grid import TileRequest
from mapprint.layer import check_layer_srs, check_opacity
from mapprint.util.bbox import bbox_intersects, bbox_tuple, is_degenerate


class ImageLayer(object):
    """
    A single georeferenced image, e.g. a scanned map or a pre-rendered
    overlay. The image is stretched to its `extent`.
    """
    def __init__(self, name, extent, client, opacity=1.0):
        self.name = name
        self.extent = extent
        self.client = client
        self.opacity = opacity

    def tile_requests(self, geometry):
        if not bbox_intersects(self.extent, geometry.bbox):
            return None, iter(())
        return 0, iter([TileRequest(self, 0, 0, 0)])

    def tile_bbox(self, request):
        return self.extent

    def fetch_tile(self, request, headers=None, timeout=None):
        return self.client.get_tile(request.coord, headers=headers, timeout=timeout)

    def __repr__(self):
        return '%s(%r, %r, %r)' % (self.__class__.__name__, self.name, self.extent, self.client)


def image_layer_factory(conf, name, job_srs=None, http_client=None):
    check_layer_srs(conf, name, job_srs)
    opacity = check_opacity(conf, name)

    if not conf.get('baseURL'):
        raise LayerConfigurationError('missing baseURL', layer=name)
    if 'extent' not in conf:
        raise LayerConfigurationError('missing extent', layer=name)
    try:
        extent = bbox_tuple(conf['extent'])
    except (ValueError, TypeError) as ex:
        raise LayerConfigurationError('invalid extent: %s' % ex, layer=name)
    if is_degenerate(extent):
        raise LayerConfigurationError('degenerate extent %r' % (extent, ), layer=name)

    # a single locator, no placeholders
    url = conf['baseURL'].replace('{', '{{').replace('}', '}}')
    client = tile_client(TileURLTemplate(url, format=conf.get('extension')),
                         http_client=http_client)
    return ImageLayer(name, extent, client, opacity=opacity)
