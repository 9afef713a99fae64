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

import pytest

from mapprint.client.tile import FileClient, TileClient
from mapprint.exception import LayerConfigurationError
from mapprint.geometry import resolve_geometry
from mapprint.layer import create_layer, layer_types, register_layer_type
from mapprint.layer.image_layer import ImageLayer
from mapprint.layer.tile_layer import TileLayer
from mapprint.srs import SRS
from mapprint.test.image import create_tmp_image

OSM_RES = [156543.03390625 / 2 ** z for z in range(19)]
OSM_EXTENT = [-20037508.34, -20037508.34, 20037508.34, 20037508.34]
PAGE_BBOX = (9854210.4540103, 1681670.9768253, 11615319.585456, 3124802.0706485)


def osm_conf(**kw):
    conf = {
        'type': 'OSM',
        'baseURL': 'http://tile.openstreetmap.org/',
        'maxExtent': OSM_EXTENT,
        'tileSize': [256, 256],
        'resolutions': OSM_RES,
        'extension': 'png',
    }
    conf.update(kw)
    return conf


class TestTileLayerFactory(object):
    def test_osm(self):
        layer = create_layer(osm_conf(), 'osm', job_srs=SRS(900913))
        assert isinstance(layer, TileLayer)
        assert isinstance(layer.client, TileClient)
        assert layer.grid.origin == 'ul'
        assert layer.client.tile_url((190, 108, 8)) == 'http://tile.openstreetmap.org/8/190/108.png'

    def test_type_is_case_insensitive(self):
        layer = create_layer(osm_conf(type='osm'), 'osm')
        assert isinstance(layer, TileLayer)

    def test_tile_requests(self):
        layer = create_layer(osm_conf(), 'osm')
        geom = resolve_geometry(PAGE_BBOX, 300, 'm', map_size=(700, 580))
        level, requests = layer.tile_requests(geom)
        requests = list(requests)
        assert level == 8
        assert len(requests) == 130
        assert all(r.layer is layer for r in requests)
        assert requests[0].coord == (190, 108, 8)

    def test_tile_requests_deterministic(self):
        layer = create_layer(osm_conf(), 'osm')
        geom = resolve_geometry(PAGE_BBOX, 300, 'm', map_size=(700, 580))
        level1, requests1 = layer.tile_requests(geom)
        level2, requests2 = layer.tile_requests(geom)
        assert level1 == level2 == 8
        assert [r.coord for r in requests1] == [r.coord for r in requests2]

    def test_page_outside_extent(self):
        conf = osm_conf(maxExtent=[0, 0, 1000000, 1000000])
        layer = create_layer(conf, 'osm')
        geom = resolve_geometry(PAGE_BBOX, 300, 'm', map_size=(700, 580))
        level, requests = layer.tile_requests(geom)
        assert list(requests) == []

    def test_tms(self):
        conf = osm_conf(type='TMS', baseURL='http://tms.example.org/tiles', layer='base')
        layer = create_layer(conf, 'tms')
        assert layer.grid.origin == 'll'
        assert layer.client.tile_url((1, 2, 3)) == 'http://tms.example.org/tiles/1.0.0/base/3/1/2.png'

    def test_url_template(self):
        conf = osm_conf(type='WMTS', urlTemplate='http://wmts/{TileMatrix}/{TileRow}/{TileCol}.{ext}',
                        extension='jpeg')
        layer = create_layer(conf, 'wmts')
        assert layer.client.tile_url((1, 2, 3)) == 'http://wmts/3/2/1.jpeg'

    def test_file_locator(self, tmp_path):
        layer = create_layer(osm_conf(urlTemplate=str(tmp_path) + '/{z}/{x}/{y}.png'), 'local')
        assert isinstance(layer.client, FileClient)

    @pytest.mark.parametrize('kw', [
        dict(resolutions=[1.0, 2.0]),
        dict(resolutions=[]),
        dict(tileSize=[0, 256]),
        dict(maxExtent=[0, 0, 0, 10]),
        dict(maxExtent='a,b,c,d'),
        dict(opacity=1.5),
        dict(type='WMTS'),
        dict(type='TMS'),
        dict(baseURL=None),
        dict(urlTemplate='http://tiles/{zoom}/{x}/{y}.png'),
    ])
    def test_invalid(self, kw):
        with pytest.raises(LayerConfigurationError) as exc_info:
            create_layer(osm_conf(**kw), 'osm')
        assert exc_info.value.layer == 'osm'

    def test_missing_max_extent(self):
        conf = osm_conf()
        del conf['maxExtent']
        with pytest.raises(LayerConfigurationError):
            create_layer(conf, 'osm')

    def test_srs_mismatch(self):
        with pytest.raises(LayerConfigurationError) as exc_info:
            create_layer(osm_conf(srs='EPSG:4326'), 'osm', job_srs=SRS(900913))
        assert 'does not match' in str(exc_info.value)

    def test_srs_alias(self):
        layer = create_layer(osm_conf(srs='EPSG:3857'), 'osm', job_srs=SRS(900913))
        assert layer.name == 'osm'


class TestImageLayer(object):
    def test_single_request(self, tmp_path):
        fname = tmp_path / 'overlay.png'
        fname.write_bytes(create_tmp_image((100, 80)))
        layer = create_layer({'type': 'image', 'baseURL': str(fname),
                              'extent': [10000000, 2000000, 11000000, 3000000]}, 'overlay')
        assert isinstance(layer, ImageLayer)
        geom = resolve_geometry(PAGE_BBOX, 300, 'm', map_size=(700, 580))
        level, requests = layer.tile_requests(geom)
        requests = list(requests)
        assert len(requests) == 1
        assert layer.tile_bbox(requests[0]) == (10000000, 2000000, 11000000, 3000000)
        assert layer.fetch_tile(requests[0]).as_image().size == (100, 80)

    def test_outside_page(self):
        layer = create_layer({'type': 'image', 'baseURL': 'http://example.org/img.png',
                              'extent': [0, 0, 10, 10]}, 'overlay')
        geom = resolve_geometry(PAGE_BBOX, 300, 'm', map_size=(700, 580))
        _level, requests = layer.tile_requests(geom)
        assert list(requests) == []

    def test_url_with_braces(self):
        layer = create_layer({'type': 'image', 'baseURL': 'http://example.org/img.png?q={x}',
                              'extent': [0, 0, 10, 10]}, 'overlay')
        assert layer.client.tile_url((0, 0, 0)) == 'http://example.org/img.png?q={x}'

    def test_degenerate_extent(self):
        with pytest.raises(LayerConfigurationError):
            create_layer({'type': 'image', 'baseURL': 'http://example.org/img.png',
                          'extent': [0, 0, 0, 10]}, 'overlay')


class TestLayerRegistry(object):
    def teardown_method(self):
        layer_types.pop('custom', None)

    def test_unknown_type(self):
        with pytest.raises(LayerConfigurationError) as exc_info:
            create_layer({'type': 'WMS'}, '0:WMS')
        assert 'unknown layer type' in str(exc_info.value)

    def test_missing_type(self):
        with pytest.raises(LayerConfigurationError):
            create_layer({}, '0')

    def test_register(self):
        created = []

        def factory(conf, name, job_srs=None, http_client=None):
            created.append(name)
            return TileLayer(name, None, None)

        register_layer_type('Custom', factory)
        layer = create_layer({'type': 'CUSTOM'}, 'mine')
        assert created == ['mine']
        assert layer.name == 'mine'
