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
Prints the OpenStreetMap reference page (bay of bengal at 300 dpi) with
tiles from a local tile server and checks the canvas for color anomalies
at tile boundaries.
"""

import json
import os
import re
import threading
from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from mapprint.grid.tile_grid import TileGrid
from mapprint.job.loader import load_print_job
from mapprint.printer import MapPrinter
from mapprint.test.http import TileServer
from mapprint.test.image import CountColor, dominant_color

OCEAN = (170, 211, 223)
LAND = (242, 239, 233)
# everything north of this line is land
COAST_Y = 2600000.0

fixture_dir = os.path.join(os.path.dirname(__file__), 'fixture')

tile_path_re = re.compile(r'^/(\d+)/(\d+)/(\d+)\.png$')


class OSMTiles(object):
    """
    Renders OSM-like tiles: ocean with land in the north.
    """
    def __init__(self, job_conf):
        layer = job_conf['layers'][0]
        self.grid = TileGrid(layer['maxExtent'], res=layer['resolutions'],
                             tile_size=layer['tileSize'])
        self._cache = {}
        self._lock = threading.Lock()

    def __call__(self, path):
        match = tile_path_re.match(path)
        if not match:
            return 404, {}, b'unknown tile'
        z, x, y = (int(v) for v in match.groups())
        if self.grid.limit_tile((x, y, z)) is None:
            return 404, {}, b'tile out of range'
        return 200, {'Content-type': 'image/png'}, self.render(x, y, z)

    def render(self, x, y, z):
        # tiles of a row look the same
        with self._lock:
            if (y, z) in self._cache:
                return self._cache[(y, z)]
        bbox = self.grid.tile_bbox((x, y, z))
        res = self.grid.resolution(z)
        img = Image.new('RGB', self.grid.tile_size, OCEAN)
        land_rows = int(round((bbox[3] - COAST_Y) / res))
        if land_rows > 0:
            draw = ImageDraw.Draw(img)
            draw.rectangle((0, 0, img.size[0] - 1, min(land_rows, img.size[1]) - 1), fill=LAND)
        buf = BytesIO()
        img.save(buf, 'png')
        data = buf.getvalue()
        with self._lock:
            self._cache[(y, z)] = data
        return data


@pytest.fixture(scope='module')
def job_conf():
    with open(os.path.join(fixture_dir, 'osm_print_job.json')) as f:
        return json.load(f)


@pytest.fixture(scope='module')
def printed(job_conf, tmp_path_factory):
    """
    Print the reference job once, returns the report, the image and
    the requested tile paths.
    """
    tiles = OSMTiles(job_conf)
    out_file = tmp_path_factory.mktemp('print') / 'printing-result.png'
    with TileServer(tiles) as server:
        job_conf = dict(job_conf)
        job_conf['layers'] = [dict(job_conf['layers'][0], baseURL=server.base_url + '/')]
        job = load_print_job(job_conf)
        report = MapPrinter().print(job, str(out_file), headers={})
    img = Image.open(str(out_file))
    img.load()
    return report, img, list(server.requests)


class TestOSMTileColorAnomalies(object):
    def test_image(self, printed):
        report, img, _requests = printed
        assert img.format == 'PNG'
        assert img.size == (2917, 2391)
        assert report.size == (2917, 2391)
        assert report.complete

    def test_level_and_tiles(self, printed):
        report, _img, requests = printed
        assert report.layers[0].level == 8
        assert report.layers[0].requested == 130
        assert len(requests) == 130
        assert all(path.startswith('/8/') for path in requests)
        assert '/8/190/108.png' in requests
        assert '/8/202/117.png' in requests

    def test_ocean_patches_have_the_same_color(self, printed):
        _report, img, _requests = printed
        color_ocean = dominant_color(img, 375, 2000)
        color_lower_left = dominant_color(img, 125, 2000)
        color_lower_right = dominant_color(img, 500, 2350)

        assert color_ocean == color_lower_left, 'color in lower left corner'
        assert color_ocean == color_lower_right, 'color a little bit longer to right'
        assert color_ocean == CountColor(OCEAN)
        assert color_ocean.count == 100

    def test_no_seams(self, printed):
        _report, img, _requests = printed
        # the row crosses all tile columns
        row = img.crop((0, 2000, img.size[0], 2001))
        assert row.getcolors() == [(img.size[0], OCEAN)]
        column = img.crop((1000, 1500, 1001, img.size[1]))
        assert column.getcolors() == [(img.size[1] - 1500, OCEAN)]

    def test_land(self, printed):
        _report, img, _requests = printed
        assert dominant_color(img, 1000, 400) == CountColor(LAND)
