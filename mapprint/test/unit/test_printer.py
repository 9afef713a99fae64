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

import threading
from io import BytesIO

import pytest
from PIL import Image

from mapprint.config import load_base_config
from mapprint.exception import (
    InvalidGeometryError,
    JobSpecError,
    LayerConfigurationError,
    PrintCancelled,
)
from mapprint.job.loader import load_print_job
from mapprint.printer import MapPrinter
from mapprint.test.http import TileServer
from mapprint.test.image import create_oversized_png, create_tmp_image, is_jpeg
from mapprint.util.async_ import CancelToken

BLUE = (0, 0, 255)
RED = (255, 0, 0)
WHITE = (255, 255, 255)

BLUE_TILE = create_tmp_image((256, 256), color=BLUE)


def tile_job(base_url, **kw):
    """
    Job for a 512x512 px canvas at level 2 of a small grid,
    covering the 3x3 tiles (0..2, 1..3).
    """
    job = {
        'layout': 'Small',
        'srs': 'EPSG:3857',
        'units': 'm',
        'dpi': 72,
        'outputFormat': 'png',
        'layers': [{
            'type': 'XYZ',
            'baseURL': base_url + '/base',
            'maxExtent': [0, 0, 4096, 4096],
            'tileSize': [256, 256],
            'resolutions': [16, 8, 4, 2, 1],
            'extension': 'png',
        }],
        'pages': [{'bbox': [512, 512, 2560, 2560]}],
    }
    job.update(kw)
    return job


def blue_tiles(path):
    return 200, {'Content-type': 'image/png'}, BLUE_TILE


def print_config(**kw):
    conf = {
        'http': {'retry_backoff': 0.01, 'max_retry_backoff': 0.02, 'client_timeout': 5},
        'layouts': {'Small': {'map': {'width': 512, 'height': 512}}},
    }
    conf.update(kw)
    return load_base_config(conf=conf)


def read_png(out):
    return Image.open(BytesIO(out.getvalue()))


class TestMapPrinter(object):
    def setup_method(self):
        self.printer = MapPrinter(print_config())

    def test_print(self):
        out = BytesIO()
        with TileServer(blue_tiles) as server:
            report = self.printer.print(tile_job(server.base_url), out)
        assert sorted(server.requests) == sorted(
            '/base/2/%d/%d.png' % (x, y) for x in range(3) for y in range(1, 4))
        assert report.complete
        assert report.size == (512, 512)
        assert report.layers[0].level == 2
        assert report.layers[0].requested == 9
        assert report.layers[0].composited == 9
        assert report.bytes_written == len(out.getvalue())
        img = read_png(out)
        assert img.size == (512, 512)
        assert img.getcolors() == [(512 * 512, BLUE)]

    def test_partial_failure(self):
        def tiles(path):
            if path == '/base/2/1/2.png':
                return 404, {}, b'not found'
            return blue_tiles(path)

        out = BytesIO()
        with TileServer(tiles) as server:
            report = self.printer.print(tile_job(server.base_url), out)
        assert not report.complete
        assert report.failed_tiles == [('0:XYZ', (1, 2, 2), 'HTTP Error "%s/base/2/1/2.png": 404'
                                        % server.base_url)]
        assert report.layers[0].composited == 8
        # missing tile is background, the rest is printed
        img = read_png(out)
        assert img.getpixel((256, 256)) == WHITE
        assert img.getpixel((50, 50)) == BLUE
        assert img.getpixel((460, 460)) == BLUE

    def test_oversized_tile_does_not_fail_job(self):
        def tiles(path):
            if path == '/base/2/1/2.png':
                return 200, {'Content-type': 'image/png'}, create_oversized_png(20000, 20000)
            return blue_tiles(path)

        out = BytesIO()
        with TileServer(tiles) as server:
            report = self.printer.print(tile_job(server.base_url), out)
        assert not report.complete
        assert report.layers[0].failed == 1
        assert report.layers[0].composited == 8
        assert len(server.requests) == 9
        img = read_png(out)
        assert img.getpixel((256, 256)) == WHITE
        assert img.getpixel((50, 50)) == BLUE

    def test_retry(self):
        seen = set()
        lock = threading.Lock()

        def tiles(path):
            with lock:
                first = path not in seen
                seen.add(path)
            if first and path == '/base/2/0/1.png':
                return 503, {}, b'busy'
            return blue_tiles(path)

        out = BytesIO()
        with TileServer(tiles) as server:
            report = self.printer.print(tile_job(server.base_url), out)
        assert report.complete
        assert len(server.requests) == 10

    def test_layer_order_and_opacity(self, tmp_path):
        overlay = tmp_path / 'overlay.png'
        overlay.write_bytes(create_tmp_image((100, 100), color=RED))
        job = tile_job('http://unused')
        job['layers'].append({
            'type': 'image',
            'baseURL': str(overlay),
            'extent': [512, 512, 1536, 1536],
            'opacity': 0.5,
        })
        out = BytesIO()
        with TileServer(blue_tiles) as server:
            job['layers'][0]['baseURL'] = server.base_url + '/base'
            report = self.printer.print(job, out)
        assert [layer.name for layer in report.layers] == ['0:XYZ', '1:image']
        img = read_png(out)
        assert img.getpixel((400, 100)) == BLUE
        r, g, b = img.getpixel((100, 400))
        assert 126 <= r <= 129
        assert g == 0
        assert 126 <= b <= 129

    def test_page_outside_max_extent(self):
        out = BytesIO()
        with TileServer(blue_tiles) as server:
            report = self.printer.print(
                tile_job(server.base_url, pages=[{'bbox': [5000, 5000, 7048, 7048]}]), out)
        assert server.requests == []
        assert report.complete
        assert report.layers[0].requested == 0
        assert read_png(out).getcolors() == [(512 * 512, WHITE)]

    def test_jpeg_output(self):
        out = BytesIO()
        with TileServer(blue_tiles) as server:
            self.printer.print(tile_job(server.base_url, outputFormat='jpeg'), out)
        assert is_jpeg(out.getvalue())

    def test_page_scale(self):
        out = BytesIO()
        # 4 m/px at 72 dpi
        scale = 4 * 72 / 0.0254
        with TileServer(blue_tiles) as server:
            report = self.printer.print(
                tile_job(server.base_url, pages=[{'bbox': [512, 512, 1536, 1536], 'scale': scale}]),
                out)
        assert report.size == (256, 256)
        assert report.layers[0].level == 2

    def test_cancelled(self):
        cancel = CancelToken()
        cancel.cancel()
        out = BytesIO()
        with TileServer(blue_tiles) as server:
            with pytest.raises(PrintCancelled) as exc_info:
                self.printer.print(tile_job(server.base_url), out, cancel=cancel)
        assert exc_info.value.job_id is not None
        assert exc_info.value.layer == '0:XYZ'
        assert out.getvalue() == b''

    def test_cancelled_while_fetching(self):
        cancel = CancelToken()

        def tiles(path):
            cancel.cancel()
            return blue_tiles(path)

        out = BytesIO()
        with TileServer(tiles) as server:
            with pytest.raises(PrintCancelled):
                self.printer.print(tile_job(server.base_url), out, cancel=cancel)
        assert out.getvalue() == b''

    def test_invalid_layer(self):
        job = load_print_job(tile_job('http://localhost', layers=[{
            'type': 'XYZ',
            'baseURL': 'http://localhost',
            'maxExtent': [0, 0, 4096, 4096],
            'resolutions': [1, 2],
        }]), job_id='job-42')
        with pytest.raises(LayerConfigurationError) as exc_info:
            self.printer.print(job, BytesIO())
        assert exc_info.value.job_id == 'job-42'
        assert exc_info.value.layer == '0:XYZ'
        assert 'job=job-42' in str(exc_info.value)
        assert 'layer=0:XYZ' in str(exc_info.value)

    def test_named_layer(self):
        job = tile_job('http://localhost')
        job['layers'][0]['name'] = 'background'
        job['layers'][0]['resolutions'] = []
        with pytest.raises(JobSpecError):
            self.printer.print(job, BytesIO())
        job['layers'][0]['resolutions'] = [1, 2]
        with pytest.raises(LayerConfigurationError) as exc_info:
            self.printer.print(job, BytesIO())
        assert exc_info.value.layer == 'background'

    def test_unsupported_format(self):
        job = load_print_job(tile_job('http://localhost', outputFormat='svg'), job_id='job-43')
        with pytest.raises(JobSpecError) as exc_info:
            self.printer.print(job, BytesIO())
        assert exc_info.value.job_id == 'job-43'

    def test_unknown_layout(self):
        with pytest.raises(JobSpecError) as exc_info:
            self.printer.print(tile_job('http://localhost', layout='A0'), BytesIO())
        assert 'unknown layout' in str(exc_info.value)

    def test_invalid_geometry(self):
        with pytest.raises(InvalidGeometryError):
            self.printer.print(tile_job('http://localhost', pages=[{'bbox': [10, 10, 0, 0]}]),
                               BytesIO())

    def test_canvas_limit(self):
        printer = MapPrinter(print_config(printing={'max_canvas_pixels': 1000}))
        with pytest.raises(InvalidGeometryError):
            printer.print(tile_job('http://localhost'), BytesIO())

    def test_extra_pages_are_ignored(self, caplog):
        job = tile_job('http://localhost', pages=[
            {'bbox': [5000, 5000, 7048, 7048]},
            {'bbox': [512, 512, 2560, 2560]},
        ])
        report = self.printer.print(job, BytesIO())
        assert report.layers[0].requested == 0
        assert 'printing only the first of 2 pages' in caplog.text


class TestHTTPClientConfig(object):
    def test_headers(self):
        printer = MapPrinter(print_config(http={'headers': {'Referer': 'http://print'}}))
        client = printer.http_client(headers={'X-Job': '1'})
        try:
            assert client.session.headers['Referer'] == 'http://print'
            assert client.session.headers['X-Job'] == '1'
        finally:
            client.close()

    def test_ssl_ca_certs_relative_to_config(self):
        conf = print_config(http={'ssl_ca_certs': 'certs.pem'})
        conf.conf_base_dir = '/etc/mapprint'
        client = MapPrinter(conf).http_client()
        try:
            assert client.session.verify == '/etc/mapprint/certs.pem'
        finally:
            client.close()

    def test_insecure(self):
        client = MapPrinter(print_config(http={'ssl_no_cert_checks': True})).http_client()
        try:
            assert client.session.verify is False
        finally:
            client.close()
