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
The print engine: renders the layers of a print job into a canvas
and writes the encoded result.
"""

from mapprint.client.http import HTTPClient
from mapprint.config import load_default_config
from mapprint.config.config import abspath
from mapprint.exception import JobSpecError, PrintCancelled, PrintError
from mapprint.geometry import resolve_geometry
from mapprint.image.canvas import Canvas
from mapprint.image.merge import TileCompositor
from mapprint.image.opts import ImageOptions
from mapprint.job import PrintJob
from mapprint.job.loader import load_print_job
from mapprint.layer import create_layer
from mapprint.output import ImageEncoder, OutputAssembler
from mapprint.source.tile import RetryPolicy, TileFetcher

import logging
log = logging.getLogger('mapprint.print')


class LayerReport(object):
    """
    Tile statistics of one rendered layer.

    :ivar level: the selected pyramid level, ``None`` if nothing was requested
    :ivar failures: list of ``(tile_coord, reason)`` tuples
    """
    def __init__(self, name, level=None):
        self.name = name
        self.level = level
        self.requested = 0
        self.composited = 0
        self.failures = []

    def add_failure(self, result):
        self.failures.append((result.request.coord, str(result.error)))

    @property
    def failed(self):
        return len(self.failures)

    def __repr__(self):
        return 'LayerReport(%r, level=%r, requested=%d, composited=%d, failed=%d)' % (
            self.name, self.level, self.requested, self.composited, self.failed)


class PrintReport(object):
    """
    Summary of a finished print job. A job with failed tiles still
    produces output, `complete` tells if the output is degraded.
    """
    def __init__(self, job_id, size=None, output_format=None):
        self.job_id = job_id
        self.size = size
        self.output_format = output_format
        self.layers = []
        self.bytes_written = 0

    @property
    def failed_tiles(self):
        return [(layer.name, coord, reason)
                for layer in self.layers
                for coord, reason in layer.failures]

    @property
    def complete(self):
        return not any(layer.failures for layer in self.layers)

    def __repr__(self):
        return 'PrintReport(%r, size=%r, layers=%r)' % (self.job_id, self.size, self.layers)


class LayerPipeline(object):
    """
    Renders one layer after the other into the canvas.

    Tiles are fetched concurrently, the results are composited by the
    calling thread as they arrive. The canvas has no other writer.
    """
    def __init__(self, fetcher, compositor):
        self.fetcher = fetcher
        self.compositor = compositor

    def render(self, layer, canvas, cancel=None):
        """
        Fetch and composite all tiles of `layer`.

        :rtype: `LayerReport`
        :raises PrintCancelled: if `cancel` was triggered
        """
        level, requests = layer.tile_requests(canvas.geometry)
        report = LayerReport(layer.name, level)

        results = self.fetcher.fetch_tiles(requests, cancel=cancel)
        try:
            for result in results:
                report.requested += 1
                if result.failed:
                    report.add_failure(result)
                    continue
                bbox = layer.tile_bbox(result.request)
                if self.compositor.composite(canvas, result.image, bbox,
                                             opacity=layer.opacity):
                    report.composited += 1
                result.image = None
                if cancel is not None and cancel.cancelled:
                    break
        finally:
            close = getattr(results, 'close', None)
            if close is not None:
                close()

        if cancel is not None and cancel.cancelled:
            raise PrintCancelled('print job cancelled while rendering layer', layer=layer.name)

        if report.requested == 0:
            log.info('layer %s: no tiles intersect the page', layer.name)
        else:
            log.info('layer %s: level %s, %d tiles, %d failed',
                     layer.name, level, report.requested, report.failed)
        return report


class MapPrinter(object):
    """
    Prints `PrintJob` objects.

    :param config: `Options` with the ``http``, ``image``, ``printing``
                   and ``layouts`` sections, defaults if ``None``
    :param output: `OutputAssembler` for the encoding of the canvas
    """
    def __init__(self, config=None, output=None):
        self.config = config if config is not None else load_default_config()
        image_conf = self.config.image
        self.output = output or OutputAssembler(ImageEncoder(
            jpeg_quality=image_conf.jpeg_quality,
            transparent=image_conf.transparent,
        ))

    def http_client(self, headers=None):
        http_conf = self.config.http
        all_headers = dict(http_conf.get('headers') or {})
        if headers:
            all_headers.update(headers)
        ssl_ca_certs = http_conf.get('ssl_ca_certs')
        if ssl_ca_certs:
            ssl_ca_certs = abspath(ssl_ca_certs, self.config.get('conf_base_dir'))
        return HTTPClient(
            insecure=http_conf.ssl_no_cert_checks,
            ssl_ca_certs=ssl_ca_certs,
            timeout=http_conf.client_timeout,
            headers=all_headers,
        )

    def tile_fetcher(self):
        http_conf = self.config.http
        return TileFetcher(
            retry_policy=RetryPolicy(
                retries=http_conf.retries,
                backoff=http_conf.retry_backoff,
                max_backoff=http_conf.max_retry_backoff,
            ),
            concurrency=http_conf.concurrent_requests,
            timeout=http_conf.client_timeout,
        )

    def map_size(self, job):
        layout_name = job.layout or self.config.printing.default_layout
        layouts = self.config.layouts
        if layout_name not in layouts:
            raise JobSpecError('unknown layout %r (available: %s)' % (
                layout_name, ', '.join(sorted(layouts))), job_id=job.id)
        map_conf = layouts[layout_name].map
        return map_conf.width, map_conf.height

    def resolve_geometry(self, job):
        page = job.pages[0]
        printing = self.config.printing
        return resolve_geometry(
            page.bbox, job.dpi, job.units,
            scale=page.scale,
            map_size=self.map_size(job),
            srs=job.srs,
            max_dpi=printing.max_dpi,
            max_canvas_pixels=printing.max_canvas_pixels,
        )

    def create_layers(self, job, http_client):
        layers = []
        for i, layer_conf in enumerate(job.layers):
            name = layer_conf.get('name') or '%d:%s' % (i, layer_conf.get('type'))
            layers.append(create_layer(layer_conf, name, job_srs=job.srs,
                                       http_client=http_client))
        return layers

    def print(self, job, out, headers=None, cancel=None):
        """
        Render the first page of `job` and write the encoded image to `out`.

        :param job: `PrintJob`, or a dict/JSON/YAML job specification
        :param out: writable file object or file name
        :param headers: additional HTTP headers for all tile requests
        :param cancel: `CancelToken` to abort the job
        :rtype: `PrintReport`
        :raises PrintError: for invalid jobs, layers or cancelled jobs,
            never for single failed tiles
        """
        if not isinstance(job, PrintJob):
            job = load_print_job(job)

        try:
            return self._print(job, out, headers, cancel)
        except PrintError as ex:
            ex.with_context(job_id=job.id)
            log.error('print job failed: %s', ex)
            raise

    def _print(self, job, out, headers, cancel):
        if not self.output.supports(job.output_format):
            raise JobSpecError('unsupported output format %r' % str(job.output_format))
        if len(job.pages) > 1:
            log.warning('job %s: printing only the first of %d pages', job.id, len(job.pages))

        geometry = self.resolve_geometry(job)
        log.info('job %s: %d layer(s), %dx%d px at %s dpi, bbox %r',
                 job.id, len(job.layers), geometry.size[0], geometry.size[1],
                 job.dpi, geometry.bbox)

        http_client = self.http_client(headers)
        try:
            layers = self.create_layers(job, http_client)
            report = PrintReport(job.id, size=geometry.size, output_format=job.output_format)
            image_conf = self.config.image
            image_opts = ImageOptions(bgcolor=image_conf.bgcolor,
                                      transparent=image_conf.transparent)
            pipeline = LayerPipeline(self.tile_fetcher(),
                                     TileCompositor(image_conf.resampling_method))

            with Canvas(geometry, image_opts) as canvas:
                for layer in layers:
                    try:
                        report.layers.append(pipeline.render(layer, canvas, cancel=cancel))
                    except PrintError as ex:
                        raise ex.with_context(layer=layer.name)

                if cancel is not None and cancel.cancelled:
                    raise PrintCancelled('print job cancelled')
                report.bytes_written = self.output.write(canvas, job.output_format, out,
                                                         dpi=job.dpi)
        finally:
            http_client.close()

        if report.complete:
            log.info('job %s: finished', job.id)
        else:
            log.warning('job %s: finished with %d missing tile(s)', job.id,
                        len(report.failed_tiles))
        return report
