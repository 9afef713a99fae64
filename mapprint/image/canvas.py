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

from mapprint.image import ImageSource, GeoReference
from mapprint.image.opts import ImageOptions, create_image

import logging
log = logging.getLogger('mapprint.image')


class Canvas(object):
    """
    RGBA target image of one print page.

    The canvas is filled with the background color on creation and
    is only written by the compositor of the owning print job.

    :param geometry: the resolved `CanvasGeometry` of the page
    :param image_opts: `ImageOptions` with `bgcolor` and `transparent`
    """
    def __init__(self, geometry, image_opts=None):
        self.geometry = geometry
        image_opts = (image_opts or ImageOptions()).copy()
        image_opts.mode = 'RGBA'
        self.image_opts = image_opts
        self.image = create_image(geometry.size, image_opts)
        log.debug('created canvas %dx%d (bgcolor=%s, transparent=%s)',
                  geometry.size[0], geometry.size[1], image_opts.bgcolor,
                  bool(image_opts.transparent))

    @property
    def size(self):
        return self.geometry.size

    @property
    def bbox(self):
        return self.geometry.bbox

    @property
    def transform(self):
        return self.geometry.transform

    @property
    def closed(self):
        return self.image is None

    def as_image_source(self):
        georef = None
        if self.geometry.srs is not None:
            georef = GeoReference(self.bbox, self.geometry.srs)
        return ImageSource(self.image, size=self.size, georef=georef)

    def close(self):
        """
        Release the pixel buffer.
        """
        if self.image is not None:
            self.image.close()
            self.image = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self):
        return 'Canvas(%r)' % (self.geometry, )
