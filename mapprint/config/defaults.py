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

http = dict(
    ssl_ca_certs = None,
    ssl_no_cert_checks = False,
    # seconds, applies to each attempt
    client_timeout = 60,
    retries = 3,
    retry_backoff = 0.5,
    max_retry_backoff = 8.0,
    concurrent_requests = 8,
    headers = {},
)

image = dict(
    # nearest, bilinear, bicubic
    resampling_method = 'bilinear',
    jpeg_quality = 90,
    bgcolor = '#ffffff',
    transparent = False,
)

printing = dict(
    max_canvas_pixels = 10000*10000,
    max_dpi = 1200,
    default_layout = 'Image',
)

# map block sizes in points (1/72 inch)
layouts = dict(
    Image = dict(map=dict(width=700, height=580)),
    A4_portrait = dict(map=dict(width=530, height=740)),
    A4_landscape = dict(map=dict(width=780, height=480)),
)

