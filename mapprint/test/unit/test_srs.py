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

from mapprint.srs import SRS, get_epsg_num


class TestSRS(object):
    def test_epsg_4326(self):
        srs = SRS(4326)
        assert srs.is_latlong
        assert srs.units == 'degrees'
        assert srs.srs_code == 'EPSG:4326'

    def test_webmercator_aliases(self):
        assert SRS('EPSG:900913') == SRS(3857)
        assert SRS('EPSG:102100') == SRS('EPSG:3857')
        assert SRS(900913).units == 'm'
        assert not SRS(900913).is_latlong

    def test_crs84(self):
        assert SRS('CRS:84').is_latlong

    def test_different(self):
        assert SRS(4326) != SRS(3857)

    def test_cached(self):
        assert SRS('EPSG:25832') is SRS(25832)

    def test_unknown(self):
        with pytest.raises(ValueError):
            SRS('EPSG:99999999')

    def test_epsg_num(self):
        assert get_epsg_num('EPSG:31466') == 31466
        assert get_epsg_num('FOO:BAR') is None
