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

import json
from io import BytesIO

import pytest
import yaml

from mapprint.exception import JobSpecError
from mapprint.job import Page, PrintJob, freeze
from mapprint.job.loader import load_print_job, parse_job_doc, validate
from mapprint.srs import SRS


class TestJobLoader(object):
    def _test_job(self, yaml_part=None):
        base = yaml.safe_load('''
            layout: Image
            srs: EPSG:900913
            units: meters
            geodetic: false
            outputFormat: png
            dpi: 300
            layers:
              - type: OSM
                baseURL: http://tile.openstreetmap.org/
                maxExtent: [-20037508.34, -20037508.34, 20037508.34, 20037508.34]
                tileSize: [256, 256]
                resolutions: [156543.03390625, 78271.516953125, 39135.7584765625]
                extension: png
            pages:
              - bbox: [9854210.4540103, 1681670.9768253, 11615319.585456, 3124802.0706485]
        ''')
        if yaml_part is not None:
            base.update(yaml.safe_load(yaml_part))
        return base

    def test_valid_job(self):
        assert validate(self._test_job()) == []

    def test_load_dict(self):
        job = load_print_job(self._test_job(), job_id='job-1')
        assert job.id == 'job-1'
        assert job.srs == SRS(3857)
        assert job.dpi == 300
        assert job.units == 'meters'
        assert job.layout == 'Image'
        assert job.output_format == 'png'
        assert job.geodetic is False
        assert job.pages == (Page((9854210.4540103, 1681670.9768253,
                                   11615319.585456, 3124802.0706485)), )
        assert job.layers[0]['type'] == 'OSM'

    def test_load_json(self):
        doc = json.dumps(self._test_job())
        job = load_print_job(doc)
        assert len(job.id) == 32
        assert job.layers[0]['tileSize'] == (256, 256)

    def test_load_json_file(self):
        buf = BytesIO(json.dumps(self._test_job()).encode('utf-8'))
        assert load_print_job(buf).dpi == 300

    def test_load_yaml(self):
        doc = yaml.safe_dump(self._test_job())
        assert load_print_job(doc).srs == SRS(900913)

    def test_page_scale(self):
        job = load_print_job(self._test_job('''
            pages:
              - bbox: [0, 0, 1000, 1000]
                scale: 25000
        '''))
        assert job.pages[0].scale == 25000

    def test_job_is_immutable(self):
        job = load_print_job(self._test_job())
        with pytest.raises(TypeError):
            job.layers[0]['type'] = 'XYZ'
        with pytest.raises(AttributeError):
            job.dpi = 72

    def test_missing_required(self):
        job = self._test_job()
        del job['srs']
        errors = validate(job)
        assert errors == ["'srs' is a required property in root"]

    def test_invalid_layer(self):
        errors = validate(self._test_job('''
            layers:
              - baseURL: http://tile.openstreetmap.org/
        '''))
        assert errors == ["'type' is a required property in root.layers[0]"]

    def test_invalid_bbox(self):
        with pytest.raises(JobSpecError) as exc_info:
            load_print_job(self._test_job('''
                pages:
                  - bbox: [0, 0, 1000]
            '''), job_id='job-2')
        assert exc_info.value.job_id == 'job-2'
        assert len(exc_info.value.errors) == 1
        assert 'root.pages[0].bbox' in exc_info.value.errors[0]

    def test_no_pages(self):
        with pytest.raises(JobSpecError):
            load_print_job(self._test_job('pages: []'))

    def test_unknown_srs(self):
        with pytest.raises(JobSpecError) as exc_info:
            load_print_job(self._test_job('srs: EPSG:99999999'))
        assert 'EPSG:99999999' in str(exc_info.value)

    def test_unparsable(self):
        with pytest.raises(JobSpecError):
            parse_job_doc('{"srs": [')
        with pytest.raises(JobSpecError):
            parse_job_doc('- 1\n- 2')


def test_freeze():
    frozen = freeze({'a': [1, {'b': [2, 3]}]})
    assert frozen['a'][1]['b'] == (2, 3)
    with pytest.raises(TypeError):
        frozen['c'] = 1


def test_print_job_defaults():
    job = PrintJob('EPSG:4326', 72, [], [{'bbox': [0, 0, 10, 10]}])
    assert job.output_format == 'png'
    assert job.pages[0].bbox == (0.0, 0.0, 10.0, 10.0)
    assert job.pages[0].scale is None
