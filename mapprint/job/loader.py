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
Loading and validation of print job specifications.
"""
import json
import os.path
from typing import Iterable

from jsonschema.exceptions import ValidationError
from jsonschema.validators import Draft202012Validator

from mapprint.exception import JobSpecError
from mapprint.job import PrintJob
from mapprint.util.yaml import load_yaml, YAMLError

import logging
log = logging.getLogger('mapprint.config')


with open(os.path.join(os.path.dirname(__file__), 'job-schema.json')) as schema_file:
    schema = json.load(schema_file)


def get_error_messages(errors: Iterable[ValidationError]) -> list[str]:
    msgs = []
    for error in errors:
        path = error.json_path.replace('$', 'root')
        msg = f'{error.message} in {path}'
        msgs.append(msg)
        if error.context is not None:
            msgs += get_error_messages(error.context)
    return msgs


def validate(job_dict: dict) -> list[str]:
    validator = Draft202012Validator(schema=schema)
    errors_iter = validator.iter_errors(job_dict)
    return [] if errors_iter is None else get_error_messages(errors_iter)


def parse_job_doc(doc) -> dict:
    """
    Parse a JSON or YAML print job.

    >>> parse_job_doc('{"dpi": 300}')
    {'dpi': 300}
    >>> parse_job_doc('dpi: 300')
    {'dpi': 300}
    """
    if isinstance(doc, dict):
        return doc
    if isinstance(doc, bytes):
        doc = doc.decode('utf-8')
    if not isinstance(doc, str):
        doc = doc.read()
        if isinstance(doc, bytes):
            doc = doc.decode('utf-8')
    try:
        data = json.loads(doc)
    except ValueError:
        try:
            data = load_yaml(doc)
        except YAMLError as ex:
            raise JobSpecError('unable to parse print job: %s' % ex)
    if not isinstance(data, dict):
        raise JobSpecError('print job is not a mapping')
    return data


def load_print_job(doc, job_id=None) -> PrintJob:
    """
    Create a `PrintJob` from a dict, a JSON/YAML string or a file object.

    :raises JobSpecError: if the document does not match the job schema
    """
    job_dict = parse_job_doc(doc)
    errors = validate(job_dict)
    if errors:
        for msg in errors:
            log.error('invalid print job: %s', msg)
        raise JobSpecError('invalid print job: %s' % '; '.join(errors), errors=errors,
                           job_id=job_id)

    try:
        return PrintJob(
            id=job_id,
            srs=job_dict['srs'],
            dpi=job_dict['dpi'],
            units=job_dict.get('units'),
            layout=job_dict.get('layout'),
            output_format=job_dict.get('outputFormat', 'png'),
            geodetic=job_dict.get('geodetic', False),
            layers=job_dict['layers'],
            pages=job_dict['pages'],
        )
    except ValueError as ex:
        raise JobSpecError('invalid print job: %s' % ex, errors=[str(ex)], job_id=job_id)
