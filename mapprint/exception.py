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
Print job exceptions.

Fatal errors (everything derived from `PrintError`) abort the job and are
reported to the caller. `TileFetchError` is recovered inside the tile
fetcher and only shows up in the `PrintReport`.
"""


class PrintError(Exception):
    """
    Base class for all errors that abort a print job.

    :ivar job_id: the id of the failed job (set by the printer)
    :ivar layer: index or name of the failing layer, if any
    """
    def __init__(self, message, job_id=None, layer=None):
        Exception.__init__(self, message)
        self.msg = message
        self.job_id = job_id
        self.layer = layer

    def with_context(self, job_id=None, layer=None):
        if job_id is not None and self.job_id is None:
            self.job_id = job_id
        if layer is not None and self.layer is None:
            self.layer = layer
        return self

    def __str__(self):
        context = []
        if self.job_id is not None:
            context.append('job=%s' % self.job_id)
        if self.layer is not None:
            context.append('layer=%s' % (self.layer, ))
        if context:
            return '%s (%s)' % (self.msg, ', '.join(context))
        return self.msg


class InvalidGeometryError(PrintError):
    """
    Malformed page bounding box, DPI, units or scale.
    """
    pass


class LayerConfigurationError(PrintError):
    """
    Malformed layer descriptor (e.g. non-monotonic resolutions, zero tile size).
    """
    pass


class CompositingError(PrintError):
    """
    Internal invariant violation while writing tiles into the canvas.
    """
    pass


class PrintCancelled(PrintError):
    pass


class JobSpecError(PrintError):
    """
    The job specification does not match the expected structure.

    :ivar errors: list with all validation messages
    """
    def __init__(self, message, errors=None, job_id=None):
        PrintError.__init__(self, message, job_id=job_id)
        self.errors = errors or []


class TileFetchError(Exception):
    """
    Retrieval of a single tile failed.

    :ivar retryable: ``False`` for permanent failures (404, missing files,
                     non-image responses)
    """
    def __init__(self, message, retryable=True, response_code=None):
        Exception.__init__(self, message)
        self.retryable = retryable
        self.response_code = response_code
