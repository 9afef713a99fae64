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
Concurrent tile retrieval with retries.
"""

import time

from mapprint.client.http import HTTPClientError
from mapprint.client.tile import FileClientError
from mapprint.exception import TileFetchError
from mapprint.util.async_ import ThreadPool

import logging
log = logging.getLogger('mapprint.source.tile')


class RetryPolicy(object):
    """
    Exponential backoff between failed attempts.

    :param retries: number of retries after the first attempt
    :param backoff: delay in seconds before the first retry,
                    doubled for each further retry
    :param max_backoff: upper limit of a single delay

    >>> policy = RetryPolicy(retries=4, backoff=0.5, max_backoff=2.0)
    >>> [policy.delay(n) for n in range(4)]
    [0.5, 1.0, 2.0, 2.0]
    """
    retry_status_codes = set((408, 429))

    def __init__(self, retries=3, backoff=0.5, max_backoff=8.0):
        if retries < 0:
            raise ValueError('retries must not be negative')
        self.retries = retries
        self.backoff = backoff
        self.max_backoff = max_backoff

    @property
    def max_attempts(self):
        return self.retries + 1

    def delay(self, retry):
        return min(self.backoff * 2 ** retry, self.max_backoff)

    def is_retryable_status(self, response_code):
        """
        >>> policy = RetryPolicy()
        >>> [policy.is_retryable_status(c) for c in (None, 404, 429, 503)]
        [True, False, True, True]
        """
        if response_code is None:
            # timeout or connection error
            return True
        return response_code in self.retry_status_codes or response_code >= 500

    def fetch_error(self, ex):
        """
        Convert a client or decoding error into a `TileFetchError`.
        """
        if isinstance(ex, TileFetchError):
            return ex
        if isinstance(ex, HTTPClientError):
            retryable = not ex.permanent and self.is_retryable_status(ex.response_code)
            return TileFetchError(ex.args[0], retryable=retryable,
                                  response_code=ex.response_code)
        if isinstance(ex, FileClientError):
            return TileFetchError(ex.args[0], retryable=False)
        return TileFetchError('invalid image data: %s' % (ex, ), retryable=False)

    def __repr__(self):
        return 'RetryPolicy(retries=%d, backoff=%r, max_backoff=%r)' % (
            self.retries, self.backoff, self.max_backoff)


class TileResult(object):
    """
    Outcome of a single `TileRequest`: the decoded image or the
    reason of the failure.
    """
    def __init__(self, request, image=None, error=None, attempts=0, cancelled=False):
        self.request = request
        self.image = image
        self.error = error
        self.attempts = attempts
        self.cancelled = cancelled

    @property
    def failed(self):
        return self.image is None

    def __repr__(self):
        if self.failed:
            return 'TileResult(%r, error=%r)' % (self.request, self.error)
        return 'TileResult(%r, size=%r)' % (self.request, self.image.size)


class TileFetcher(object):
    """
    Retrieves tiles concurrently with a bounded pool of worker threads.

    Each tile is fetched through ``request.layer.fetch_tile``. Failed
    attempts are retried with the `RetryPolicy`, permanent failures
    (4xx, missing files, invalid image data) are not retried. A tile that
    could not be retrieved results in a failed `TileResult`, never in an
    exception.

    :param concurrency: maximum number of parallel requests
    :param timeout: timeout in seconds for each attempt
    """
    def __init__(self, retry_policy=None, concurrency=8, timeout=None, headers=None,
                 sleep=None):
        self.retry_policy = retry_policy or RetryPolicy()
        self.concurrency = max(1, concurrency)
        self.timeout = timeout
        self.headers = headers
        self._sleep = sleep or time.sleep

    def fetch(self, request, cancel=None):
        """
        Fetch a single tile with retries.

        :rtype: `TileResult`
        """
        policy = self.retry_policy
        attempt = 0
        while True:
            if cancel is not None and cancel.cancelled:
                return TileResult(request, error='cancelled', attempts=attempt, cancelled=True)
            attempt += 1
            try:
                source = request.layer.fetch_tile(request, headers=self.headers,
                                                  timeout=self.timeout)
            except (HTTPClientError, FileClientError, TileFetchError, IOError, ValueError) as ex:
                err = policy.fetch_error(ex)
            else:
                try:
                    image = source.as_image()
                except Exception as ex:
                    # any decoding error, e.g. DecompressionBombError
                    err = policy.fetch_error(ex)
                else:
                    return TileResult(request, image=image, attempts=attempt)

            if not err.retryable or attempt >= policy.max_attempts:
                log.warning('could not retrieve tile %r after %d attempt(s): %s',
                            request, attempt, err)
                return TileResult(request, error=err, attempts=attempt)

            delay = policy.delay(attempt - 1)
            log.info('retrying tile %r in %.2fs (attempt %d of %d): %s',
                     request, delay, attempt + 1, policy.max_attempts, err)
            if self._wait(delay, cancel):
                return TileResult(request, error=err, attempts=attempt, cancelled=True)

    def _wait(self, seconds, cancel):
        if cancel is not None:
            return cancel.wait(seconds)
        self._sleep(seconds)
        return False

    def fetch_tiles(self, requests, cancel=None):
        """
        Fetch all `requests` concurrently.

        Yields a `TileResult` for each request as soon as it is
        available, in no particular order. Closing the iterator early
        drops all queued requests.
        """
        requests = list(requests)
        if not requests:
            return iter([])
        pool = ThreadPool(min(self.concurrency, len(requests)))
        return pool.imap(self.fetch, requests, [cancel] * len(requests))
