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
Tile retrieval over HTTP(S).
"""
import time

import requests

from mapprint.version import version
from mapprint.image import ImageSource
from mapprint.client.log import log_request


class HTTPClientError(Exception):
    """
    :ivar permanent: ``True`` if a retry can not succeed (e.g. an
                     invalid SSL certificate)
    """
    def __init__(self, arg, response_code=None, permanent=False):
        Exception.__init__(self, arg)
        self.response_code = response_code
        self.permanent = permanent


class HTTPClient(object):
    """
    HTTP client for tile requests, shared by all fetch workers of a layer.

    :param timeout: timeout in seconds for each request
    :param insecure: do not verify SSL certificates
    :param ssl_ca_certs: file with CA certificates for SSL verification
    """
    def __init__(self, insecure=False, ssl_ca_certs=None, timeout=None, headers=None):
        self._timeout = timeout
        self.session = requests.Session()
        self.session.headers['User-Agent'] = 'MapPrint-%s' % (version, )
        if headers:
            self.session.headers.update(headers)
        if insecure:
            self.session.verify = False
        elif ssl_ca_certs:
            self.session.verify = ssl_ca_certs

    def open(self, url, headers=None, timeout=None):
        """
        GET `url` and return the `requests.Response`.

        :raises HTTPClientError: for connection errors, timeouts and
            responses with status codes >= 400 or 204
        """
        code = None
        resp = None
        if timeout is None:
            timeout = self._timeout
        start_time = time.time()
        try:
            resp = self.session.get(url, headers=headers, timeout=timeout)
        except requests.exceptions.SSLError as e:
            raise self.handle_url_exception(url, 'Could not verify connection to URL', e,
                                            permanent=True) from e
        except requests.exceptions.Timeout as e:
            raise self.handle_url_exception(url, 'No response from URL (timeout)', e) from e
        except requests.exceptions.ConnectionError as e:
            raise self.handle_url_exception(url, 'No response from URL', e) from e
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            raise self.handle_url_exception(url, 'URL not correct', e, response_code=400) from e
        except requests.exceptions.RequestException as e:
            raise self.handle_url_exception(url, 'Internal HTTP error', repr(e)) from e
        else:
            code = resp.status_code
            if code >= 400:
                raise self.handle_url_exception(url, 'HTTP Error', str(code), response_code=code)
            if code == 204:
                raise HTTPClientError('HTTP Error "204 No Content"', response_code=204)
            return resp
        finally:
            log_request(url, code, resp, duration=time.time()-start_time)

    def open_image(self, url, headers=None, timeout=None):
        resp = self.open(url, headers=headers, timeout=timeout)
        content_type = resp.headers.get('content-type')
        if content_type and not content_type.lower().startswith('image'):
            raise HTTPClientError('response is not an image: (%s)' % (resp.content[:200], ),
                                  response_code=resp.status_code)
        return ImageSource(resp.content)

    def handle_url_exception(self, url, message, reason, response_code=None, permanent=False):
        return HTTPClientError(
            '%s "%s": %s' % (message, url, reason),
            response_code=response_code,
            permanent=permanent,
        )

    def close(self):
        self.session.close()
