import logging
from typing import Any, Optional, Tuple, Union

import requests
import urllib3
from requests import Response
from urllib3.exceptions import InsecureRequestWarning

from pyenvoy.auth import Credential, decode_challenge, respond
from pyenvoy.exceptions import DecodeFailed, FetchFailed, UnexpectedProbeResponse
from pyenvoy.pyenvoy_base import PyEnvoyBase

urllib3.disable_warnings(InsecureRequestWarning)  # Envoy uses a self-signed certificate

log = logging.getLogger(__name__)

# Protected page used to obtain the authentication challenge
PROBE_API = '/installer/setup/home'


class PyEnvoyLocal(PyEnvoyBase):

    def __init__(self, url: str, username: str, password: str, session: Optional[requests.Session] = None,
                 timeout: Optional[Union[float, Tuple[float, float]]] = None):
        super().__init__(url, username)
        self.password = password
        self.session = session or requests.Session()
        self.timeout = timeout  # None - wait as long as the transport does

    def authenticate(self) -> Credential:
        log.debug('Envoy local mode enabled')
        header = self._probe()
        challenge = decode_challenge(header)
        self.credential = respond(challenge, self.username, self.password)
        log.debug(f"Authenticated to {self.url} using {self.credential.scheme}")
        return self.credential

    def _probe(self) -> Optional[str]:
        # Unauthenticated request - the Envoy must answer 401 with its challenge
        url = self.api_url(PROBE_API)
        log.debug(' -- local: Probing Envoy for challenge at %s' % url)
        r = self._get(PROBE_API, url)
        if r.status_code != 401:
            log.error('Expected 401 from Envoy at %s but got %s' % (url, r.status_code))
            raise UnexpectedProbeResponse(r.status_code, url)
        return r.headers.get('WWW-Authenticate')

    def _get(self, api: str, url: str, headers: Optional[dict] = None) -> Response:
        try:
            return self.session.get(url, headers=headers, verify=False, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            log.error('Timeout waiting for Envoy API %s' % url)
            raise FetchFailed(api, exc) from exc
        except requests.exceptions.ConnectionError as exc:
            log.error('Unable to connect to Envoy at %s' % url)
            raise FetchFailed(api, exc) from exc
        except requests.exceptions.RequestException as exc:
            log.error(f'Unknown error connecting to Envoy at {url}: {exc}')
            raise FetchFailed(api, exc) from exc

    def close_session(self):
        self.session.close()

    def poll(self, api: str) -> Any:
        """Authenticated GET of api, returning the decoded JSON body"""
        if self.credential is None:
            raise FetchFailed(api, "not authenticated - call authenticate() first")
        url = self.api_url(api)
        log.debug(' -- local: Request Envoy for %s' % api)
        r = self._get(api, url, headers=self.credential.as_headers())
        if not 200 <= r.status_code < 300:
            if r.status_code in (401, 403):
                log.error('%s Unauthorized by Envoy API at %s - check username and password' % (r.status_code, url))
            else:
                log.error('Unhandled HTTP response code %s at %s' % (r.status_code, url))
            raise FetchFailed(api, f"HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as exc:
            log.error(f"Unable to parse payload from {url} as JSON: {exc}")
            raise DecodeFailed(api, '<body>', exc) from exc
