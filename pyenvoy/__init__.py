# pyEnvoy Module
# -*- coding: utf-8 -*-
"""
 Python module to collect telemetry from an Enphase Envoy solar gateway

 Features
    * Authenticates once with the Envoy's Digest (or Basic) challenge and reuses the credential
    * Normalizes loosely typed JSON (size strings, numeric strings, alert arrays, epochs)
    * Resolves the Envoy's timezone label to compute device clock skew
    * Formats system status and inverter readings as InfluxDB line protocol

 Classes
    Envoy(url, username, password, timeout, session, zones)

 Parameters
    url                       # Base URL of the Envoy (e.g. https://envoy.local)
    username                  # Envoy username (e.g. installer)
    password                  # Envoy password
    timeout = None            # Timeout for HTTP calls in seconds (None = transport default)
    session = None            # requests.Session to use (one is created if None)
    zones = None              # Ordered (name, tzinfo) pairs for timezone matching (None = dateutil IANA zones)

 Functions
    home()                    # Return SystemStatus from /home.json
    inverters()               # Return list of InverterReading
    poll_cycle()              # Return PollResult (status + inverters + device clock + collector timestamp)
    lines()                   # Return InfluxDB line protocol for one poll cycle
    close()                   # Close the http session

 Requirements
    This module requires the following modules: requests, python-dateutil
    pip install requests python-dateutil
"""
import logging
import sys
import time
from datetime import tzinfo
from typing import Iterable, List, Optional, Tuple, Union

import requests

version_tuple = (0, 3, 0)
version = __version__ = '%d.%d.%d' % version_tuple

from pyenvoy.auth import Credential
from pyenvoy.exceptions import PyEnvoyException
from pyenvoy.influx import poll_lines
from pyenvoy.local.pyenvoy_local import PyEnvoyLocal
from pyenvoy.models import InverterReading, PollResult, SystemStatus
from pyenvoy.normalize import nanos_to_datetime
from pyenvoy.pyenvoy_base import PyEnvoyBase
from pyenvoy.timezones import reconcile

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)


class Envoy(object):
    def __init__(self, url: str, username: str, password: str,
                 timeout: Optional[Union[float, Tuple[float, float]]] = None,
                 session: Optional[requests.Session] = None,
                 zones: Optional[Iterable[Tuple[str, tzinfo]]] = None):
        """
        Represents an Enphase Envoy gateway.

        Authenticates on construction: raises UnexpectedProbeResponse, MalformedChallenge,
        UnsupportedScheme or FetchFailed if that fails (the http session is closed first).

        Args:
            url      = Base URL of the Envoy (e.g. https://192.168.1.50)
            username = Envoy username
            password = Envoy password
            timeout  = Seconds for the timeout on http requests (None = no timeout)
            session  = Optional requests.Session
            zones    = Ordered (name, tzinfo) pairs to match the device timezone against
                       (None = IANA zones bundled with dateutil)
        """
        self.url = url
        self.username = username
        self.timeout = timeout
        self.zones = list(zones) if zones is not None else None
        self.client: PyEnvoyBase = PyEnvoyLocal(url, username, password, session=session, timeout=timeout)
        try:
            self.credential: Credential = self.client.authenticate()
        except Exception:
            self.client.close_session()
            raise

    def home(self) -> SystemStatus:
        """System status (build date, database, phone home, clock, comm)"""
        return self.client.home()

    def inverters(self) -> List[InverterReading]:
        """Production readings for every inverter"""
        return self.client.inverters()

    def poll_cycle(self) -> PollResult:
        """
        Fetch both endpoints, reconcile the device clock and stamp them with one collector timestamp

        All or nothing: any failure (including TimezoneNotResolved) raises and nothing is returned.
        """
        collected_at_ns = time.time_ns()
        status = self.home()
        clock = reconcile(status.timezone, status.current_date, status.current_time,
                          nanos_to_datetime(collected_at_ns), self.zones)
        inverters = self.inverters()
        return PollResult(collected_at_ns=collected_at_ns, status=status, inverters=inverters, clock=clock)

    def lines(self) -> List[str]:
        """InfluxDB line protocol for one poll cycle"""
        return poll_lines(self.poll_cycle())

    def close(self):
        self.client.close_session()


__all__ = ['Envoy', 'PyEnvoyException', 'set_debug', 'version', '__version__']
