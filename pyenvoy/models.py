# pyEnvoy Module - Typed Records
# -*- coding: utf-8 -*-
"""
 Typed records decoded from Envoy JSON payloads

 Classes
    SystemStatus      # /home.json
    NetworkInfo       # /home.json -> network
    CommInfo          # /home.json -> comm
    InverterReading   # one element of /api/v1/production/inverters
    PollResult        # one poll cycle

 Decoding is strict: a missing field or wrong scalar type raises
 DecodeFailed(endpoint, field, cause). Normalizer errors become the cause.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from pyenvoy.exceptions import DecodeFailed, NormalizationError
from pyenvoy.normalize import array_to_count, epoch_to_datetime, nanos_to_datetime, size_to_bytes, string_to_int
from pyenvoy.timezones import ResolvedClock

log = logging.getLogger(__name__)

HOME_API = '/home.json'
INVERTERS_API = '/api/v1/production/inverters'


class _Decoder:
    """Field access on one JSON object, reporting failures with a dotted path"""

    def __init__(self, endpoint: str, payload: Any, path: str = ''):
        if not isinstance(payload, dict):
            raise DecodeFailed(endpoint, path or '<root>', f"expected a JSON object, got {type(payload).__name__}")
        self.endpoint = endpoint
        self.payload = payload
        self.path = path

    def _path(self, key: str) -> str:
        return f"{self.path}.{key}" if self.path else key

    def raw(self, key: str) -> Any:
        if key not in self.payload:
            raise DecodeFailed(self.endpoint, self._path(key), "missing required field")
        return self.payload[key]

    def normalized(self, key: str, converter: Callable[[Any], Any]) -> Any:
        try:
            return converter(self.raw(key))
        except NormalizationError as exc:
            log.error(f"Unable to normalize {self._path(key)} from {self.endpoint}: {exc}")
            raise DecodeFailed(self.endpoint, self._path(key), exc) from exc

    def integer(self, key: str) -> int:
        value = self.raw(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeFailed(self.endpoint, self._path(key), f"expected integer, got {value!r}")
        return value

    def string(self, key: str) -> str:
        value = self.raw(key)
        if not isinstance(value, str):
            raise DecodeFailed(self.endpoint, self._path(key), f"expected string, got {value!r}")
        return value

    def child(self, key: str) -> '_Decoder':
        return _Decoder(self.endpoint, self.raw(key), self._path(key))


@dataclass(frozen=True)
class NetworkInfo:
    last_enlighten_report_time: datetime


@dataclass(frozen=True)
class CommInfo:
    num: int
    level: int


@dataclass(frozen=True)
class SystemStatus:
    software_build: datetime
    current_date: str
    current_time: str
    timezone: str
    db_size: int          # bytes
    db_percent_full: int
    network: NetworkInfo
    comm: CommInfo
    alerts: int           # number of alerts, contents are ignored
    update_status: str

    @classmethod
    def from_json(cls, payload: Any, endpoint: str = HOME_API) -> 'SystemStatus':
        d = _Decoder(endpoint, payload)
        db_percent_full = d.normalized('db_percent_full', string_to_int)
        if db_percent_full < 0:
            raise DecodeFailed(endpoint, 'db_percent_full', f"negative percentage {db_percent_full}")
        network = d.child('network')
        comm = d.child('comm')
        return cls(
            software_build=d.normalized('software_build_epoch', epoch_to_datetime),
            current_date=d.string('current_date'),
            current_time=d.string('current_time'),
            timezone=d.string('timezone'),
            db_size=d.normalized('db_size', size_to_bytes),
            db_percent_full=db_percent_full,
            network=NetworkInfo(
                last_enlighten_report_time=network.normalized('last_enlighten_report_time', epoch_to_datetime)),
            comm=CommInfo(num=comm.integer('num'), level=comm.integer('level')),
            alerts=d.normalized('alerts', array_to_count),
            update_status=d.string('update_status'),
        )


@dataclass(frozen=True)
class InverterReading:
    serial_number: str
    last_report_date: datetime
    last_report_watts: int  # may be zero or negative while faulted / offline
    max_report_watts: int

    @classmethod
    def from_json(cls, payload: Any, endpoint: str = INVERTERS_API, path: Optional[str] = None) -> 'InverterReading':
        d = _Decoder(endpoint, payload, path or '')
        return cls(
            serial_number=d.string('serialNumber'),
            last_report_date=d.normalized('lastReportDate', epoch_to_datetime),
            last_report_watts=d.integer('lastReportWatts'),
            max_report_watts=d.integer('maxReportWatts'),
        )


def inverters_from_json(payload: Any, endpoint: str = INVERTERS_API) -> List[InverterReading]:
    """Decode the inverter list, keeping device order"""
    if not isinstance(payload, list):
        raise DecodeFailed(endpoint, '<root>', f"expected a JSON array, got {type(payload).__name__}")
    return [InverterReading.from_json(item, endpoint, f"[{i}]") for i, item in enumerate(payload)]


@dataclass(frozen=True)
class PollResult:
    """Everything fetched in one poll cycle, stamped with a single collector time"""
    collected_at_ns: int
    status: SystemStatus
    inverters: List[InverterReading]
    clock: ResolvedClock  # device clock reconciled against collected_at

    @property
    def collected_at(self) -> datetime:
        return nanos_to_datetime(self.collected_at_ns)
