# pyEnvoy Module - InfluxDB Line Protocol
# -*- coding: utf-8 -*-
"""
 Format poll results as InfluxDB line protocol

 Every line of a poll cycle carries the same collector timestamp (ns).
 The device clock is reconciled during the poll cycle and arrives on the
 PollResult as a ResolvedClock.

 Functions
    home_lines(status, clock, collected_at_ns)   # system status series
    inverter_lines(readings, collected_at_ns)    # one line per inverter
    poll_lines(result)                           # both, for a PollResult
"""
import logging
from datetime import timedelta
from typing import Iterable, List

from pyenvoy.models import InverterReading, PollResult, SystemStatus
from pyenvoy.normalize import datetime_to_nanos
from pyenvoy.timezones import ResolvedClock

log = logging.getLogger(__name__)


def escape_tag(value: str) -> str:
    return value.replace('\\', '\\\\').replace(',', '\\,').replace('=', '\\=').replace(' ', '\\ ')


def quote_field(value: str) -> str:
    return '"%s"' % value.replace('\\', '\\\\').replace('"', '\\"')


def home_lines(status: SystemStatus, clock: ResolvedClock, collected_at_ns: int) -> List[str]:
    ts = collected_at_ns
    skew_ns = clock.skew // timedelta(microseconds=1) * 1000
    log.debug(f"Device clock {clock.device_time.isoformat()} ({clock.zone_name}), skew {clock.skew}")
    return [
        f"software_build_date value={datetime_to_nanos(status.software_build)} {ts}",
        f"database total_size={status.db_size},percent_full={status.db_percent_full} {ts}",
        "phone_home update_status=%s,alerts=%d,last_report=%d %d" % (
            quote_field(status.update_status), status.alerts,
            datetime_to_nanos(status.network.last_enlighten_report_time), ts),
        f"device_time_skew device_timestamp={datetime_to_nanos(clock.device_time)},skew={skew_ns} {ts}",
        f"comm number={status.comm.num},level={status.comm.level} {ts}",
    ]


def inverter_lines(readings: Iterable[InverterReading], collected_at_ns: int) -> List[str]:
    lines = []
    for inverter in readings:
        # Serial tag keeps its quotes so existing series keep matching
        lines.append('inverter,serial_number="%s" last_report=%d,last_watts=%d,max_watts=%d %d' % (
            escape_tag(inverter.serial_number), datetime_to_nanos(inverter.last_report_date),
            inverter.last_report_watts, inverter.max_report_watts, collected_at_ns))
    return lines


def poll_lines(result: PollResult) -> List[str]:
    return home_lines(result.status, result.clock, result.collected_at_ns) + \
        inverter_lines(result.inverters, result.collected_at_ns)
