# pyEnvoy Module - Timezone Reconciler
# -*- coding: utf-8 -*-
"""
 Resolve the Envoy's timezone label and read its local clock

 The Envoy reports its clock as local date/time strings plus a timezone
 label. The label is usually an abbreviation ("EST"), so it is matched
 against the abbreviation every zone observes at collection time. The
 first zone in sorted name order that matches wins. Two zones sharing an
 abbreviation is not disambiguated further.

 Functions
    canonical_zones()                                    # [(name, tzinfo), ...] sorted by name
    resolve_zone(label, at, zones)                       # (name, tzinfo) of first match
    parse_device_clock(date_str, time_str, zone)         # aware datetime in zone
    reconcile(label, date_str, time_str, at, zones)      # ResolvedClock
"""
import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple

from dateutil import tz
from dateutil.zoneinfo import get_zonefile_instance

from pyenvoy.exceptions import InvalidDeviceClockFormat, TimezoneNotResolved

log = logging.getLogger(__name__)

DEVICE_CLOCK_FORMAT = "%m/%d/%Y %H:%M"


@dataclass(frozen=True)
class ResolvedClock:
    zone_name: str
    zone: tzinfo
    device_time: datetime  # device wall clock as an aware instant
    skew: timedelta        # device_time - collector time


@functools.lru_cache(maxsize=1)
def _zonefile_zones() -> Tuple[Tuple[str, tzinfo], ...]:
    zones = get_zonefile_instance().zones
    return tuple((name, zones[name]) for name in sorted(zones))


def canonical_zones() -> List[Tuple[str, tzinfo]]:
    """IANA zones bundled with dateutil, in a fixed (sorted) order"""
    return list(_zonefile_zones())


def resolve_zone(label: str, at: datetime,
                 zones: Optional[Iterable[Tuple[str, tzinfo]]] = None) -> Tuple[str, tzinfo]:
    """
    First zone whose abbreviation at `at` (or whose name) equals label

    Args:
        label = timezone label reported by the device, e.g. "EST"
        at    = aware collection instant the abbreviation is evaluated at
        zones = ordered (name, tzinfo) pairs, defaults to canonical_zones()
    """
    if zones is None:
        zones = canonical_zones()
    for name, zone in zones:
        if name == label or at.astimezone(zone).tzname() == label:
            log.debug(f"Timezone label '{label}' resolved to {name}")
            return name, zone
    log.error(f"Unable to match timezone label '{label}' to any zone")
    raise TimezoneNotResolved(label)


def parse_device_clock(date_str: str, time_str: str, zone: tzinfo) -> datetime:
    """Device "MM/DD/YYYY" + "HH:MM" (24h) interpreted in zone"""
    value = f"{date_str} {time_str}"
    try:
        naive = datetime.strptime(value, DEVICE_CLOCK_FORMAT)
    except (TypeError, ValueError) as exc:
        raise InvalidDeviceClockFormat(value, exc) from exc
    local = naive.replace(tzinfo=zone)
    if not tz.datetime_exists(local):
        # Falls in a DST gap
        raise InvalidDeviceClockFormat(value, f"time does not exist in {zone}")
    return local


def reconcile(label: str, date_str: str, time_str: str, at: Optional[datetime] = None,
              zones: Optional[Iterable[Tuple[str, tzinfo]]] = None) -> ResolvedClock:
    """
    Resolve the device zone and compute its clock skew against `at`

    `at` defaults to now (UTC).
    """
    if at is None:
        at = datetime.now(timezone.utc)
    name, zone = resolve_zone(label, at, zones)
    device_time = parse_device_clock(date_str, time_str, zone)
    return ResolvedClock(zone_name=name, zone=zone, device_time=device_time, skew=device_time - at)
