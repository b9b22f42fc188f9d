# pyEnvoy Module - Field Normalizers
# -*- coding: utf-8 -*-
"""
 Convert loosely typed Envoy JSON values into typed Python values

 Functions
    size_to_bytes(value)      # "12 MB" -> 12582912
    string_to_int(value)      # "42" -> 42
    array_to_count(value)     # [..] -> len([..])
    epoch_to_datetime(value)  # 1688000000 -> aware UTC datetime

 Each function is pure and raises a NormalizationError subclass on bad input.
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from pyenvoy.exceptions import (InvalidArrayFormat, InvalidEpochFormat, InvalidIntegerFormat,
                                InvalidSizeFormat)

log = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Unit -> power of 1024
SIZE_UNITS = {
    'B': 0, 'BYTE': 0, 'BYTES': 0,
    'KB': 1, 'KILOBYTE': 1, 'KILOBYTES': 1,
    'MB': 2, 'MEGABYTE': 2, 'MEGABYTES': 2,
    'GB': 3, 'GIGABYTE': 3, 'GIGABYTES': 3,
}

_DIGITS = re.compile(r'[0-9]+')
_SIGNED_DIGITS = re.compile(r'[+-]?[0-9]+')


def size_to_bytes(value: Any) -> int:
    """
    Free text size "<integer> <unit>" to a byte count

    Unknown or missing units are not scaled.
    """
    if not isinstance(value, str):
        raise InvalidSizeFormat(value, "not a string")
    parts = value.split()
    if not parts or not _DIGITS.fullmatch(parts[0]):
        raise InvalidSizeFormat(value, "expected a non-negative integer")
    number = int(parts[0])
    unit = parts[1].upper() if len(parts) > 1 else ''
    power = SIZE_UNITS.get(unit)
    if power is None:
        log.debug(f"Unknown size unit '{unit}' in {value!r} - leaving unscaled")
        power = 0
    return number * 1024 ** power


def string_to_int(value: Any) -> int:
    """Integer wrapped in a JSON string, e.g. "1" or "-7" """
    if not isinstance(value, str) or not _SIGNED_DIGITS.fullmatch(value):
        raise InvalidIntegerFormat(value)
    return int(value)


def array_to_count(value: Any) -> int:
    # Only the length matters, elements are never inspected
    if not isinstance(value, list):
        raise InvalidArrayFormat(value, "not an array")
    return len(value)


def epoch_to_datetime(value: Any) -> datetime:
    """Seconds since the Unix epoch to an aware UTC datetime"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEpochFormat(value, "not an integer")
    try:
        return EPOCH + timedelta(seconds=value)
    except OverflowError as exc:
        raise InvalidEpochFormat(value, str(exc)) from exc


def datetime_to_nanos(dt: datetime) -> int:
    """Aware datetime to integer nanoseconds since the epoch (exact, no float rounding)"""
    return (dt - EPOCH) // timedelta(microseconds=1) * 1000


def nanos_to_datetime(ns: int) -> datetime:
    """Integer nanoseconds since the epoch to an aware UTC datetime (microsecond precision)"""
    return EPOCH + timedelta(microseconds=ns // 1000)
