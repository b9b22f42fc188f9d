# pyEnvoy Module - Exceptions
# -*- coding: utf-8 -*-
"""
 Exceptions raised by pyEnvoy

 Every failure is terminal for the poll cycle. Nothing here is retried;
 callers surface the first error and stop.

 Hierarchy
    PyEnvoyException
        UnexpectedProbeResponse   # probe did not answer 401
        MalformedChallenge        # WWW-Authenticate missing or unusable
        UnsupportedScheme         # scheme/algorithm we cannot answer
        FetchFailed               # transport error or non-2xx status
        DecodeFailed              # JSON shape mismatch (wraps NormalizationError)
        TimezoneNotResolved       # no zone observes the device's timezone label
        InvalidDeviceClockFormat  # device date/time strings unparseable
    NormalizationError
        InvalidSizeFormat, InvalidIntegerFormat, InvalidArrayFormat, InvalidEpochFormat
"""
from typing import Any, Optional


class PyEnvoyException(Exception):
    """Base class for all pyEnvoy errors"""
    stage = "envoy"


class UnexpectedProbeResponse(PyEnvoyException):
    stage = "probe"

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Expected HTTP 401 from {url or 'probe'}, got {status_code}")


class MalformedChallenge(PyEnvoyException):
    stage = "challenge"


class UnsupportedScheme(PyEnvoyException):
    stage = "credentials"


class FetchFailed(PyEnvoyException):
    stage = "fetch"

    def __init__(self, endpoint: str, cause: Any):
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"{endpoint}: {cause}")


class DecodeFailed(PyEnvoyException):
    stage = "decode"

    def __init__(self, endpoint: str, field: Optional[str], cause: Any):
        self.endpoint = endpoint
        self.field = field
        self.cause = cause
        super().__init__(f"{endpoint} [{field}]: {cause}")


class TimezoneNotResolved(PyEnvoyException):
    stage = "timezone"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"No timezone currently observes '{label}'")


class InvalidDeviceClockFormat(PyEnvoyException):
    stage = "timezone"

    def __init__(self, value: str, cause: Any = None):
        self.value = value
        self.cause = cause
        super().__init__(f"Unable to parse device clock '{value}' as MM/DD/YYYY HH:MM")


class NormalizationError(ValueError):
    """Raised by the field normalizers; wrapped into DecodeFailed by the decoder"""

    def __init__(self, value: Any, reason: str = ""):
        self.value = value
        msg = f"{type(self).__name__}: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidSizeFormat(NormalizationError):
    pass


class InvalidIntegerFormat(NormalizationError):
    pass


class InvalidArrayFormat(NormalizationError):
    pass


class InvalidEpochFormat(NormalizationError):
    pass
