import copy
import json
from unittest.mock import MagicMock
from urllib.parse import urlparse

import pytest
import requests
from dateutil import tz
from requests.structures import CaseInsensitiveDict

DIGEST_CHALLENGE = 'Digest realm="enphaseenergy.com", qop="auth", nonce="1688000000"'

HOME_JSON = {
    "software_build_epoch": 1234567890,
    "is_nonvoy": False,
    "db_size": "12 MB",
    "db_percent_full": "1",
    "timezone": "EST",
    "current_date": "01/01/2023",
    "current_time": "01:00",
    "network": {
        "web_comm": True,
        "ever_reported_to_enlighten": True,
        "last_enlighten_report_time": 1234567890,
        "primary_interface": "wlan0",
        "interfaces": [
            {"type": "ethernet", "interface": "eth0", "mac": "00:11:22:33:44:55", "dhcp": True,
             "ip": "169.169.169.169", "signal_strength": 0, "signal_strength_max": 1, "carrier": False},
            {"type": "wifi", "interface": "wlan0", "mac": "11:22:33:44:55:66", "dhcp": True,
             "ip": "192.168.1.1", "signal_strength": 1, "signal_strength_max": 5, "carrier": True,
             "supported": True, "present": True, "configured": True, "status": "connected"},
        ]
    },
    "comm": {"num": 1, "level": 1},
    "alerts": [],
    "update_status": "satisfied"
}

INVERTERS_JSON = [
    {"serialNumber": "123456789012", "lastReportDate": 1688000000, "lastReportWatts": 123, "maxReportWatts": 234}
]

# Small ordered zone list so abbreviation matching does not depend on today's date
TEST_ZONES = [
    ("Etc/UTC", tz.tzutc()),
    ("Test/Eastern", tz.tzoffset("EST", -5 * 3600)),
    ("Test/EasternToo", tz.tzoffset("EST", -5 * 3600)),
    ("Test/Central", tz.tzoffset("CST", -6 * 3600)),
]


def make_response(status_code=200, payload=None, headers=None, text=None):
    """Build a real requests.Response without touching the network"""
    r = requests.Response()
    r.status_code = status_code
    r.headers = CaseInsensitiveDict(headers or {})
    if payload is not None:
        r._content = json.dumps(payload).encode('utf-8')
        r.headers.setdefault('Content-Type', 'application/json')
    else:
        r._content = (text or '').encode('utf-8')
    r.encoding = 'utf-8'
    return r


def make_session(routes):
    """
    MagicMock session answering GETs by URL path

    routes maps path -> Response or Exception (raised)
    """
    session = MagicMock(spec=requests.Session)

    def get(url, headers=None, verify=True, timeout=None):
        result = routes[urlparse(url).path]
        if isinstance(result, Exception):
            raise result
        return result

    session.get.side_effect = get
    return session


@pytest.fixture
def home_json():
    return copy.deepcopy(HOME_JSON)


@pytest.fixture
def inverters_json():
    return copy.deepcopy(INVERTERS_JSON)


@pytest.fixture
def envoy_routes(home_json, inverters_json):
    return {
        '/installer/setup/home': make_response(401, headers={'WWW-Authenticate': DIGEST_CHALLENGE}),
        '/home.json': make_response(200, home_json),
        '/api/v1/production/inverters': make_response(200, inverters_json),
    }


@pytest.fixture
def zones():
    return list(TEST_ZONES)


@pytest.fixture(name="response")
def fixture_response():
    return make_response


@pytest.fixture(name="session_for")
def fixture_session_for():
    return make_session
