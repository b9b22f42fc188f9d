import abc
import logging
from typing import Any, List, Optional

from pyenvoy.auth import Credential
from pyenvoy.models import HOME_API, INVERTERS_API, InverterReading, SystemStatus, inverters_from_json

log = logging.getLogger(__name__)


class PyEnvoyBase:

    def __init__(self, url: str, username: str):
        super().__init__()
        self.url = url.rstrip('/')
        self.username = username
        self.credential: Optional[Credential] = None  # set once by authenticate()

    def api_url(self, api: str) -> str:
        if not api.startswith('/'):
            api = '/' + api
        return self.url + api

    @abc.abstractmethod
    def authenticate(self) -> Credential:
        raise NotImplementedError

    @abc.abstractmethod
    def close_session(self):
        raise NotImplementedError

    @abc.abstractmethod
    def poll(self, api: str) -> Any:
        raise NotImplementedError

    def home(self) -> SystemStatus:
        """System status from /home.json"""
        payload = self.poll(HOME_API)
        return SystemStatus.from_json(payload, HOME_API)

    def inverters(self) -> List[InverterReading]:
        """Per inverter production readings"""
        payload = self.poll(INVERTERS_API)
        readings = inverters_from_json(payload, INVERTERS_API)
        log.debug(f"Decoded {len(readings)} inverter readings")
        return readings
