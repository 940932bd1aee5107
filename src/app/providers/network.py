from typing import Protocol

from core.config import configs


class NetworkStatusProvider(Protocol):
    async def is_wifi_connected(self) -> bool:
        ...


class StaticNetworkStatus:
    """Reports a fixed connectivity answer; a server has no radio to sense."""

    def __init__(self, wifi_connected: bool = None):
        self.wifi_connected = configs.WIFI_CONNECTED if wifi_connected is None else wifi_connected

    async def is_wifi_connected(self) -> bool:
        return self.wifi_connected
