"""Network attachment probes."""

from cloudlink.modules.network.probe import WifiProbe, current_ssid

__all__ = ["WifiProbe", "current_ssid"]
