"""Wi-Fi attachment probe based on the system's network tools."""

from __future__ import annotations

import subprocess
from typing import Callable, Optional

from cloudlink.config import get_settings
from cloudlink.logging_config import get_logger

logger = get_logger(__name__)


def _parse_iwgetid(output: str) -> Optional[str]:
    # SSIDs may begin or end with spaces
    return output.rstrip("\n") or None


def _split_terse(line: str) -> list[str]:
    """Split one line of ``nmcli -t`` output, undoing its backslash escapes."""
    fields: list[str] = []
    current: list[str] = []
    escaped = False
    for char in line:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def _parse_nmcli(output: str) -> Optional[str]:
    """Pick the active SSID from ``nmcli -t -f ACTIVE,SSID dev wifi`` output."""
    for line in output.split("\n"):
        fields = _split_terse(line)
        if len(fields) == 2 and fields[0] == "yes" and fields[1]:
            return fields[1]
    return None


_SSID_COMMANDS: list[tuple[list[str], Callable[[str], Optional[str]]]] = [
    (["iwgetid", "-r"], _parse_iwgetid),
    (["nmcli", "-t", "-f", "ACTIVE,SSID", "dev", "wifi"], _parse_nmcli),
]


def current_ssid(timeout: Optional[float] = None) -> Optional[str]:
    """Return the SSID of the Wi-Fi network the device is attached to.

    Tries each known tool in turn. Missing tools, failures and timeouts are
    logged and treated as "not attached".
    """
    if timeout is None:
        timeout = get_settings().wifi_probe_timeout

    for command, parse in _SSID_COMMANDS:
        try:
            result = subprocess.run(command, capture_output=True, text=True, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("ssid_command_failed", command=command[0], error=str(exc))
            continue
        if result.returncode != 0:
            logger.debug("ssid_command_failed", command=command[0], returncode=result.returncode)
            continue
        ssid = parse(result.stdout)
        if ssid:
            return ssid
    return None


class WifiProbe:
    """Network probe reporting attachment to a Wi-Fi network by SSID.

    Matching is exact and case-sensitive.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def __call__(self, network_id: str) -> bool:
        if not network_id:
            return False
        attached = current_ssid(self._timeout) == network_id
        logger.debug("wifi_probe_checked", network_id=network_id, attached=attached)
        return attached
