from __future__ import annotations

import ipaddress
import socket
import threading
from typing import Callable, Dict, List, Optional, Sequence

import psutil

from .logging_setup import get_logger

logger = get_logger(__name__)

InterfaceEnumerator = Callable[[], Dict[str, Sequence]]


def ipv4_of(family: int, address: str) -> Optional[str]:
    """Return the dotted IPv4 form of a non-loopback address, else ``None``."""
    if family == socket.AF_INET:
        ip = ipaddress.IPv4Address(address)
    elif family == socket.AF_INET6:
        # Zone suffix ("fe80::1%eth0") is not accepted by ipaddress
        mapped = ipaddress.IPv6Address(address.split("%", 1)[0]).ipv4_mapped
        if mapped is None:
            return None
        ip = mapped
    else:
        return None
    if ip.is_loopback:
        return None
    return str(ip)


def format_addresses(ips: List[str]) -> str:
    return "[" + " ".join(ips) + "]"


class LocalAddressLister:
    """Lists the host's non-loopback IPv4 addresses, computed once per process.

    A failed enumeration is not cached so the next caller retries; a
    successful one is cached even when it finds nothing.
    """

    def __init__(self, enumerate_interfaces: InterfaceEnumerator = psutil.net_if_addrs) -> None:
        self._enumerate = enumerate_interfaces
        self._cached = ""
        self._lock = threading.Lock()

    def local_addresses(self) -> str:
        if self._cached:
            return self._cached
        try:
            interfaces = self._enumerate()
        except OSError as exc:
            logger.warning("ERROR - interface enumeration failed: %s", exc)
            return ""
        ips: List[str] = []
        for addrs in interfaces.values():
            for addr in addrs:
                try:
                    ip = ipv4_of(addr.family, addr.address)
                except ValueError:
                    continue
                if ip is not None:
                    ips.append(ip)
        with self._lock:
            if not self._cached:
                self._cached = format_addresses(ips)
            return self._cached
