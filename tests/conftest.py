import socket
from collections import namedtuple

import psutil
import pytest

from lbdemo.addresses import LocalAddressLister
from lbdemo.config import Settings
from lbdemo.main import create_app
from lbdemo.models import AppState

Addr = namedtuple("Addr", "family address netmask broadcast ptp")


def addr(family, address):
    return Addr(family, address, None, None, None)


class CountingEnumerator:
    """Stands in for ``psutil.net_if_addrs`` and counts calls."""

    def __init__(self, interfaces=None, fail_times=0):
        self.interfaces = interfaces if interfaces is not None else {
            "lo": [addr(socket.AF_INET, "127.0.0.1"), addr(socket.AF_INET6, "::1")],
            "eth0": [
                addr(psutil.AF_LINK, "02:42:ac:11:00:02"),
                addr(socket.AF_INET, "10.0.1.5"),
                addr(socket.AF_INET6, "fe80::42:acff:fe11:2%eth0"),
            ],
            "docker0": [addr(socket.AF_INET, "172.17.0.1")],
        }
        self.fail_times = fail_times
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise OSError("getifaddrs failed")
        return self.interfaces


class StubProbe:
    def __init__(self, az="ap-northeast-1a"):
        self.az = az
        self.calls = 0

    def availability_zone(self):
        self.calls += 1
        return self.az


@pytest.fixture
def enumerator():
    return CountingEnumerator()


@pytest.fixture
def probe():
    return StubProbe()


@pytest.fixture
def state():
    return AppState(h3_color="63, 177, 12")


@pytest.fixture
def app(state, enumerator, probe):
    return create_app(
        settings=Settings(h3_color=state.h3_color),
        state=state,
        lister=LocalAddressLister(enumerator),
        probe=probe,
        warm=False,
    )
