"""Scripted stand-in for a device connection"""

from typing import Any, Dict, List, Tuple

from cpxlib.devices.ledgercomm import Transport
from cpxlib.devices.ledgercomm.interfaces.comm import Comm

OK = 0x9000


class FakeComm(Comm):
    """Replays (sw, data) responses and records every APDU it is sent."""

    def __init__(self, responses=(), devices=("fake:0",), supported=True, close_error=None) -> None:
        self.responses: List[Tuple[int, bytes]] = list(responses)
        self.devices = list(devices)
        self.supported = supported
        self.apdus: List[bytes] = []
        self.path = None
        self.opened = False
        self.open_calls = 0
        self.close_calls = 0
        self.close_error = close_error

    def is_supported(self) -> bool:
        return self.supported

    def enumerate_devices(self) -> List[str]:
        return list(self.devices)

    def open(self, path: str) -> None:
        self.path = path
        self.opened = True
        self.open_calls += 1

    def exchange(self, data: bytes) -> Tuple[int, bytes]:
        assert self.opened
        self.apdus.append(data)
        return self.responses.pop(0)

    def close(self) -> None:
        self.opened = False
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error

    def device_info(self) -> Dict[str, Any]:
        return {"path": self.path, "product": "fake"}


def fake_transport(*args: Any, **kwargs: Any) -> Tuple[Transport, FakeComm]:
    com = FakeComm(*args, **kwargs)
    return Transport(com=com), com


def der(r: bytes, s: bytes) -> bytes:
    body = b"\x02" + bytes([len(r)]) + r + b"\x02" + bytes([len(s)]) + s
    return b"\x30" + bytes([len(body)]) + body
