"""ledgercomm.transport module."""

import enum
import logging
import struct
from typing import Any, Dict, List, Optional, Tuple, Union, cast

from .interfaces.comm import Comm
from .interfaces.hid_device import HID
from .interfaces.tcp_client import TCPClient
from .log import LOG
from ...errors import BadArgumentError, PayloadTooLargeError

MAX_APDU_DATA_LEN = 0xff


class TransportType(enum.Enum):
    """Type of interface available."""

    HID = 1
    TCP = 2


class Transport:
    """Transport class to send APDUs.

    Allow to communicate using HID device such as Nano S/X or through TCP
    socket with the Speculos emulator.

    Parameters
    ----------
    interface : str
        Either "hid" or "tcp" for the underlying communication interface.
    server : str
        IP adress of the TCP server if interface is "tcp".
    port : int
        Port of the TCP server if interface is "tcp".
    debug : bool
        Whether you want debug logs or not.
    com : Optional[Comm]
        Already built communication interface, used instead of `interface`.

    Attributes
    ----------
    com : Comm
        Communication interface to send/receive APDUs.

    """

    def __init__(self,
                 interface: str = "hid",
                 server: str = "127.0.0.1",
                 port: int = 9999,
                 debug: bool = False,
                 com: Optional[Comm] = None) -> None:
        """Init constructor of Transport."""
        if debug:
            LOG.setLevel(logging.DEBUG)

        if com is not None:
            self.com: Comm = com
            return

        try:
            transport_type = TransportType[interface.upper()]
        except KeyError as exc:
            raise BadArgumentError(f"Unknown interface '{interface}'!") from exc

        self.com = (TCPClient(server=server, port=port)
                    if transport_type == TransportType.TCP
                    else HID())

    @classmethod
    def for_path(cls, path: str, debug: bool = False) -> "Transport":
        """Build the transport able to reach `path`, ``tcp:<server>:<port>`` being the emulator."""
        if path.startswith("tcp:"):
            server, sep, port = path[len("tcp:"):].rpartition(":")
            if not sep or not server or not port.isdigit():
                raise BadArgumentError(f"Invalid emulator path '{path}', expected tcp:<server>:<port>")
            return cls("tcp", server=server.strip("[]"), port=int(port), debug=debug)
        return cls("hid", debug=debug)

    def is_supported(self) -> bool:
        return self.com.is_supported()

    def list(self) -> List[str]:
        return self.com.enumerate_devices()

    def open(self, path: str) -> None:
        self.com.open(path)

    @staticmethod
    def apdu_header(cla: int,
                    ins: Union[int, enum.IntEnum],
                    p1: int = 0,
                    p2: int = 0,
                    lc: int = 0) -> bytes:
        """Pack the APDU header as bytes.

        Parameters
        ----------
        cla : int
            Instruction class: CLA (1 byte)
        ins : Union[int, IntEnum]
            Instruction code: INS (1 byte)
        p1 : int
            Instruction parameter: P1 (1 byte).
        p2 : int
            Instruction parameter: P2 (1 byte).
        lc : int
            Number of bytes in the payload: Lc (1 byte).

        Returns
        -------
        bytes
            APDU header packed with parameters.

        """
        ins = cast(int, ins.value) if isinstance(ins, enum.IntEnum) else cast(int, ins)

        try:
            return struct.pack("BBBBB", cla, ins, p1, p2, lc)
        except struct.error as exc:
            raise BadArgumentError("APDU header requires 4 bytes") from exc

    def send(self,
             cla: int,
             ins: Union[int, enum.IntEnum],
             p1: int = 0,
             p2: int = 0,
             cdata: bytes = b"") -> Tuple[int, bytes]:
        """Send one APDU and wait for its response.

        Returns
        -------
        Tuple[int, bytes]
            A pair (sw, rdata) for the status word (2 bytes represented
            as int) and the reponse data (bytes of variable lenght).

        """
        if len(cdata) > MAX_APDU_DATA_LEN:
            raise PayloadTooLargeError(sw=None)

        header: bytes = Transport.apdu_header(cla, ins, p1, p2, len(cdata))

        return self.com.exchange(header + cdata)

    def device_info(self) -> Dict[str, Any]:
        return self.com.device_info()

    def close(self) -> None:
        self.com.close()
