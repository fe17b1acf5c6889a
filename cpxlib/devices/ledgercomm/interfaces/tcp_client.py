"""ledgercomm.interfaces.tcp_client module."""

import socket
from typing import Any, Dict, List, Tuple

from .comm import Comm
from ..log import LOG


class TCPClient(Comm):
    """TCPClient class.

    Mainly used to connect to the TCP server of the Speculos emulator.

    Parameters
    ----------
    server : str
        IP address of the TCP server.
    port : int
        Port of the TCP server.

    Attributes
    ----------
    socket : socket.socket
        TCP socket to communicate with the server, once opened.
    __opened : bool
        Whether the TCP socket is opened or not.

    """

    def __init__(self, server: str = "127.0.0.1", port: int = 9999) -> None:
        """Init constructor of TCPClient."""
        self.server: str = server
        self.port: int = port
        self.socket = None
        self.__opened: bool = False

    @property
    def path(self) -> str:
        return f"tcp:{self.server}:{self.port}"

    def is_supported(self) -> bool:
        return True

    def enumerate_devices(self) -> List[str]:
        """Report the emulator if something listens on `self.server`:`self.port`."""
        try:
            with socket.create_connection((self.server, self.port), timeout=1):
                pass
        except OSError:
            return []
        return [self.path]

    def open(self, path: str) -> None:
        """Open connection to TCP socket given as ``tcp:<server>:<port>``."""
        if not self.__opened:
            server, _, port = path[len("tcp:"):].rpartition(":")
            self.server = server.strip("[]")
            self.port = int(port)
            self.socket = socket.create_connection((self.server, self.port))
            self.__opened = True

    def send(self, data: bytes) -> int:
        """Send `data`, prefixed by its 4 byte length, through `self.socket`."""
        if not data:
            raise ValueError("Can't send empty data!")

        LOG.debug("=> %s", data.hex())
        data_len: bytes = int.to_bytes(len(data), 4, byteorder="big")

        self.socket.sendall(data_len + data)
        return len(data_len) + len(data)

    def _recv_exact(self, size: int) -> bytes:
        buf = b""
        while len(buf) < size:
            chunk = self.socket.recv(size - len(buf))
            if not chunk:
                raise ConnectionError("Connection closed by the emulator")
            buf += chunk
        return buf

    def recv(self) -> Tuple[int, bytes]:
        """Receive data through TCP socket `self.socket`.

        Blocking IO.

        Returns
        -------
        Tuple[int, bytes]
            A pair (sw, rdata) containing the status word and response data.

        """
        length: int = int.from_bytes(self._recv_exact(4), byteorder="big")
        rdata: bytes = self._recv_exact(length)
        sw: int = int.from_bytes(self._recv_exact(2), byteorder="big")

        LOG.debug("<= %s %s", rdata.hex(), hex(sw)[2:])

        return sw, rdata

    def exchange(self, data: bytes) -> Tuple[int, bytes]:
        self.send(data)

        return self.recv()  # blocking IO

    def device_info(self) -> Dict[str, Any]:
        return {"path": self.path, "product": "Speculos emulator"}

    def close(self) -> None:
        """Close connection to TCP socket `self.socket`."""
        if self.__opened:
            self.socket.close()
            self.__opened = False
