"""
Ledger Devices
**************

A single exclusive connection to a Ledger running the CPX application.
"""

import builtins
import enum
import logging
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    Set,
    Union,
)

from ..errors import (
    VALID_STATUS,
    CPXError,
    DeviceConnectionError,
    DeviceNotFoundError,
    EmptyDataError,
    EncodingError,
    MalformedSignatureError,
    TransportUnsupportedError,
    status_to_error,
)
from .command_builder import (
    CPXCommandBuilder,
    InsType,
    assemble_signature,
    bip44,
    chunkify,
)
from .ledgercomm import Transport

logger = logging.getLogger(__name__)

# Response of get public key starts with the uncompressed key
PUBLIC_KEY_HEX_LEN = 130

# Paths with a live connection in this process
_live_paths: Set[str] = set()


class LinkState(enum.Enum):
    UNCONNECTED = 0
    OPENING = 1
    CONNECTED = 2
    CLOSED = 3


class CPXLedger(object):
    """
    Bundles the Ledger interaction functionality.

    Use it as a context manager, or call :meth:`close` on every exit path,
    so the device is released for other processes.
    Only one request is ever in flight; a link must not be shared between threads.
    """

    def __init__(self, path: str, transport: Transport) -> None:
        """
        :param path: Path to the device as returned by :meth:`list`
        :param transport: The transport able to reach the device
        """
        self.path = path
        self.transport = transport
        self.state = LinkState.UNCONNECTED
        self.builder = CPXCommandBuilder()

    @classmethod
    def init(cls, transport: Transport) -> 'CPXLedger':
        """
        List the devices and open a connection with the first one.

        :raises: TransportUnsupportedError: if the host cannot use the transport
        :raises: DeviceNotFoundError: if no device is connected
        """
        if not transport.is_supported():
            raise TransportUnsupportedError()
        paths = cls.list(transport)
        if len(paths) == 0:
            raise DeviceNotFoundError()
        return cls(paths[0], transport).open()

    @staticmethod
    def list(transport: Transport) -> List[str]:
        return list(transport.list())

    @property
    def connected(self) -> bool:
        return self.state == LinkState.CONNECTED

    def open(self) -> 'CPXLedger':
        """
        Open a connection with the selected Ledger.

        :return: this link, connected
        """
        if self.connected:
            return self
        if not self.transport.is_supported():
            raise TransportUnsupportedError()
        if self.path in _live_paths:
            raise DeviceConnectionError(f"Device {self.path} is already open")
        self.state = LinkState.OPENING
        try:
            self.transport.open(self.path)
        except CPXError:
            self.state = LinkState.UNCONNECTED
            raise
        except (OSError, ValueError) as e:
            self.state = LinkState.UNCONNECTED
            raise DeviceConnectionError(f"Unable to open {self.path}: {e}")
        _live_paths.add(self.path)
        self.state = LinkState.CONNECTED
        logger.debug("Opened %s", self.path)
        return self

    def send(self, cla: int, ins: Union[int, InsType], p1: int = 0, p2: int = 0,
             cdata: bytes = b"", status_list: Sequence[int] = (VALID_STATUS,)) -> bytes:
        """
        Send one command to the Ledger and wait for its answer.

        :param cla: Instruction class
        :param ins: Instruction code
        :param p1: First instruction parameter
        :param p2: Second instruction parameter
        :param cdata: Command payload
        :param status_list: Status words accepted as success
        :return: The response data
        :raises: DeviceStatusError: the error matching the status word when it is not accepted
        """
        if not self.connected:
            raise DeviceConnectionError("Ledger connection is not open")
        try:
            sw, data = self.transport.send(cla, ins, p1, p2, cdata)
        except CPXError:
            raise
        except OSError as e:
            raise DeviceConnectionError(f"Communication with the Ledger failed: {e}")
        if sw not in status_list:
            logger.debug("Status %04x rejected for INS %02x", sw, int(ins))
            raise status_to_error(sw)
        return data

    def _send_apdu(self, apdu: Dict[str, Any]) -> bytes:
        return self.send(**apdu)

    def close(self) -> None:
        """
        Close the connection between the Ledger and the host. Does nothing when not connected.
        """
        if self.state not in (LinkState.CONNECTED, LinkState.OPENING):
            return
        try:
            self.transport.close()
        except OSError as e:
            raise DeviceConnectionError(f"Unable to close {self.path}: {e}")
        finally:
            _live_paths.discard(self.path)
            self.state = LinkState.CLOSED
            logger.debug("Closed %s", self.path)

    def __enter__(self) -> 'CPXLedger':
        return self.open()

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        try:
            self.close()
        except DeviceConnectionError as e:
            # The error raised inside the block wins over a failed close
            if exc_type is None:
                raise
            logger.debug("%s", e.get_msg())

    def get_public_key(self, acct: int = 0) -> Dict[str, Any]:
        """
        Retrieve the public key of an account from the Ledger.

        :param acct: Account that you want to retrieve the public key from
        :return: ``{"account": <acct>, "key": <uncompressed public key hex>}``
        """
        res = self._send_apdu(self.builder.get_public_key(acct))
        return {"account": acct, "key": res.hex()[:PUBLIC_KEY_HEX_LEN]}

    def get_public_keys(self, acct: int = 0, batch_size: int = 10) -> List[Dict[str, Any]]:
        """
        Retrieve the public keys of `batch_size` consecutive accounts, starting at `acct`.
        """
        keys: List[Dict[str, Any]] = []
        while len(keys) < batch_size:
            keys.append(self.get_public_key(acct + len(keys)))
        return keys

    def get_signature(self, data: str, acct: int = 0) -> str:
        """
        Get the signature of `data` from the Ledger using `acct`.

        The data, followed by the account derivation path, is sent in chunks of
        at most 255 bytes. If any chunk fails the whole exchange must be restarted.

        :param data: Hex string to sign
        :param acct: Account to sign with
        :return: The 64 byte ``r || s`` signature as hex
        """
        if not data:
            raise EmptyDataError("Invalid data provided: nothing to sign")
        try:
            bytes.fromhex(data)
        except ValueError:
            raise EncodingError("Data to sign must be an even length hex string")

        chunks = list(chunkify(data + bip44(acct)))
        if not chunks:
            raise EmptyDataError("Invalid data provided: nothing to sign")

        response: Optional[bytes] = None
        for i, (is_last, chunk) in builtins.enumerate(chunks):
            logger.debug("Sending chunk %d of %d", i + 1, len(chunks))
            response = self._send_apdu(self.builder.sign(chunk, is_last))

        if not response:
            raise MalformedSignatureError("No more data but Ledger did not return signature!")
        return assemble_signature(response).to_hex()

    def get_device_info(self) -> Dict[str, Any]:
        if not self.connected:
            raise DeviceConnectionError("Ledger connection is not open")
        try:
            return self.transport.device_info()
        except OSError as e:
            raise DeviceConnectionError(f"Unable to read device information: {e}")


def enumerate(transport: Transport) -> List[Dict[str, Any]]:
    results = []
    if not transport.is_supported():
        return results
    for path in CPXLedger.list(transport):
        results.append({"type": "ledger", "path": path})
    return results
