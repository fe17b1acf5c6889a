"""ledgercomm.interfaces.hid_device module."""

from typing import Any, Dict, List, Optional, Tuple

try:
    import hid
except ImportError:
    hid = None

from .comm import Comm
from ..log import LOG

LEDGER_VENDOR_ID = 0x2C97


class HID(Comm):
    """HID class.

    Mainly used to communicate with Nano S/X through USB.

    Parameters
    ----------
    vendor_id: int
        Vendor ID of the device. Default to Ledger Vendor ID 0x2C97.

    Attributes
    ----------
    device : hid.device
        HID device connection.
    path : Optional[bytes]
        Path of the HID device.
    __opened : bool
        Whether the connection to the HID device is opened or not.

    """

    def __init__(self, vendor_id: int = LEDGER_VENDOR_ID) -> None:
        """Init constructor of HID."""
        self.device = None
        self.path: Optional[bytes] = None
        self.__opened: bool = False
        self.vendor_id: int = vendor_id

    def is_supported(self) -> bool:
        return hid is not None

    def open(self, path: str) -> None:
        """Open connection to the HID device at `path`."""
        if not self.__opened:
            self.path = path.encode()
            self.device = hid.device()
            self.device.open_path(self.path)
            self.device.set_nonblocking(True)
            self.__opened = True

    def enumerate_devices(self) -> List[str]:
        """Enumerate HID devices to find Nano S/X.

        Returns
        -------
        List[str]
            List of paths to HID devices which should be Ledger devices.

        """
        devices: List[str] = []

        for hid_device in hid.enumerate(self.vendor_id, 0):
            if (hid_device.get("interface_number") == 0 or
                    # MacOS specific
                    hid_device.get("usage_page") == 0xffa0):
                devices.append(hid_device["path"].decode())

        return devices

    def send(self, data: bytes) -> int:
        """Send `data` through HID device `self.device`.

        Parameters
        ----------
        data : bytes
            Bytes of data to send.

        Returns
        -------
        int
            Total length of data sent to the device.

        """
        if not data:
            raise ValueError("Can't send empty data!")

        LOG.debug("=> %s", data.hex())

        data = int.to_bytes(len(data), 2, byteorder="big") + data
        offset: int = 0
        seq_idx: int = 0
        length: int = 0

        while offset < len(data):
            # Header: channel (0x0101), tag (0x05), sequence index
            header: bytes = b"\x01\x01\x05" + seq_idx.to_bytes(2, byteorder="big")
            data_chunk: bytes = (header +
                                 data[offset:offset + 64 - len(header)])

            self.device.write(b"\x00" + data_chunk)
            length += len(data_chunk) + 1
            offset += 64 - len(header)
            seq_idx += 1

        return length

    def recv(self) -> Tuple[int, bytes]:
        """Receive data through HID device `self.device`.

        Blocking IO.

        Returns
        -------
        Tuple[int, bytes]
            A pair (sw, rdata) containing the status word and response data.

        """
        seq_idx: int = 0
        self.device.set_nonblocking(False)
        data_chunk: bytes = bytes(self.device.read(64 + 1))
        self.device.set_nonblocking(True)

        if (data_chunk[:2] != b"\x01\x01" or data_chunk[2] != 5 or
                data_chunk[3:5] != seq_idx.to_bytes(2, byteorder="big")):
            raise IOError(f"Unexpected HID frame: {data_chunk.hex()}")

        data_len: int = int.from_bytes(data_chunk[5:7], byteorder="big")
        data: bytes = data_chunk[7:]

        while len(data) < data_len:
            seq_idx += 1
            read_bytes = bytes(self.device.read(64 + 1, timeout_ms=1000))
            if not read_bytes:
                raise IOError("Timed out waiting for the rest of the HID response")
            if read_bytes[3:5] != seq_idx.to_bytes(2, byteorder="big"):
                raise IOError(f"Unexpected HID frame: {read_bytes.hex()}")
            data += read_bytes[5:]

        sw: int = int.from_bytes(data[data_len - 2:data_len], byteorder="big")
        rdata: bytes = data[:data_len - 2]

        LOG.debug("<= %s %s", rdata.hex(), hex(sw)[2:])

        return sw, rdata

    def exchange(self, data: bytes) -> Tuple[int, bytes]:
        self.send(data)

        return self.recv()  # blocking IO

    def device_info(self) -> Dict[str, Any]:
        return {
            "path": self.path.decode() if self.path else None,
            "manufacturer": self.device.get_manufacturer_string(),
            "product": self.device.get_product_string(),
            "serial_number": self.device.get_serial_number_string(),
        }

    def close(self) -> None:
        """Close connection to HID device `self.device`."""
        if self.__opened:
            self.device.close()
            self.__opened = False
