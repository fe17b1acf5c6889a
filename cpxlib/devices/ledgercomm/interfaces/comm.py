"""ledgercomm.comm module."""

from abc import ABCMeta, abstractmethod
from typing import Any, Dict, List, Tuple


class Comm(metaclass=ABCMeta):
    """Abstract class for communication interface."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether the host can use this interface at all."""
        raise NotImplementedError

    @abstractmethod
    def enumerate_devices(self) -> List[str]:
        """List the paths of the devices reachable through the interface."""
        raise NotImplementedError

    @abstractmethod
    def open(self, path: str) -> None:
        """Open the interface to the device at `path`."""
        raise NotImplementedError

    @abstractmethod
    def exchange(self, data: bytes) -> Tuple[int, bytes]:
        """Send an APDU and block until the (sw, rdata) response arrives."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Just close the interface."""
        raise NotImplementedError

    def device_info(self) -> Dict[str, Any]:
        """Describe the opened device."""
        return {}
