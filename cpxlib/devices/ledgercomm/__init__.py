"""ledgercomm module."""

from .transport import Transport, TransportType

__all__ = ["Transport", "TransportType"]
