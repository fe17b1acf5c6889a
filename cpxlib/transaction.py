"""
Transaction Payloads
********************

Serialization of transfer transactions into the hex string signed by the device.

The fields are written in this order, without separators::

    version(8) | type(2) | toScriptHash(40) | fromScriptHash(40) | amount(2+2n)
    | nonce(16) | data(2+2n or "00") | gasPrice(2+2n) | gasLimit(2+2n)

Once signed, ``signatureLength(2) | signature(128)`` is appended.
"""

import struct
from dataclasses import dataclass, field
from typing import Union

from .amount import FixedNumber, get_hex_from_bytes
from .common import TxType, Version
from .errors import EncodingError
from .key import CPXKey


MAX_NONCE = (1 << 64) - 1
SIGNATURE_LEN = 64


def _code(value: Union[Version, TxType, str], width: int, name: str) -> str:
    code = value.value if isinstance(value, (Version, TxType)) else value
    try:
        bytes.fromhex(code)
    except (TypeError, ValueError):
        raise EncodingError(f"{name} must be a hex string, got {code!r}")
    if len(code) != width:
        raise EncodingError(f"{name} must be {width} hex digits, got {code!r}")
    return code.lower()


@dataclass(frozen=True)
class TransactionPayload:
    """
    A transfer from one key to another.

    ``data`` of a single byte is written exactly like no data at all, as ``00``.
    """
    version: Union[Version, str]
    tx_type: Union[TxType, str]
    from_key: CPXKey
    to_key: CPXKey
    amount: FixedNumber
    nonce: int
    data: bytes = b""
    gas_price: FixedNumber = field(default_factory=lambda: FixedNumber(0))
    gas_limit: FixedNumber = field(default_factory=lambda: FixedNumber(0))

    def __post_init__(self) -> None:
        _code(self.version, 8, "version")
        _code(self.tx_type, 2, "type")
        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int) or not 0 <= self.nonce <= MAX_NONCE:
            raise EncodingError(f"Nonce must be an unsigned 64 bit integer, got {self.nonce!r}")
        if not isinstance(self.data, (bytes, bytearray)):
            raise EncodingError("Attached data must be bytes")

    def data_hex(self) -> str:
        if len(self.data) > 1:
            return get_hex_from_bytes(bytes(self.data))
        return "00"

    def to_hex(self) -> str:
        return "".join([
            _code(self.version, 8, "version"),
            _code(self.tx_type, 2, "type"),
            self.to_key.get_script_hash().hex(),
            self.from_key.get_script_hash().hex(),
            self.amount.to_hex(),
            struct.pack(">Q", self.nonce).hex(),
            self.data_hex(),
            self.gas_price.to_hex(),
            self.gas_limit.to_hex(),
        ])


def attach_signature(tx_hex: str, signature: str) -> str:
    """
    Append a signature and its length to a serialized transaction.

    :param tx_hex: The serialized transaction, including any caller appended fields
    :param signature: The 64 byte ``r || s`` signature as hex
    :return: The signed transaction as a hex string
    """
    if len(signature) != SIGNATURE_LEN * 2:
        raise EncodingError(f"Signature must be {SIGNATURE_LEN} bytes, got {len(signature) // 2}")
    return tx_hex + get_hex_from_bytes(bytes.fromhex(signature))
