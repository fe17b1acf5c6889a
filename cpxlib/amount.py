"""
Fixed Point Amounts
*******************

Quantities such as the transferred amount, the gas price and the gas limit travel as
integers: the decimal amount multiplied by one of the :class:`~cpxlib.common.Fraction` scales.
On the wire each integer is written as a length byte followed by its big-endian bytes.
"""

from dataclasses import dataclass
from decimal import (
    Decimal,
    InvalidOperation,
    ROUND_DOWN,
    localcontext,
)
from typing import (
    Tuple,
    Union,
)

from .common import Fraction
from .errors import EncodingError


AmountLike = Union[int, float, str, Decimal]

MAX_VAR_BYTES = 0xff


def get_hex_from_bytes(data: bytes) -> str:
    """
    Serialize bytes with a single length byte in front of them.

    :param data: The bytes to serialize
    :return: The length prefixed bytes as a hex string
    :raises: EncodingError: if there are more than 255 bytes
    """
    if len(data) > MAX_VAR_BYTES:
        raise EncodingError(f"Cannot length prefix {len(data)} bytes, at most {MAX_VAR_BYTES} are allowed")
    return "{:02x}{}".format(len(data), data.hex())


def int_to_bytes(n: int) -> bytes:
    """
    Minimal two's complement big-endian encoding of a non-negative integer.

    A zero byte is kept in front whenever the most significant bit of the magnitude is set,
    and zero is encoded as a single zero byte.
    """
    if n < 0:
        raise EncodingError(f"Cannot encode negative value {n}")
    return n.to_bytes(n.bit_length() // 8 + 1, byteorder="big")


def scale_amount(amount: AmountLike, fraction: Union[Fraction, int] = Fraction.P) -> int:
    """
    Multiply a decimal amount by a scale factor, truncating any fractional remainder.

    Floats are converted through their shortest string representation so that ``1.2`` scales
    to exactly ``1200000000000000000`` with :attr:`Fraction.CPX`.

    :param amount: The decimal quantity
    :param fraction: The scale factor
    :return: The raw integer
    :raises: EncodingError: if the amount is not a finite, non-negative number
    """
    scale = fraction.value if isinstance(fraction, Fraction) else fraction
    if isinstance(amount, bool) or not isinstance(scale, int) or scale <= 0:
        raise EncodingError(f"Invalid amount {amount!r} or scale {scale!r}")
    try:
        value = Decimal(repr(amount)) if isinstance(amount, float) else Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise EncodingError(f"Invalid amount {amount!r}")
    if not value.is_finite():
        raise EncodingError(f"Invalid amount {amount!r}")
    if value < 0:
        raise EncodingError(f"Amount must not be negative, got {amount!r}")

    with localcontext() as ctx:
        ctx.prec = len(value.as_tuple().digits) + len(str(scale)) + 2
        try:
            return int((value * scale).to_integral_value(rounding=ROUND_DOWN))
        except ArithmeticError:
            raise EncodingError(f"Amount {amount!r} is out of range")


@dataclass(frozen=True)
class FixedNumber:
    """
    A non-negative integer amount, already multiplied by its scale factor.
    """
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise EncodingError(f"Raw amount must be an integer, got {self.value!r}")
        if self.value < 0:
            raise EncodingError(f"Amount must not be negative, got {self.value}")

    @classmethod
    def from_amount(cls, amount: AmountLike, fraction: Union[Fraction, int] = Fraction.P) -> 'FixedNumber':
        return cls(scale_amount(amount, fraction))

    def to_hex(self) -> str:
        return get_hex_from_bytes(int_to_bytes(self.value))

    @classmethod
    def from_hex(cls, data: str) -> 'FixedNumber':
        value, consumed = decode_amount(data)
        if consumed != len(data):
            raise EncodingError(f"Trailing data after amount: {data[consumed:]}")
        return cls(value)


def encode_amount(amount: AmountLike, fraction: Union[Fraction, int] = Fraction.P) -> str:
    """
    Scale a decimal amount and serialize it as a length prefixed hex string.
    """
    return FixedNumber.from_amount(amount, fraction).to_hex()


def decode_amount(data: str, offset: int = 0) -> Tuple[int, int]:
    """
    Read one length prefixed amount out of a hex string.

    :param data: Hex string containing the amount
    :param offset: Position of the length byte, in hex digits
    :return: The raw integer and the offset just past the amount
    :raises: EncodingError: if the hex string is truncated or invalid
    """
    try:
        length = int(data[offset:offset + 2], 16)
        end = offset + 2 + length * 2
        if len(data) < end:
            raise EncodingError(f"Amount at offset {offset} is truncated")
        raw = bytes.fromhex(data[offset + 2:end])
    except ValueError:
        raise EncodingError(f"Invalid amount hex at offset {offset}")
    return int.from_bytes(raw, byteorder="big"), end
