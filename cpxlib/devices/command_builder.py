import enum
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, Tuple

from ..errors import BadArgumentError, MalformedSignatureError


BIP44_PATH = '8000002C' + '80000378' + '80000000' + '00000000'

# Largest APDU payload, in hex digits
CHUNK_LEN = 510

INTEGER_LEN = 32


def bip44(acct: int = 0) -> str:
    """
    Derivation path of an account as a hex string: ``m/44'/888'/0'/0/<acct>``.
    """
    if isinstance(acct, bool) or not isinstance(acct, int) or not 0 <= acct <= 0xffffffff:
        raise BadArgumentError(f"Invalid account {acct!r}")
    return BIP44_PATH + "{:08x}".format(acct)


def chunkify(data: str, chunk_len: int = CHUNK_LEN) -> Iterator[Tuple[bool, str]]:
    """
    Split a hex string in pieces of at most `chunk_len` digits.

    :return: Pairs of (is_last, chunk), nothing for an empty string
    """
    offsets = range(0, len(data), chunk_len)
    for i, offset in enumerate(offsets):
        yield i == len(offsets) - 1, data[offset:offset + chunk_len]


class InsType(enum.IntEnum):
    SIGN = 0x02
    GET_PUBLIC_KEY = 0x04


class P1(enum.IntEnum):
    MORE = 0x00
    LAST = 0x80


class CPXCommandBuilder:
    """APDU command builder for the CPX application."""

    CLA: int = 0x80

    def serialize(self, ins: InsType, p1: int = 0, p2: int = 0, cdata: bytes = b"") -> dict:
        return {
            "cla": self.CLA,
            "ins": ins,
            "p1": p1,
            "p2": p2,
            "cdata": cdata,
        }

    def get_public_key(self, acct: int = 0) -> dict:
        return self.serialize(InsType.GET_PUBLIC_KEY, cdata=bytes.fromhex(bip44(acct)))

    def sign(self, chunk: str, is_last: bool) -> dict:
        p1 = P1.LAST if is_last else P1.MORE
        return self.serialize(InsType.SIGN, p1=p1, cdata=bytes.fromhex(chunk))


@dataclass(frozen=True)
class SigningResponse:
    """The two integers of a signature, each as 32 big-endian bytes."""
    r: bytes
    s: bytes

    def to_hex(self) -> str:
        return (self.r + self.s).hex()


def _normalize(value: bytes) -> bytes:
    # Leading bytes beyond 32 are dropped without checking they are zero
    return value.rjust(INTEGER_LEN, b"\x00")[-INTEGER_LEN:]


def _read_integer(stream: BytesIO) -> bytes:
    tag = stream.read(1)
    length = stream.read(1)
    if len(tag) != 1 or len(length) != 1:
        raise MalformedSignatureError("Signature is truncated")
    value = stream.read(length[0])
    if len(value) != length[0]:
        raise MalformedSignatureError("Signature is truncated")
    return value


def assemble_signature(response: bytes) -> SigningResponse:
    """
    Parse the DER signature returned by the device.

    The first byte is the format, usually 0x30 (SEQ) or 0x31 (SET), and the
    second one the total length. Both integers follow, each written as a type
    byte, a length byte and the data itself.
    """
    stream = BytesIO(response)
    if len(stream.read(2)) != 2:
        raise MalformedSignatureError("Signature is truncated")
    r = _read_integer(stream)
    s = _read_integer(stream)
    return SigningResponse(_normalize(r), _normalize(s))
