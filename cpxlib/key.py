"""
Key Classes and Utilities
*************************

Locking scripts, script hashes and addresses derived from public keys.
"""

from typing import Union

from ecdsa import NIST256p, VerifyingKey
from ecdsa.errors import MalformedPointError

from . import _base58 as base58
from .common import hash160
from .errors import InvalidKeyError


CPX_PREFIX = bytes.fromhex("0548")
SCRIPT_PREFIX = bytes.fromhex("21")
SCRIPT_POSTFIX = bytes.fromhex("ac")

COMPRESSED_KEY_LEN = 33
UNCOMPRESSED_KEY_LEN = 65


def _to_bytes(pubkey: Union[bytes, str]) -> bytes:
    if isinstance(pubkey, str):
        try:
            return bytes.fromhex(pubkey)
        except ValueError:
            raise InvalidKeyError("Public key is not a valid hex string")
    return bytes(pubkey)


def compress_pubkey(pubkey: Union[bytes, str]) -> bytes:
    """
    Convert a 65 byte uncompressed NIST P-256 public key, as returned by the device, to its 33 byte compressed form.

    :param pubkey: The uncompressed public key
    :return: The compressed public key
    :raises: InvalidKeyError: if the key is not a point on the curve
    """
    data = _to_bytes(pubkey)
    if len(data) != UNCOMPRESSED_KEY_LEN or data[0] != 0x04:
        raise InvalidKeyError(f"Expected a {UNCOMPRESSED_KEY_LEN} byte uncompressed public key")
    try:
        vk = VerifyingKey.from_string(data, curve=NIST256p)
    except MalformedPointError as e:
        raise InvalidKeyError(f"Invalid public key: {e}")
    return vk.to_string("compressed")


class CPXKey(object):
    """
    A compressed public key and the script hash and address derived from it.

    Nothing derived is cached, every call recomputes from :attr:`pubkey`.
    """

    def __init__(self, pubkey: Union[bytes, str]) -> None:
        """
        :param pubkey: The 33 byte compressed public key, as bytes or hex
        :raises: InvalidKeyError: if the key does not have the compressed length
        """
        data = _to_bytes(pubkey)
        if len(data) != COMPRESSED_KEY_LEN or data[0] not in (0x02, 0x03):
            raise InvalidKeyError(f"Expected a {COMPRESSED_KEY_LEN} byte compressed public key, got {len(data)} bytes")
        self.pubkey = data

    @classmethod
    def from_public_key(cls, pubkey: Union[bytes, str]) -> 'CPXKey':
        """
        Build a key from either a compressed or an uncompressed public key.
        """
        data = _to_bytes(pubkey)
        if len(data) == UNCOMPRESSED_KEY_LEN:
            data = compress_pubkey(data)
        return cls(data)

    def get_script(self) -> bytes:
        return SCRIPT_PREFIX + self.pubkey + SCRIPT_POSTFIX

    def get_script_hash(self) -> bytes:
        return hash160(self.get_script())

    def get_address(self) -> str:
        return base58.to_address(self.get_script_hash(), CPX_PREFIX)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CPXKey) and other.pubkey == self.pubkey

    def __hash__(self) -> int:
        return hash(self.pubkey)

    def __repr__(self) -> str:
        return f"CPXKey({self.pubkey.hex()})"


def is_valid_address(address: str) -> bool:
    """
    Check that an address carries the network version prefix, a 20 byte script hash and a valid checksum.
    """
    try:
        payload = base58.decode_check(address)
    except ValueError:
        return False
    return len(payload) == len(CPX_PREFIX) + 20 and payload.startswith(CPX_PREFIX)


def address_to_script_hash(address: str) -> bytes:
    """
    Recover the script hash from an address.

    :raises: InvalidKeyError: if the address is not valid
    """
    if not is_valid_address(address):
        raise InvalidKeyError(f"Invalid address {address}")
    return base58.decode_check(address)[len(CPX_PREFIX):]
