#
# base58.py
# Original source: git://github.com/joric/brutus.git
# which was forked from git://github.com/samrushing/caesure.git
#
# Distributed under the MIT/X11 software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
#

from binascii import hexlify, unhexlify
from typing import List

from .common import hash256


b58_digits: str = '123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz'

def encode(b: bytes) -> str:
    """Encode bytes to a base58-encoded string"""

    # Convert big-endian bytes to integer
    n: int = int('0x0' + hexlify(b).decode('utf8'), 16)

    # Divide that integer into base58
    temp: List[str] = []
    while n > 0:
        n, r = divmod(n, 58)
        temp.append(b58_digits[r])
    res: str = ''.join(temp[::-1])

    # Encode leading zeros as base58 zeros
    pad: int = 0
    for c in b:
        if c == 0:
            pad += 1
        else:
            break
    return b58_digits[0] * pad + res

def decode(s: str) -> bytes:
    """Decode a base58-encoding string, returning bytes"""
    if not s:
        return b''

    # Convert the string to an integer
    n: int = 0
    for c in s:
        n *= 58
        if c not in b58_digits:
            raise ValueError('Character %r is not a valid base58 character' % c)
        digit = b58_digits.index(c)
        n += digit

    # Convert the integer to bytes
    h: str = '%x' % n
    if len(h) % 2:
        h = '0' + h
    res = unhexlify(h.encode('utf8')) if n else b''

    # Add padding back.
    pad = 0
    for c in s:
        if c == b58_digits[0]:
            pad += 1
        else:
            break
    return b'\x00' * pad + res

def encode_check(b: bytes) -> str:
    """Encode bytes followed by the first 4 bytes of their double SHA256"""
    return encode(b + hash256(b)[0:4])

def decode_check(s: str) -> bytes:
    """Decode a base58check string, verifying and stripping the checksum"""
    data = decode(s)
    if len(data) < 4:
        raise ValueError('Base58check string is too short')
    payload, checksum = data[:-4], data[-4:]
    if hash256(payload)[0:4] != checksum:
        raise ValueError('Invalid base58check checksum')
    return payload

def to_address(b: bytes, version: bytes) -> str:
    return encode_check(version + b)
