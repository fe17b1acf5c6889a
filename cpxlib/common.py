"""
Common Classes and Utilities
****************************
"""

import hashlib

from enum import Enum

from typing import Union


class Fraction(Enum):
    """
    Scale factors used to turn a decimal quantity into the integer carried on the wire
    """
    P = 1
    KP = 10 ** 3
    MP = 10 ** 6
    GP = 10 ** 9
    KGP = 10 ** 12
    MGP = 10 ** 15
    CPX = 10 ** 18

    def __str__(self) -> str:
        return str(self.name).lower()

    def __repr__(self) -> str:
        return str(self)

    @staticmethod
    def argparse(s: str) -> Union['Fraction', str]:
        try:
            return Fraction[s.upper()]
        except KeyError:
            return s


class Version(Enum):
    """
    Transaction format version, as a 4 byte hex code
    """
    ONE = "00000001"


class TxType(Enum):
    """
    Transaction type, as a 1 byte hex code
    """
    MINER = "00"
    TRANSFER = "01"
    DEPLOY = "02"
    CALL = "03"
    REFUND = "04"
    SCHEDULE = "05"

    def __str__(self) -> str:
        return str(self.name).lower()

    def __repr__(self) -> str:
        return str(self)

    @staticmethod
    def argparse(s: str) -> Union['TxType', str]:
        try:
            return TxType[s.upper()]
        except KeyError:
            return s


def sha256(s: bytes) -> bytes:
    """
    Perform a single SHA256 hash.

    :param s: Bytes to hash
    :return: The hash
    """
    return hashlib.new('sha256', s).digest()


def ripemd160(s: bytes) -> bytes:
    """
    Perform a single RIPEMD160 hash.

    :param s: Bytes to hash
    :return: The hash
    """
    return hashlib.new('ripemd160', s).digest()


def hash256(s: bytes) -> bytes:
    """
    Perform a double SHA256 hash.

    :param s: Bytes to hash
    :return: The hash
    """
    return sha256(sha256(s))


def hash160(s: bytes) -> bytes:
    """
    perform a single SHA256 hash followed by a single RIPEMD160 hash on the result of the SHA256 hash.

    :param s: Bytes to hash
    :return: The hash
    """
    return ripemd160(sha256(s))
