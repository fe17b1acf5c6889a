#! /usr/bin/env python3

"""Tests for script hashes and addresses"""

import unittest

from ecdsa import NIST256p, SigningKey

from cpxlib.errors import InvalidKeyError
from cpxlib.key import (
    CPXKey,
    address_to_script_hash,
    compress_pubkey,
    is_valid_address,
)

PRIVATE_KEY = "319c325b626dd10ae86bbfd4236dca0d93c84f72f6fbacf292cdc804ec831e9a"
COMPRESSED = "02a80e4cb0104ba07793318027181a4e34925dcca660c0937e30f5f5ab8a4a7896"
UNCOMPRESSED = ("04a80e4cb0104ba07793318027181a4e34925dcca660c0937e30f5f5ab8a4a7896"
                "ff07643aa50cf7d1b02049ee178bfe89c0b83ce4bb312813d4c3137f2ecde85a")
SCRIPT_HASH = "dbfb9804c00d94875b4300cf41b6bb18d059e661"
ADDRESS = "APN1fbsFGv4sgjktz25i5EaNKDKHeJmqkMh"


class TestCPXKey(unittest.TestCase):

    def test_address_creation(self):
        signing_key = SigningKey.from_string(bytes.fromhex(PRIVATE_KEY), curve=NIST256p)
        pub = signing_key.get_verifying_key().to_string("compressed")
        self.assertEqual(pub.hex(), COMPRESSED)

        key = CPXKey(pub)
        self.assertEqual(key.get_address(), ADDRESS)

    def test_script_hash(self):
        key = CPXKey(COMPRESSED)
        self.assertEqual(key.get_script().hex(), "21" + COMPRESSED + "ac")
        self.assertEqual(key.get_script_hash().hex(), SCRIPT_HASH)

    def test_uncompressed_device_key(self):
        self.assertEqual(compress_pubkey(UNCOMPRESSED).hex(), COMPRESSED)
        self.assertEqual(CPXKey.from_public_key(UNCOMPRESSED), CPXKey(COMPRESSED))
        self.assertEqual(CPXKey.from_public_key(COMPRESSED).get_address(), ADDRESS)

    def test_invalid_keys(self):
        for pubkey in [b"", bytes(32), bytes.fromhex(UNCOMPRESSED), "04" + COMPRESSED[2:], "zz"]:
            with self.subTest(pubkey=pubkey):
                with self.assertRaises(InvalidKeyError):
                    CPXKey(pubkey)
        with self.assertRaises(InvalidKeyError):
            compress_pubkey(COMPRESSED)
        with self.assertRaises(InvalidKeyError):
            compress_pubkey("04" + "00" * 64)

    def test_address_validation(self):
        self.assertTrue(is_valid_address(ADDRESS))
        self.assertFalse(is_valid_address(ADDRESS[:-1] + "n"))
        self.assertFalse(is_valid_address("1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2"))
        self.assertFalse(is_valid_address("not an address"))
        self.assertEqual(address_to_script_hash(ADDRESS).hex(), SCRIPT_HASH)
        with self.assertRaises(InvalidKeyError):
            address_to_script_hash("not an address")

if __name__ == "__main__":
    unittest.main()
