#! /usr/bin/env python3

"""Tests for the Ledger signing protocol, against a scripted device"""

import unittest

from cpxlib.devices.command_builder import (
    BIP44_PATH,
    assemble_signature,
    bip44,
    chunkify,
)
from cpxlib.devices.ledger import CPXLedger, LinkState
from cpxlib.errors import (
    APP_NOT_OPEN,
    MSG_TOO_BIG,
    TX_DENIED,
    TX_PARSE_ERR,
    ApplicationClosedError,
    BadArgumentError,
    DeviceConnectionError,
    DeviceNotFoundError,
    DeviceParseError,
    EmptyDataError,
    EncodingError,
    MalformedSignatureError,
    PayloadTooLargeError,
    ProtocolError,
    TransportUnsupportedError,
    UnexpectedDeviceError,
    UserDeniedError,
)

from fake_device import OK, der, fake_transport

R = bytes(range(1, 33))
S = bytes(range(101, 133))
SIGNATURE = (R + S).hex()
PUBKEY = ("04a80e4cb0104ba07793318027181a4e34925dcca660c0937e30f5f5ab8a4a7896"
          "ff07643aa50cf7d1b02049ee178bfe89c0b83ce4bb312813d4c3137f2ecde85a")


class TestChunkify(unittest.TestCase):

    def test_two_chunks(self):
        chunks = list(chunkify("ab" * 510))
        self.assertEqual(len(chunks), 2)
        self.assertEqual([is_last for is_last, _ in chunks], [False, True])
        self.assertTrue(all(len(chunk) == 510 for _, chunk in chunks))

    def test_remainder(self):
        chunks = list(chunkify("ab" * 300))
        self.assertEqual([len(chunk) for _, chunk in chunks], [510, 90])
        self.assertEqual("".join(chunk for _, chunk in chunks), "ab" * 300)

    def test_single_and_empty(self):
        self.assertEqual(list(chunkify("abcd")), [(True, "abcd")])
        self.assertEqual(list(chunkify("")), [])

    def test_bip44(self):
        self.assertEqual(bip44(0), BIP44_PATH + "00000000")
        self.assertEqual(bip44(0x1f), BIP44_PATH + "0000001f")
        self.assertEqual(len(bip44(0xffffffff)), 40)
        for acct in [-1, 2 ** 32, "1"]:
            with self.subTest(acct=acct):
                with self.assertRaises(BadArgumentError):
                    bip44(acct)


class TestAssembleSignature(unittest.TestCase):

    def test_exact_width(self):
        self.assertEqual(assemble_signature(der(R, S)).to_hex(), SIGNATURE)

    def test_short_integers_are_padded(self):
        sig = assemble_signature(der(R[2:], S[5:]))
        self.assertEqual(sig.r, b"\x00\x00" + R[2:])
        self.assertEqual(sig.s.hex(), S[5:].hex().rjust(64, "0"))
        self.assertEqual(len(sig.to_hex()), 128)

    def test_long_integers_keep_trailing_bytes(self):
        sig = assemble_signature(der(b"\x00" + R, b"\xff\xee" + S))
        self.assertEqual(sig.r, R)
        self.assertEqual(sig.s, S)

    def test_truncated(self):
        for response in [b"", b"\x30", der(R, S)[:40], b"\x30\x44\x02"]:
            with self.subTest(response=response):
                with self.assertRaises(MalformedSignatureError):
                    assemble_signature(response)


class TestCPXLedger(unittest.TestCase):

    def make_ledger(self, responses=(), **kwargs):
        transport, com = fake_transport(responses, **kwargs)
        ledger = CPXLedger.init(transport)
        self.addCleanup(ledger.close)
        return ledger, com

    def test_init_opens_first_device(self):
        ledger, com = self.make_ledger(devices=["fake:0", "fake:1"])
        self.assertEqual(ledger.path, "fake:0")
        self.assertEqual(ledger.state, LinkState.CONNECTED)
        self.assertEqual(com.path, "fake:0")

    def test_init_errors(self):
        transport, _ = fake_transport(supported=False)
        with self.assertRaises(TransportUnsupportedError):
            CPXLedger.init(transport)
        transport, _ = fake_transport(devices=[])
        with self.assertRaises(DeviceNotFoundError):
            CPXLedger.init(transport)

    def test_close_is_idempotent(self):
        transport, com = fake_transport()
        ledger = CPXLedger("fake:0", transport)
        ledger.close()
        ledger.close()
        self.assertEqual(com.close_calls, 0)

        ledger.open()
        ledger.close()
        ledger.close()
        self.assertEqual(com.close_calls, 1)
        self.assertEqual(ledger.state, LinkState.CLOSED)

    def test_close_failure(self):
        transport, com = fake_transport(close_error=OSError("unplugged"))
        ledger = CPXLedger("fake:0", transport).open()
        with self.assertRaises(DeviceConnectionError):
            ledger.close()
        self.assertEqual(ledger.state, LinkState.CLOSED)
        ledger.close()
        self.assertEqual(com.close_calls, 1)
        with CPXLedger("fake:0", fake_transport()[0]) as other:
            self.assertTrue(other.connected)

    def test_exit_keeps_block_error(self):
        transport, _ = fake_transport([(TX_DENIED, b"")], close_error=OSError("unplugged"))
        with self.assertRaises(UserDeniedError):
            with CPXLedger("fake:0", transport) as ledger:
                ledger.get_signature("00", 0)
        self.assertEqual(ledger.state, LinkState.CLOSED)

    def test_one_connection_per_path(self):
        ledger, _ = self.make_ledger()
        transport, _ = fake_transport()
        with self.assertRaises(DeviceConnectionError):
            CPXLedger(ledger.path, transport).open()
        ledger.close()
        with CPXLedger(ledger.path, transport) as other:
            self.assertTrue(other.connected)
        self.assertFalse(other.connected)

    def test_send_requires_connection(self):
        transport, _ = fake_transport()
        with self.assertRaises(DeviceConnectionError):
            CPXLedger("fake:0", transport).send(0x80, 0x04)

    def test_send_accepted_statuses(self):
        ledger, com = self.make_ledger([(0x6a80, b"\x01"), (OK, b"\x02")])
        self.assertEqual(ledger.send(0x80, 0x04, 0, 0, b"", [0x6a80, OK]), b"\x01")
        self.assertEqual(ledger.send(0x80, 0x04, 0, 0, b"\xaa"), b"\x02")
        self.assertEqual(com.apdus, [bytes.fromhex("8004000000"), bytes.fromhex("8004000001aa")])
        with self.assertRaises(BadArgumentError):
            ledger.send(0x100, 0x04)

    def test_status_words(self):
        table = {
            APP_NOT_OPEN: ApplicationClosedError,
            MSG_TOO_BIG: PayloadTooLargeError,
            TX_DENIED: UserDeniedError,
            TX_PARSE_ERR: DeviceParseError,
            0x6a80: UnexpectedDeviceError,
            0x6f00: UnexpectedDeviceError,
        }
        for sw, error in table.items():
            with self.subTest(sw=hex(sw)):
                ledger, _ = self.make_ledger([(sw, b"")])
                with self.assertRaises(error) as cm:
                    ledger.send(0x80, 0x04)
                self.assertEqual(cm.exception.sw, sw)
                ledger.close()

    def test_get_public_key(self):
        ledger, com = self.make_ledger([(OK, bytes.fromhex(PUBKEY) + b"\x90\x90")])
        self.assertEqual(ledger.get_public_key(5), {"account": 5, "key": PUBKEY})
        self.assertEqual(com.apdus[0], bytes.fromhex("8004000014" + BIP44_PATH + "00000005"))

    def test_get_public_keys(self):
        ledger, com = self.make_ledger([(OK, bytes.fromhex(PUBKEY))] * 4)
        keys = ledger.get_public_keys(3, 4)
        self.assertEqual([k["account"] for k in keys], [3, 4, 5, 6])
        self.assertEqual([apdu[-4:].hex() for apdu in com.apdus], ["00000003", "00000004", "00000005", "00000006"])

    def test_get_public_keys_large_batch(self):
        ledger, _ = self.make_ledger([(OK, bytes.fromhex(PUBKEY))] * 2000)
        self.assertEqual(len(ledger.get_public_keys(0, 2000)), 2000)

    def test_sign_single_chunk(self):
        data = "ab" * 235
        ledger, com = self.make_ledger([(OK, der(R, S))])
        self.assertEqual(ledger.get_signature(data, 2), SIGNATURE)
        self.assertEqual(len(com.apdus), 1)
        self.assertEqual(com.apdus[0][:5], bytes.fromhex("80028000ff"))
        self.assertEqual(com.apdus[0][5:].hex(), data + BIP44_PATH.lower() + "00000002")

    def test_sign_two_chunks(self):
        data = "cd" * 490
        ledger, com = self.make_ledger([(OK, b""), (OK, der(R, S))])
        self.assertEqual(ledger.get_signature(data), SIGNATURE)
        self.assertEqual([apdu[:5].hex() for apdu in com.apdus], ["80020000ff", "80028000ff"])
        self.assertEqual(b"".join(apdu[5:] for apdu in com.apdus).hex(), data + BIP44_PATH.lower() + "00000000")

    def test_sign_stops_at_failed_chunk(self):
        ledger, com = self.make_ledger([(OK, b""), (TX_DENIED, b""), (OK, der(R, S))])
        with self.assertRaises(UserDeniedError):
            ledger.get_signature("ef" * 600)
        self.assertEqual(len(com.apdus), 2)

    def test_sign_without_signature(self):
        ledger, _ = self.make_ledger([(OK, b"")])
        with self.assertRaises(MalformedSignatureError):
            ledger.get_signature("00")

    def test_sign_empty_data(self):
        ledger, com = self.make_ledger()
        with self.assertRaises(EmptyDataError):
            ledger.get_signature("")
        with self.assertRaises(ProtocolError):
            ledger.get_signature("")
        with self.assertRaises(EncodingError):
            ledger.get_signature("abc")
        self.assertEqual(com.apdus, [])

    def test_device_info(self):
        ledger, _ = self.make_ledger()
        self.assertEqual(ledger.get_device_info(), {"path": "fake:0", "product": "fake"})

if __name__ == "__main__":
    unittest.main()
