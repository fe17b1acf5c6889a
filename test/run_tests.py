#! /usr/bin/env python3

import argparse
import sys
import unittest

from test_amount import TestFixedNumber
from test_base58 import TestBase58
from test_commands import TestCLI, TestCommands
from test_key import TestCPXKey
from test_ledger import TestAssembleSignature, TestChunkify, TestCPXLedger
from test_transaction import TestTransactionPayload
from test_transport import TestHID, TestTCPClient, TestTransport

parser = argparse.ArgumentParser(description='Run the automated tests')
parser.add_argument('--no-device', dest='device', help='Do not run the tests against the scripted device', action='store_false')
parser.add_argument('--verbose', '-v', help='Print the name of each test', action='store_true')
parser.set_defaults(device=True)
args = parser.parse_args()

# Run tests
success = True
suite = unittest.TestSuite()
loader = unittest.TestLoader()
for case in [TestBase58, TestFixedNumber, TestCPXKey, TestTransactionPayload]:
    suite.addTest(loader.loadTestsFromTestCase(case))
if args.device:
    for case in [TestChunkify, TestAssembleSignature, TestCPXLedger, TestHID, TestTCPClient, TestTransport, TestCommands, TestCLI]:
        suite.addTest(loader.loadTestsFromTestCase(case))
success = unittest.TextTestRunner(stream=sys.stdout, verbosity=2 if args.verbose else 1).run(suite).wasSuccessful()
sys.exit(not success)
