#! /usr/bin/env python3

from .commands import (
    encode_transfer,
    enumerate,
    get_device_info,
    get_public_key,
    get_public_keys,
    sign_with_ledger,
)
from .common import TxType
from .devices.ledgercomm import Transport
from .errors import (
    handle_errors,
    DEVICE_CONN_ERROR,
    HELP_TEXT,
    MISSING_ARGUMENTS,
)
from .key import CPXKey
from . import __version__

import argparse
import logging
import json
import sys

from typing import (
    Any,
    Dict,
    IO,
    List,
    NoReturn,
    Optional,
)


def enumerate_handler(args: argparse.Namespace, transport: Transport) -> List[Dict[str, Any]]:
    return enumerate(transport)

def getpubkey_handler(args: argparse.Namespace, transport: Transport) -> Dict[str, Any]:
    return get_public_key(transport, acct=args.account, device_path=args.device_path)

def getpubkeys_handler(args: argparse.Namespace, transport: Transport) -> List[Dict[str, Any]]:
    return get_public_keys(transport, acct=args.account, batch_size=args.count, device_path=args.device_path)

def getdeviceinfo_handler(args: argparse.Namespace, transport: Transport) -> Dict[str, Any]:
    return get_device_info(transport, device_path=args.device_path)

def address_handler(args: argparse.Namespace, transport: Transport) -> Dict[str, str]:
    key = CPXKey.from_public_key(args.pubkey)
    return {"address": key.get_address(), "script_hash": key.get_script_hash().hex()}

def encodetx_handler(args: argparse.Namespace, transport: Transport) -> Dict[str, str]:
    return encode_transfer(
        from_pubkey=args.from_pubkey,
        to_pubkey=args.to_pubkey,
        amount=args.amount,
        nonce=args.nonce,
        gas_price=args.gas_price,
        gas_limit=args.gas_limit,
        data=args.data,
        tx_type=args.tx_type,
    )

def signtx_handler(args: argparse.Namespace, transport: Transport) -> Dict[str, str]:
    return {"tx": sign_with_ledger(transport, args.tx, acct=args.account, device_path=args.device_path)}

class CPXHelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter):
    pass

class CPXArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.formatter_class = CPXHelpFormatter

    def print_usage(self, file: Optional[IO[str]] = None) -> None:
        if file is None:
            file = sys.stderr
        super().print_usage(file)

    def print_help(self, file: Optional[IO[str]] = None) -> None:
        if file is None:
            file = sys.stderr
        super().print_help(file)
        error = {'error': 'Help text requested', 'code': HELP_TEXT}
        print(json.dumps(error))

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        args = {'prog': self.prog, 'message': message}
        error = {'error': '%(prog)s: error: %(message)s' % args, 'code': MISSING_ARGUMENTS}
        print(json.dumps(error))
        self.exit(2)

def get_parser() -> CPXArgumentParser:
    parser = CPXArgumentParser(description='CPX Ledger interface, version {}.\nEncode transfers and sign them with a Ledger device. Responses are in JSON format.'.format(__version__))
    parser.add_argument('--device-path', '-d', help='Specify the device path of the device to connect to. tcp:<host>:<port> selects the emulator. If not given, the first device found is used.')
    parser.add_argument('--transport', help='Transport used to find devices when no device path is given', choices=['hid', 'tcp'], default='hid')
    parser.add_argument('--server', help='Emulator address for the tcp transport', default='127.0.0.1')
    parser.add_argument('--port', help='Emulator port for the tcp transport', type=int, default=9999)
    parser.add_argument('--debug', help='Print debug statements', action='store_true')
    parser.add_argument('--version', action='version', version='%(prog)s {}'.format(__version__))

    subparsers = parser.add_subparsers(description='Commands', dest='command')
    # work-around to make subparser required
    subparsers.required = True

    enumerate_parser = subparsers.add_parser('enumerate', help='List all available devices')
    enumerate_parser.set_defaults(func=enumerate_handler)

    getpubkey_parser = subparsers.add_parser('getpubkey', help='Get the public key and address of an account')
    getpubkey_parser.add_argument('--account', help='The account number', type=int, default=0)
    getpubkey_parser.set_defaults(func=getpubkey_handler)

    getpubkeys_parser = subparsers.add_parser('getpubkeys', help='Get the public keys of consecutive accounts')
    getpubkeys_parser.add_argument('--account', help='The first account number', type=int, default=0)
    getpubkeys_parser.add_argument('--count', help='The number of accounts', type=int, default=10)
    getpubkeys_parser.set_defaults(func=getpubkeys_handler)

    getdeviceinfo_parser = subparsers.add_parser('getdeviceinfo', help='Describe the device and get the public key of its first account')
    getdeviceinfo_parser.set_defaults(func=getdeviceinfo_handler)

    address_parser = subparsers.add_parser('address', help='Get the address of a public key')
    address_parser.add_argument('pubkey', help='The public key, compressed or uncompressed, as hex')
    address_parser.set_defaults(func=address_handler)

    encodetx_parser = subparsers.add_parser('encodetx', help='Serialize a transfer')
    encodetx_parser.add_argument('from_pubkey', help='Public key of the sender')
    encodetx_parser.add_argument('to_pubkey', help='Public key of the recipient')
    encodetx_parser.add_argument('amount', help='Amount to transfer, in CPX')
    encodetx_parser.add_argument('--nonce', help='The sender nonce', type=int, required=True)
    encodetx_parser.add_argument('--gas-price', help='Gas price, in KGP', default='0')
    encodetx_parser.add_argument('--gas-limit', help='Gas limit, in KP', default='0')
    encodetx_parser.add_argument('--data', help='Attached data as hex', default='')
    encodetx_parser.add_argument('--tx-type', help='Transaction type', type=TxType.argparse, choices=list(TxType), default=TxType.TRANSFER) # type: ignore
    encodetx_parser.set_defaults(func=encodetx_handler)

    signtx_parser = subparsers.add_parser('signtx', help='Sign a serialized transaction')
    signtx_parser.add_argument('tx', help='The transaction as hex')
    signtx_parser.add_argument('--account', help='The account to sign with', type=int, default=0)
    signtx_parser.set_defaults(func=signtx_handler)

    return parser

def process_commands(cli_args: List[str]) -> Any:
    parser = get_parser()
    args = parser.parse_args(cli_args)
    result: Dict[str, Any] = {}

    # Setup debug logging
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    with handle_errors(result=result, code=DEVICE_CONN_ERROR):
        if args.device_path is not None:
            transport = Transport.for_path(args.device_path, debug=args.debug)
        else:
            transport = Transport(args.transport, server=args.server, port=args.port, debug=args.debug)
    if 'error' in result:
        return result

    with handle_errors(result=result, debug=args.debug):
        result = args.func(args, transport)

    return result

def main() -> None:
    result = process_commands(sys.argv[1:])
    print(json.dumps(result))
