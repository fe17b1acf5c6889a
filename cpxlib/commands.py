#! /usr/bin/env python3

"""
Commands
********

The functions in this module are the primary way to interact with a Ledger running the CPX application.

Each function finds the first device reachable through the given :class:`~cpxlib.devices.ledgercomm.Transport`,
runs its operation and closes the connection again, whether the operation succeeded or not.
"""

import logging

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from .amount import FixedNumber
from .common import (
    Fraction,
    TxType,
    Version,
)
from .devices import ledger
from .devices.ledger import CPXLedger
from .devices.ledgercomm import Transport
from .errors import EncodingError
from .key import CPXKey, compress_pubkey
from .transaction import TransactionPayload, attach_signature


logger = logging.getLogger(__name__)


def get_transport(device_path: Optional[str] = None, debug: bool = False) -> Transport:
    """
    Build the transport for a device path, the HID transport when no path is given.
    """
    if device_path is None:
        return Transport("hid", debug=debug)
    return Transport.for_path(device_path, debug=debug)


def open_ledger(transport: Transport, device_path: Optional[str] = None) -> CPXLedger:
    """
    Open the device at `device_path`, or the first device found.
    """
    if device_path is None:
        return CPXLedger.init(transport)
    return CPXLedger(device_path, transport).open()


def enumerate(transport: Transport) -> List[Dict[str, Any]]:
    """
    Enumerate the devices reachable through `transport`.

    :return: A list of ``{"type": "ledger", "path": <path>}``
    """
    return ledger.enumerate(transport)


def get_public_key(transport: Transport, acct: int = 0, device_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the public key of an account, along with the address derived from it.
    """
    with open_ledger(transport, device_path) as client:
        result = client.get_public_key(acct)
    result["address"] = CPXKey(compress_pubkey(result["key"])).get_address()
    return result


def get_public_keys(transport: Transport, acct: int = 0, batch_size: int = 10, device_path: Optional[str] = None) -> List[Dict[str, Any]]:
    with open_ledger(transport, device_path) as client:
        return client.get_public_keys(acct, batch_size)


def get_device_info(transport: Transport, device_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the description of the device and the public key of its first account.
    """
    with open_ledger(transport, device_path) as client:
        device_info = client.get_device_info()
        public_key = client.get_public_key()
    return {"device_info": device_info, "public_key": public_key}


def sign_with_ledger(transport: Transport, data: str, acct: int = 0, device_path: Optional[str] = None) -> str:
    """
    Sign a transaction with the Ledger.

    :param data: Hex string to sign
    :param acct: The account to sign with
    :return: The transaction followed by the signature length and the signature, as a hex string
    """
    with open_ledger(transport, device_path) as client:
        signature = client.get_signature(data, acct)
    logger.debug("Signed %d bytes with account %d", len(data) // 2, acct)
    return attach_signature(data, signature)


def encode_transfer(
    from_pubkey: str,
    to_pubkey: str,
    amount: str,
    nonce: int,
    gas_price: str,
    gas_limit: str,
    data: str = "",
    amount_fraction: Fraction = Fraction.CPX,
    gas_price_fraction: Fraction = Fraction.KGP,
    gas_limit_fraction: Fraction = Fraction.KP,
    tx_type: TxType = TxType.TRANSFER,
) -> Dict[str, str]:
    """
    Serialize a transfer between two public keys.

    Public keys may be given compressed or uncompressed, as returned by :func:`get_public_key`.

    :return: ``{"tx": <hex>}``
    """
    try:
        attached = bytes.fromhex(data)
    except ValueError:
        raise EncodingError("Attached data must be a hex string")
    payload = TransactionPayload(
        version=Version.ONE,
        tx_type=tx_type,
        from_key=CPXKey.from_public_key(from_pubkey),
        to_key=CPXKey.from_public_key(to_pubkey),
        amount=FixedNumber.from_amount(amount, amount_fraction),
        nonce=nonce,
        data=attached,
        gas_price=FixedNumber.from_amount(gas_price, gas_price_fraction),
        gas_limit=FixedNumber.from_amount(gas_limit, gas_limit_fraction),
    )
    return {"tx": payload.to_hex()}
