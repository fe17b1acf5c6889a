"""
Errors and Error Codes
**********************

cpxlib has several possible Exceptions with corresponding error codes.

:class:`~cpxlib.devices.ledger.CPXLedger` methods and :mod:`~cpxlib.commands` functions will generally raise an exception that is a subclass of :class:`CPXError`.
The command line tool will convert these exceptions into a dictionary containing the error message and error code.
These look like ``{"error": "<msg>", "code": <code>}``.
"""

from typing import Any, Dict, Iterator, Optional, Type
from contextlib import contextmanager

# Error codes
TRANSPORT_UNSUPPORTED = -1 #: The host cannot use the device transport
DEVICE_NOT_FOUND = -2 #: No device was found
DEVICE_CONN_ERROR = -3 #: Error connecting to the device
APP_CLOSED = -4 #: The application is not open on the device
PAYLOAD_TOO_LARGE = -5 #: The message is too long for the device
USER_DENIED = -6 #: The user denied the action on the device
DEVICE_PARSE_ERROR = -7 #: The device could not parse the transaction
UNEXPECTED_DEVICE_ERROR = -8 #: The device returned an unknown status
ENCODING_ERROR = -9 #: A value could not be serialized
INVALID_KEY = -10 #: Public key is malformed
PROTOCOL_ERROR = -11 #: The device exchange did not follow the protocol
BAD_ARGUMENT = -12 #: Bad, malformed, or conflicting argument was provided
UNKNOWN_ERROR = -13 #: An unknown error occurred
MISSING_ARGUMENTS = -14 #: Arguments are missing
HELP_TEXT = -15 #: Help text was requested by the user

# Status words returned by the device
VALID_STATUS = 0x9000
MSG_TOO_BIG = 0x6d08
APP_NOT_OPEN = 0x6e00
TX_DENIED = 0x6985
TX_PARSE_ERR = 0x6d07

MESSAGES = {
    'NOT_SUPPORTED': 'Ledger is not supported',
    'NOT_CONNECTED': 'Ledger is not connected',
    'APP_CLOSED': 'Ledger application is not open',
    'MSG_TOO_BIG': 'The transaction is too long',
    'TX_DENIED': 'The transaction was denied',
    'TX_PARSE_ERR': 'Transaction could not be parsed',
    'UNEXPECTED': 'Undefined error occurred',
}

# Exceptions
class CPXError(Exception):
    """
    Generic exception type produced by cpxlib
    Subclassed by specific Errors to have Exceptions that have specific error codes.

    Contains a message and error code.
    """
    def __init__(self, msg: str, code: int) -> None:
        """
        Create an exception with the message and error code

        :param msg: The error message
        :param code: The error code
        """
        Exception.__init__(self, msg)
        self.code = code
        self.msg = msg

    def get_code(self) -> int:
        """
        Get the error code for this Error

        :return: The error code
        """
        return self.code

    def get_msg(self) -> str:
        """
        Get the error message for this Error

        :return: The error message
        """
        return self.msg

    def __str__(self) -> str:
        return self.msg

class TransportUnsupportedError(CPXError):
    """
    :class:`CPXError` for :data:`TRANSPORT_UNSUPPORTED`
    """
    def __init__(self, msg: str = MESSAGES['NOT_SUPPORTED']):
        CPXError.__init__(self, msg, TRANSPORT_UNSUPPORTED)

class DeviceNotFoundError(CPXError):
    """
    :class:`CPXError` for :data:`DEVICE_NOT_FOUND`
    """
    def __init__(self, msg: str = MESSAGES['NOT_CONNECTED']):
        CPXError.__init__(self, msg, DEVICE_NOT_FOUND)

NotSupportedError = TransportUnsupportedError
NotConnectedError = DeviceNotFoundError

class DeviceConnectionError(CPXError):
    """
    :class:`CPXError` for :data:`DEVICE_CONN_ERROR`
    """
    def __init__(self, msg: str):
        CPXError.__init__(self, msg, DEVICE_CONN_ERROR)

class DeviceStatusError(CPXError):
    """
    Base class for errors reported by the device through a status word.

    :param msg: The error message
    :param code: The error code
    :param sw: The status word returned by the device
    """
    def __init__(self, msg: str, code: int, sw: Optional[int] = None):
        CPXError.__init__(self, msg, code)
        self.sw = sw

class ApplicationClosedError(DeviceStatusError):
    def __init__(self, msg: str = MESSAGES['APP_CLOSED'], sw: Optional[int] = APP_NOT_OPEN):
        DeviceStatusError.__init__(self, msg, APP_CLOSED, sw)

class PayloadTooLargeError(DeviceStatusError):
    def __init__(self, msg: str = MESSAGES['MSG_TOO_BIG'], sw: Optional[int] = MSG_TOO_BIG):
        DeviceStatusError.__init__(self, msg, PAYLOAD_TOO_LARGE, sw)

class UserDeniedError(DeviceStatusError):
    def __init__(self, msg: str = MESSAGES['TX_DENIED'], sw: Optional[int] = TX_DENIED):
        DeviceStatusError.__init__(self, msg, USER_DENIED, sw)

class DeviceParseError(DeviceStatusError):
    def __init__(self, msg: str = MESSAGES['TX_PARSE_ERR'], sw: Optional[int] = TX_PARSE_ERR):
        DeviceStatusError.__init__(self, msg, DEVICE_PARSE_ERROR, sw)

class UnexpectedDeviceError(DeviceStatusError):
    def __init__(self, msg: str = MESSAGES['UNEXPECTED'], sw: Optional[int] = None):
        DeviceStatusError.__init__(self, msg, UNEXPECTED_DEVICE_ERROR, sw)

class EncodingError(CPXError):
    """
    :class:`CPXError` for :data:`ENCODING_ERROR`
    """
    def __init__(self, msg: str):
        CPXError.__init__(self, msg, ENCODING_ERROR)

class InvalidKeyError(CPXError):
    """
    :class:`CPXError` for :data:`INVALID_KEY`
    """
    def __init__(self, msg: str):
        CPXError.__init__(self, msg, INVALID_KEY)

class ProtocolError(CPXError):
    """
    :class:`CPXError` for :data:`PROTOCOL_ERROR`
    """
    def __init__(self, msg: str):
        CPXError.__init__(self, msg, PROTOCOL_ERROR)

class EmptyDataError(ProtocolError):
    """
    Nothing to send to the device
    """
    pass

class MalformedSignatureError(ProtocolError):
    """
    The device answered without a usable signature
    """
    pass

class BadArgumentError(CPXError):
    """
    :class:`CPXError` for :data:`BAD_ARGUMENT`
    """
    def __init__(self, msg: str):
        CPXError.__init__(self, msg, BAD_ARGUMENT)

STATUS_ERRORS: Dict[int, Type[DeviceStatusError]] = {
    APP_NOT_OPEN: ApplicationClosedError,
    MSG_TOO_BIG: PayloadTooLargeError,
    TX_DENIED: UserDeniedError,
    TX_PARSE_ERR: DeviceParseError,
}

def status_to_error(sw: int) -> DeviceStatusError:
    """
    Translate a status word returned by the device into an exception.

    Status words missing from :data:`STATUS_ERRORS` become an :class:`UnexpectedDeviceError`.

    :param sw: The status word
    :return: The exception to raise
    """
    error_cls = STATUS_ERRORS.get(sw)
    if error_cls is None:
        return UnexpectedDeviceError(sw=sw)
    return error_cls(sw=sw)

@contextmanager
def handle_errors(
    msg: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
    code: int = UNKNOWN_ERROR,
    debug: bool = False,
) -> Iterator[None]:
    """
    Context manager to catch all Exceptions and CPXErrors to return them as dictionaries containing the error message and code.

    :param msg: Error message prefix. Attached to the beginning of each error message
    :param result: The dictionary to put the resulting error in
    :param code: The default error code to use for Exceptions
    :param debug: Whether to also print out the traceback for debugging purposes
    """
    if result is None:
        result = {}

    if msg is None:
        msg = ""
    else:
        msg = msg + " "

    try:
        yield

    except CPXError as e:
        result['error'] = msg + e.get_msg()
        result['code'] = e.get_code()
    except Exception as e:
        result['error'] = msg + str(e)
        result['code'] = code
        if debug:
            import traceback
            traceback.print_exc()
