"""ledgercomm.log module."""

import logging

LOG: logging.Logger = logging.getLogger("cpxlib.ledgercomm")
