"""
Devices
*******

This module contains the device implementations.
"""

__all__ = [
    'ledger',
]
