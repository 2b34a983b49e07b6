"""Byte-size units used for body capture and decode limits.

Decimal units (powers of 10) for humans, binary units (powers of 2) for
buffers and caps.

Examples:
    >>> from fallible.core.sizes import MiB
    >>> 2 * MiB
    2097152
"""

BYTE = 1

# Decimal
KB = 1000 * BYTE
MB = 1000 * KB
GB = 1000 * MB
TB = 1000 * GB

# Binary
KiB = 1024 * BYTE
MiB = 1024 * KiB
GiB = 1024 * MiB
TiB = 1024 * GiB

__all__ = ["BYTE", "KB", "MB", "GB", "TB", "KiB", "MiB", "GiB", "TiB"]
