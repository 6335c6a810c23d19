#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Helpful routines for hemi tests.

Byte buffers, hashing and assertion helpers shared by the other testutil
modules and by the test suites that use them."""

from binascii import hexlify, unhexlify
import hashlib
import os

FILL_BYTE = b"_"

# Assert functions
##################

def assert_equal(thing1, thing2, *args):
    if thing1 != thing2 or any(thing1 != arg for arg in args):
        raise AssertionError("not(%s)" % " == ".join(str(arg) for arg in (thing1, thing2) + args))

def assert_raises(exc, fun, *args, **kwds):
    assert_raises_message(exc, None, fun, *args, **kwds)

def assert_raises_message(exc, message, fun, *args, **kwds):
    try:
        fun(*args, **kwds)
    except exc as e:
        if message is not None and message not in str(e):
            raise AssertionError("Expected substring not found:" + str(e))
    except Exception as e:
        raise AssertionError("Unexpected exception raised: " + type(e).__name__)
    else:
        raise AssertionError("No exception raised")

# Utility functions
###################

def sha256(s):
    return hashlib.new('sha256', s).digest()

def hash256(s):
    return sha256(sha256(s))

def bytes_to_hex_str(byte_str):
    return hexlify(byte_str).decode('ascii')

def hex_str_to_bytes(hex_str):
    return unhexlify(hex_str.encode('ascii'))

def hash_to_hex(h):
    """Hex string of a hash in display (byte-reversed) order."""
    return bytes_to_hex_str(h[::-1])

def _prefix_bytes(prefix, n):
    if n < 0:
        n = 0
    if isinstance(prefix, str):
        prefix = prefix.encode('utf-8')
    return prefix[:n], n

def fill_bytes(prefix, n):
    """Return n bytes holding prefix, the remainder filled with underscores.

    A prefix longer than n is truncated and n < 0 is treated as 0."""
    prefix, n = _prefix_bytes(prefix, n)
    return prefix + FILL_BYTE * (n - len(prefix))

def fill_bytes_zero(prefix, n):
    """Return n bytes holding prefix, the remainder left as zero bytes."""
    prefix, n = _prefix_bytes(prefix, n)
    return prefix + bytes(n - len(prefix))

def random_bytes(count):
    """Return count cryptographically secure random bytes.

    Errors from the OS entropy source propagate to the caller."""
    if count < 0:
        raise ValueError("negative byte count: %d" % count)
    return os.urandom(count)
