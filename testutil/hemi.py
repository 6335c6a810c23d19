#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Hemi keystone primitive structures

L2Keystone, L2KeystoneAbrev:
    data structures that should map to the corresponding structures in
    the hemi package

l2_keystone_abbreviate:
    condense a full keystone into the form that is published on layer 1

ser_*, deser_*: functions that handle serialization/deserialization."""
from io import BytesIO
import struct

from testutil.util import bytes_to_hex_str, hash256, hex_str_to_bytes

KEYSTONE_VERSION = 1

# Abbreviated field widths, see L2KeystoneAbrev.serialize for the layout.
ABREV_PARENT_EP_HASH_SIZE = 11
ABREV_PREV_KEYSTONE_EP_HASH_SIZE = 12
ABREV_STATE_ROOT_SIZE = 32
ABREV_EP_HASH_SIZE = 12
L2_KEYSTONE_ABREV_SIZE = (1 + 4 + 4 + ABREV_PARENT_EP_HASH_SIZE +
                          ABREV_PREV_KEYSTONE_EP_HASH_SIZE +
                          ABREV_STATE_ROOT_SIZE + ABREV_EP_HASH_SIZE)

# Serialization/deserialization tools
def ser_fixed(b, size):
    if len(b) > size:
        raise ValueError("field of %d bytes exceeds %d" % (len(b), size))
    return b + bytes(size - len(b))

def deser_fixed(f, size):
    r = f.read(size)
    if len(r) != size:
        raise ValueError("short read: got %d of %d bytes" % (len(r), size))
    return r

def ser_uint32_be(u):
    return struct.pack(">I", u)

def deser_uint32_be(f):
    return struct.unpack(">I", deser_fixed(f, 4))[0]

# Deserialize from a hex string representation (eg from a test vector)
def FromHex(obj, hex_string):
    obj.deserialize(BytesIO(hex_str_to_bytes(hex_string)))
    return obj

# Convert a keystone structure to a hex string
def ToHex(obj):
    return bytes_to_hex_str(obj.serialize())

# Objects that map to hemid objects
class L2Keystone():
    def __init__(self, version=KEYSTONE_VERSION, l1_block_number=0,
                 l2_block_number=0, parent_ep_hash=b"",
                 prev_keystone_ep_hash=b"", state_root=b"", ep_hash=b""):
        self.version = version
        self.l1_block_number = l1_block_number
        self.l2_block_number = l2_block_number
        self.parent_ep_hash = parent_ep_hash
        self.prev_keystone_ep_hash = prev_keystone_ep_hash
        self.state_root = state_root
        self.ep_hash = ep_hash

    def __eq__(self, other):
        if not isinstance(other, L2Keystone):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __repr__(self):
        return "L2Keystone(version=%i l1_block_number=%i l2_block_number=%i parent_ep_hash=%s prev_keystone_ep_hash=%s state_root=%s ep_hash=%s)" \
            % (self.version, self.l1_block_number, self.l2_block_number,
               bytes_to_hex_str(self.parent_ep_hash),
               bytes_to_hex_str(self.prev_keystone_ep_hash),
               bytes_to_hex_str(self.state_root),
               bytes_to_hex_str(self.ep_hash))


class L2KeystoneAbrev():
    """Abbreviated keystone, small enough for an OP_RETURN output.

    Serialized layout (76 bytes):
        [0:1]   version
        [1:5]   l1 block number, big endian
        [5:9]   l2 block number, big endian
        [9:20]  parent ep hash
        [20:32] previous keystone ep hash
        [32:64] state root
        [64:76] ep hash
    """

    def __init__(self, version=KEYSTONE_VERSION, l1_block_number=0,
                 l2_block_number=0, parent_ep_hash=b"",
                 prev_keystone_ep_hash=b"", state_root=b"", ep_hash=b""):
        self.version = version
        self.l1_block_number = l1_block_number
        self.l2_block_number = l2_block_number
        self.parent_ep_hash = ser_fixed(parent_ep_hash, ABREV_PARENT_EP_HASH_SIZE)
        self.prev_keystone_ep_hash = ser_fixed(prev_keystone_ep_hash, ABREV_PREV_KEYSTONE_EP_HASH_SIZE)
        self.state_root = ser_fixed(state_root, ABREV_STATE_ROOT_SIZE)
        self.ep_hash = ser_fixed(ep_hash, ABREV_EP_HASH_SIZE)

    def deserialize(self, f):
        self.version = struct.unpack("<B", deser_fixed(f, 1))[0]
        self.l1_block_number = deser_uint32_be(f)
        self.l2_block_number = deser_uint32_be(f)
        self.parent_ep_hash = deser_fixed(f, ABREV_PARENT_EP_HASH_SIZE)
        self.prev_keystone_ep_hash = deser_fixed(f, ABREV_PREV_KEYSTONE_EP_HASH_SIZE)
        self.state_root = deser_fixed(f, ABREV_STATE_ROOT_SIZE)
        self.ep_hash = deser_fixed(f, ABREV_EP_HASH_SIZE)
        if f.read(1):
            raise ValueError("trailing data after abbreviated keystone")

    def serialize(self):
        r = b""
        r += struct.pack("<B", self.version)
        r += ser_uint32_be(self.l1_block_number)
        r += ser_uint32_be(self.l2_block_number)
        r += ser_fixed(self.parent_ep_hash, ABREV_PARENT_EP_HASH_SIZE)
        r += ser_fixed(self.prev_keystone_ep_hash, ABREV_PREV_KEYSTONE_EP_HASH_SIZE)
        r += ser_fixed(self.state_root, ABREV_STATE_ROOT_SIZE)
        r += ser_fixed(self.ep_hash, ABREV_EP_HASH_SIZE)
        return r

    @classmethod
    def from_bytes(cls, b):
        if len(b) != L2_KEYSTONE_ABREV_SIZE:
            raise ValueError("invalid abbreviated keystone length %d, want %d"
                             % (len(b), L2_KEYSTONE_ABREV_SIZE))
        obj = cls()
        obj.deserialize(BytesIO(b))
        return obj

    def hash(self):
        return hash256(self.serialize())

    def __eq__(self, other):
        if not isinstance(other, L2KeystoneAbrev):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __hash__(self):
        return hash(self.serialize())

    def __repr__(self):
        return "L2KeystoneAbrev(version=%i l1_block_number=%i l2_block_number=%i parent_ep_hash=%s prev_keystone_ep_hash=%s state_root=%s ep_hash=%s)" \
            % (self.version, self.l1_block_number, self.l2_block_number,
               bytes_to_hex_str(self.parent_ep_hash),
               bytes_to_hex_str(self.prev_keystone_ep_hash),
               bytes_to_hex_str(self.state_root),
               bytes_to_hex_str(self.ep_hash))


def l2_keystone_abbreviate(ks):
    return L2KeystoneAbrev(
        version=ks.version,
        l1_block_number=ks.l1_block_number,
        l2_block_number=ks.l2_block_number,
        parent_ep_hash=ks.parent_ep_hash[:ABREV_PARENT_EP_HASH_SIZE],
        prev_keystone_ep_hash=ks.prev_keystone_ep_hash[:ABREV_PREV_KEYSTONE_EP_HASH_SIZE],
        state_root=ks.state_root[:ABREV_STATE_ROOT_SIZE],
        ep_hash=ks.ep_hash[:ABREV_EP_HASH_SIZE])
