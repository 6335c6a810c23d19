#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Utilities for building keystone fixtures."""
from testutil.hemi import KEYSTONE_VERSION, L2Keystone, l2_keystone_abbreviate
from testutil.util import sha256

GENESIS_L1_BLOCK_NUMBER = 10000
KEYSTONE_INTERVAL = 25


# Synthetic keystone the generated chain links back to; never returned
def create_genesis_keystone():
    return L2Keystone(
        version=KEYSTONE_VERSION,
        l1_block_number=GENESIS_L1_BLOCK_NUMBER,
        l2_block_number=KEYSTONE_INTERVAL,
        prev_keystone_ep_hash=sha256(bytes([0, 0])),
        ep_hash=sha256(bytes([0])))


# Create a keystone following prev, all hashes derived from x
def create_keystone(prev, x, l2_block_number):
    return L2Keystone(
        version=KEYSTONE_VERSION,
        l1_block_number=prev.l1_block_number + 1,
        l2_block_number=l2_block_number,
        parent_ep_hash=sha256(bytes([x, x])),
        prev_keystone_ep_hash=prev.ep_hash,
        state_root=sha256(bytes([x, x, x])),
        ep_hash=sha256(bytes([x])))


def make_shared_keystones(n):
    """Create a matching dict and list of n linked keystones.

    The dict maps each abbreviated keystone hash to the abbreviated keystone,
    the list holds the full keystones in chain order."""
    kss_map = {}
    kss_list = []

    prev = create_genesis_keystone()
    for ci in range(n):
        x = (ci + 1) & 0xff
        ks = create_keystone(prev, x, ((ci + 1) * KEYSTONE_INTERVAL) & 0xffffffff)

        abrev = l2_keystone_abbreviate(ks)
        kss_map[abrev.hash()] = abrev
        kss_list.append(ks)
        prev = ks

    return kss_map, kss_list
