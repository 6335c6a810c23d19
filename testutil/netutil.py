#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Network utilities for tests."""

import socket

def free_port(host='localhost'):
    '''
    Find a TCP port that is currently free on host and return it as a string.

    The port is released before returning, so another process may take it
    before the caller binds it. Socket errors propagate.
    '''
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind((host, 0))
        port = s.getsockname()[1]
    return str(port)
