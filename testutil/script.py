#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Step-wise script execution for transaction tests.

ScriptEngine drives python-bitcoinlib's interpreter one script at a time
(unlocking script, locking script, then the P2SH redeem script) so a test
can look at the stack between scripts. execute_tx runs an engine to
completion and optionally logs every step."""

import logging
import pprint

from bitcoin.core import b2lx
from bitcoin.core.script import CScript
from bitcoin.core.scripteval import (
    EvalScript,
    _CastToBool,
    SCRIPT_VERIFY_DERSIG,
    SCRIPT_VERIFY_DISCOURAGE_UPGRADABLE_NOPS,
    SCRIPT_VERIFY_NULLDUMMY,
    SCRIPT_VERIFY_P2SH,
)

logger = logging.getLogger("TestFramework.script")

# BIP16, strict DER signatures, strict multisig dummy, no upgradable NOPs
STANDARD_FLAGS = frozenset([
    SCRIPT_VERIFY_P2SH,
    SCRIPT_VERIFY_DERSIG,
    SCRIPT_VERIFY_NULLDUMMY,
    SCRIPT_VERIFY_DISCOURAGE_UPGRADABLE_NOPS,
])


class ScriptEngineError(Exception):
    """Raised by ScriptEngine for conditions the interpreter does not check."""


class ScriptEngine():
    def __init__(self, script_pubkey, tx, in_idx=0, flags=STANDARD_FLAGS):
        if in_idx < 0 or in_idx >= len(tx.vin):
            raise ScriptEngineError("transaction input index %d is negative or >= %d"
                                    % (in_idx, len(tx.vin)))
        script_sig = CScript(tx.vin[in_idx].scriptSig)
        script_pubkey = CScript(script_pubkey)
        if len(script_sig) == 0 and len(script_pubkey) == 0:
            raise ScriptEngineError("false stack entry at end of script execution")

        self.tx = tx
        self.in_idx = in_idx
        self.flags = frozenset(flags)
        self.bip16 = SCRIPT_VERIFY_P2SH in self.flags and script_pubkey.is_p2sh()
        if self.bip16 and not script_sig.is_push_only():
            raise ScriptEngineError("pay to script hash is not push only")

        self.scripts = [script_sig, script_pubkey]
        self.script_idx = 0
        self.stack = []
        self.saved_first_stack = None
        self.failed = False

    def is_done(self):
        return self.script_idx >= len(self.scripts)

    def disasm_pc(self):
        if self.is_done():
            raise ScriptEngineError("past input scripts %d of %d"
                                    % (self.script_idx, len(self.scripts)))
        return "%02x: %r" % (self.script_idx, self.scripts[self.script_idx])

    def step(self):
        """Execute the current script and return True once all are done."""
        if self.is_done():
            raise ScriptEngineError("attempt to step past the final script")

        try:
            EvalScript(self.stack, self.scripts[self.script_idx], self.tx,
                       self.in_idx, flags=self.flags)
        except Exception:
            # The stack is unusable after a failed script
            self.script_idx = len(self.scripts)
            self.failed = True
            raise

        if self.script_idx == 0 and self.bip16:
            self.saved_first_stack = list(self.stack)
        elif self.script_idx == 1 and self.bip16:
            # The locking script only proves the redeem script hash, the
            # redeem script then runs against the unlocking script's stack.
            self.script_idx += 1
            self.check_error_condition(False)
            redeem = self.saved_first_stack[-1]
            self.stack = self.saved_first_stack[:-1]
            self.scripts.append(CScript(redeem))
            return False

        self.script_idx += 1
        return self.is_done()

    def get_stack(self):
        return [bytes(item) for item in self.stack]

    def check_error_condition(self, final_script=True):
        if self.failed:
            raise ScriptEngineError("script execution failed")
        if final_script and not self.is_done():
            raise ScriptEngineError("error check when script unfinished")
        if len(self.stack) == 0:
            raise ScriptEngineError("stack empty at end of script execution")
        if not _CastToBool(self.stack[-1]):
            raise ScriptEngineError("false stack entry at end of script execution")


def execute_tx(script_pubkey, tx, dump=False, log=None):
    """Execute the first input of tx against script_pubkey.

    Every error from the engine is raised to the caller unchanged. With
    dump set each step's disassembly and resulting stack go to log."""
    if log is None:
        log = logger
    vm = ScriptEngine(script_pubkey, tx, 0, STANDARD_FLAGS)
    if dump:
        log.info("=== executing tx %s", b2lx(tx.GetTxid()))
    i = 0
    while True:
        d = vm.disasm_pc()
        if dump:
            log.info("%d: %s", i, d)
        done = vm.step()
        stack = vm.get_stack()
        if dump:
            log.info("%d: stack %s", i, pprint.pformat(stack))
        if done:
            break
        i += 1
    vm.check_error_condition(True)

    if dump:
        log.info("=== SUCCESS tx %s", b2lx(tx.GetTxid()))
