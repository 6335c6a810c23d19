#!/usr/bin/env python3
# Copyright (c) 2025 Hemi Labs, Inc.
# Distributed under the MIT software license, see the accompanying
# file COPYING or http://www.opensource.org/licenses/mit-license.php.
"""Test step-wise script execution."""

import logging
import unittest

from bitcoin.core import COutPoint, CMutableTransaction, CMutableTxIn, CMutableTxOut
from bitcoin.core.script import (
    CScript,
    OP_1,
    OP_2,
    OP_3,
    OP_ADD,
    OP_EQUAL,
    OP_EQUALVERIFY,
    OP_TRUE,
)
from bitcoin.core.scripteval import EvalScriptError, SCRIPT_VERIFY_P2SH

from testutil.script import ScriptEngine, ScriptEngineError, execute_tx
from testutil.util import assert_equal

def create_tx(script_sig):
    txin = CMutableTxIn(COutPoint(), CScript(script_sig))
    txout = CMutableTxOut(0, CScript([OP_TRUE]))
    return CMutableTransaction([txin], [txout])

class ScriptEngineTest(unittest.TestCase):
    def test_steps(self):
        vm = ScriptEngine(CScript([OP_1, OP_ADD, OP_2, OP_EQUAL]), create_tx([OP_1]))
        self.assertIn("CScript([1])", vm.disasm_pc())
        assert_equal(vm.step(), False)
        assert_equal(vm.get_stack(), [b"\x01"])
        self.assertIn("OP_ADD", vm.disasm_pc())
        assert_equal(vm.step(), True)
        assert_equal(vm.get_stack(), [b"\x01"])
        vm.check_error_condition(True)

    def test_disasm_when_done(self):
        vm = ScriptEngine(CScript([OP_1]), create_tx([]))
        vm.step()
        vm.step()
        with self.assertRaises(ScriptEngineError):
            vm.disasm_pc()
        with self.assertRaises(ScriptEngineError):
            vm.step()

    def test_unfinished(self):
        vm = ScriptEngine(CScript([OP_1]), create_tx([OP_1]))
        vm.step()
        with self.assertRaises(ScriptEngineError):
            vm.check_error_condition(True)

    def test_top_stack_truth(self):
        for top, ok in ((b"\x01", True), (b"\x80\x00", True), (b"\x00\x00", False), (b"\x00\x80", False)):
            vm = ScriptEngine(CScript(), create_tx([top]))
            vm.step()
            vm.step()
            if ok:
                vm.check_error_condition(True)
            else:
                with self.assertRaises(ScriptEngineError):
                    vm.check_error_condition(True)

    def test_failed_step_stops_engine(self):
        vm = ScriptEngine(CScript([OP_EQUALVERIFY]), create_tx([OP_1]))
        assert_equal(vm.step(), False)
        with self.assertRaises(EvalScriptError):
            vm.step()
        assert_equal(vm.is_done(), True)
        with self.assertRaises(ScriptEngineError):
            vm.step()
        with self.assertRaises(ScriptEngineError):
            vm.disasm_pc()
        with self.assertRaises(ScriptEngineError):
            vm.check_error_condition(True)

    def test_bad_input_index(self):
        with self.assertRaises(ScriptEngineError):
            ScriptEngine(CScript([OP_1]), create_tx([OP_1]), in_idx=1)

    def test_empty_scripts(self):
        with self.assertRaises(ScriptEngineError):
            ScriptEngine(CScript(), create_tx([]))

    def test_p2sh(self):
        redeem = CScript([OP_2, OP_EQUAL])
        spk = redeem.to_p2sh_scriptPubKey()
        vm = ScriptEngine(spk, create_tx([OP_2, redeem]))
        steps = 0
        done = False
        while not done:
            vm.disasm_pc()
            done = vm.step()
            steps += 1
        assert_equal(steps, 3)
        vm.check_error_condition(True)

    def test_p2sh_not_push_only(self):
        redeem = CScript([OP_TRUE])
        spk = redeem.to_p2sh_scriptPubKey()
        with self.assertRaises(ScriptEngineError):
            ScriptEngine(spk, create_tx([OP_1, OP_1, OP_ADD, redeem]))

    def test_p2sh_disabled(self):
        redeem = CScript([OP_3])
        spk = redeem.to_p2sh_scriptPubKey()
        vm = ScriptEngine(spk, create_tx([redeem]), flags=())
        assert_equal(vm.step(), False)
        assert_equal(vm.step(), True)
        vm.check_error_condition(True)
        assert_equal(SCRIPT_VERIFY_P2SH in vm.flags, False)

class ExecuteTxTest(unittest.TestCase):
    def test_success(self):
        execute_tx(CScript([OP_2, OP_EQUAL]), create_tx([OP_2]))

    def test_false_result(self):
        with self.assertRaises(ScriptEngineError):
            execute_tx(CScript([OP_2, OP_EQUAL]), create_tx([OP_3]))

    def test_interpreter_error_propagates(self):
        with self.assertRaises(EvalScriptError):
            execute_tx(CScript([OP_EQUALVERIFY]), create_tx([]))

    def test_dump(self):
        log = logging.getLogger("TestFramework.script.dump")
        with self.assertLogs(log, level="INFO") as cm:
            execute_tx(CScript([OP_2, OP_EQUAL]), create_tx([OP_2]), dump=True, log=log)
        assert_equal(len(cm.output), 6)
        self.assertIn("=== executing tx", cm.output[0])
        self.assertIn("0: CScript([2])", cm.output[1])
        self.assertIn("0: stack", cm.output[2])
        self.assertIn("=== SUCCESS tx", cm.output[-1])

    def test_no_dump_is_quiet(self):
        log = logging.getLogger("TestFramework.script.quiet")
        with self.assertRaises(AssertionError):
            with self.assertLogs(log, level="DEBUG"):
                execute_tx(CScript([OP_2, OP_EQUAL]), create_tx([OP_2]), log=log)

if __name__ == '__main__':
    unittest.main()
