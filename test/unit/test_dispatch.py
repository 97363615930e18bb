"""
Unit tests for dispatch plans and their LLVM IR lowering
"""

import unittest
from llvmlite import ir, binding

from pysealed import sealed, MatchExpression, collecting_errors, set_raise_on_error
from pysealed.builder import (
    DispatchBuilder, DispatchPlan, NO_ARM, RUNTIME_TEST, build_dispatch_module
)

set_raise_on_error(True)


@sealed
class Mammal:
    def __init__(self, name):
        self.name = name


class Human(Mammal):
    pass


class Cat(Mammal):
    pass


class Dog(Mammal):
    pass


class Puppy(Dog):
    pass


class TestDispatchPlan(unittest.TestCase):
    """Test tag tables built from match expressions"""

    def test_one_arm_per_variant(self):
        greet = MatchExpression(Mammal, [(Dog, str), (Cat, str), (Human, str)], name="greet")
        plan = greet.plan
        self.assertEqual(plan.variant_names, ["Human", "Cat", "Dog"])
        self.assertEqual(plan.arm_for_tag, [2, 1, 0])
        self.assertIsNone(plan.default_arm)
        self.assertTrue(plan.all_tags_routed)

    def test_wildcard_fills_default(self):
        greet = MatchExpression(Mammal, {Cat: str}, otherwise=str)
        self.assertEqual(greet.plan.arm_for_tag, [1, 0, 1])
        self.assertEqual(greet.plan.default_arm, 1)
        self.assertEqual(greet.plan.lookup(99), 1)

    def test_subclass_arm_needs_runtime_test(self):
        greet = MatchExpression(Mammal, [(Puppy, str), (Mammal, str)])
        # Puppy only takes part of Dog, so every tag is resolved by an isinstance scan
        self.assertEqual(greet.plan.arm_for_tag, [RUNTIME_TEST] * 3)
        self.assertEqual(greet.plan.default_arm, 1)
        self.assertIs(greet.arm_for(Human), greet.arms[1])
        self.assertIs(greet.arm_for(Puppy), greet.arms[0])

    def test_missing_arm(self):
        with collecting_errors():
            greet = MatchExpression(Mammal, {Cat: str})
        self.assertEqual(greet.plan.arm_for_tag, [NO_ARM, 0, NO_ARM])
        self.assertFalse(greet.plan.all_tags_routed)
        self.assertEqual(greet.plan.lookup(None), NO_ARM)

    def test_routed_plan_of_incomplete_match(self):
        with collecting_errors():
            greet = MatchExpression(Mammal, [(Puppy, str)])
        self.assertEqual(greet.plan.arm_for_tag, [RUNTIME_TEST] * 3)
        self.assertTrue(greet.plan.all_tags_routed)
        self.assertFalse(greet.exhaustive)


class TestLowering(unittest.TestCase):
    """Test the switch emitted for a plan"""

    def test_switch_ir(self):
        plan = DispatchPlan("greet", "Mammal", ["Human", "Cat"], [0, 1])
        builder = DispatchBuilder("test_module")
        func = builder.add_plan(plan)
        self.assertIsInstance(func, ir.Function)
        text = builder.get_ir()
        self.assertIn("greet.dispatch", text)
        self.assertIn("switch i32", text)
        self.assertIn("case.Cat", text)
        self.assertIn("unreachable", text)
        binding.parse_assembly(text).verify()

    def test_default_arm_returns(self):
        plan = DispatchPlan("greet", "Mammal", ["Human", "Cat"], [0, 2], default_arm=2)
        text = str(build_dispatch_module([plan]))
        self.assertNotIn("unreachable", text)
        self.assertIn("ret i32 2", text)

    def test_missing_arm_returns_no_arm(self):
        plan = DispatchPlan("greet", "Mammal", ["Human", "Cat"], [0, NO_ARM])
        text = str(build_dispatch_module([plan]))
        self.assertIn(f"ret i32 {NO_ARM}", text)
        self.assertNotIn("unreachable", text)

    def test_plan_added_once(self):
        plan = DispatchPlan("greet", "Mammal", ["Human"], [0])
        builder = DispatchBuilder()
        self.assertIs(builder.add_plan(plan), builder.add_plan(plan))
        self.assertEqual(len(builder.module.functions), 1)

    def test_lower_match_expression(self):
        greet = MatchExpression(Mammal, {Human: str, Cat: str, Dog: str}, name="greet_all")
        func = greet.lower()
        self.assertEqual(func.name, "greet_all.dispatch")
        binding.parse_assembly(str(func.module)).verify()


if __name__ == '__main__':
    unittest.main()
