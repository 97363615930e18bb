#!/usr/bin/env python3
"""
Variants declared outside the boundary of a sealed class
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../..'))

import unittest

from pysealed import (
    sealed, variants_of, ScopeViolation, set_raise_on_error, collecting_errors
)
from mammals_module import Mammal, Human, Cat

# Enable exception raising for tests
set_raise_on_error(True)


class TestScopeViolation(unittest.TestCase):

    def test_subclass_in_other_module_rejected(self):
        # Mammal lives in mammals_module; this test module is outside it
        with self.assertRaises(ScopeViolation) as ctx:
            class Dog(Mammal):
                pass
        self.assertIn("mammals_module", str(ctx.exception))
        self.assertIn(os.path.basename(__file__), ctx.exception.location)
        self.assertEqual(variants_of(Mammal), (Human, Cat))

    def test_dynamic_class_rejected(self):
        with self.assertRaises(ScopeViolation):
            type("Dog", (Mammal,), {"__module__": "elsewhere"})
        self.assertEqual(variants_of(Mammal), (Human, Cat))

    def test_collected_violation_leaves_variant_set(self):
        with collecting_errors() as errors:
            class Whale(Mammal):
                pass
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], ScopeViolation)
        self.assertNotIn(Whale, variants_of(Mammal))
        self.assertEqual(Whale("Moby").name, "Moby")

    def test_subclass_of_variant_is_unrestricted(self):
        class Lion(Cat):
            pass

        self.assertEqual(Lion("Leo").name, "Leo")
        self.assertEqual(variants_of(Mammal), (Human, Cat))

    def test_module_override_inside_boundary(self):
        @sealed
        class Shape:
            pass

        Circle = type("Circle", (Shape,), {"__module__": __name__})
        self.assertEqual(variants_of(Shape), (Circle,))

    def test_package_boundary(self):
        Plant = sealed(type("Plant", (), {"__module__": "garden.core"}), boundary="garden")
        Tree = type("Tree", (Plant,), {"__module__": "garden.trees"})
        self.assertEqual(variants_of(Plant), (Tree,))

        with self.assertRaises(ScopeViolation):
            type("Weed", (Plant,), {"__module__": "gardenia"})


if __name__ == '__main__':
    unittest.main()
