#!/usr/bin/env python3
"""
@exhaustive on functions matching over sealed classes, enums and bool
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../..'))

import enum
import unittest
from dataclasses import dataclass
from typing import Generic, TypeVar

from pysealed import sealed, exhaustive, variants_of, InexhaustiveMatch, set_raise_on_error
from mammals_module import Mammal, Human, Cat

# Enable exception raising for tests
set_raise_on_error(True)


# ============================================================
# Test types
# ============================================================

class Suit(enum.Enum):
    HEARTS = 1
    SPADES = 2


@sealed
class Expr:
    pass


@dataclass
class Num(Expr):
    value: int


@dataclass
class Neg(Expr):
    operand: Expr


@sealed
class BinOp(Expr):
    pass


@dataclass
class Add(BinOp):
    left: Expr
    right: Expr


@dataclass
class Mul(BinOp):
    left: Expr
    right: Expr


@sealed
class Response:
    pass


@dataclass
class Ok(Response):
    cached: bool


@dataclass
class Err(Response):
    message: str


T = TypeVar("T")


@sealed
class Option(Generic[T]):
    pass


@dataclass
class Some(Option[T]):
    value: T


class Nothing(Option[T]):
    pass


# ============================================================
# Tests that SHOULD PASS (exhaustive matches)
# ============================================================

@exhaustive
def evaluate(e: Expr) -> int:
    match e:
        case Num(value=v):
            return v
        case Neg(operand=inner):
            return -evaluate(inner)
        case Add(left=a, right=b):
            return evaluate(a) + evaluate(b)
        case Mul(left=a, right=b):
            return evaluate(a) * evaluate(b)


@exhaustive
def colour(s: Suit) -> str:
    match s:
        case Suit.HEARTS:
            return "red"
        case Suit.SPADES:
            return "black"


@exhaustive
def describe(r: Response) -> str:
    match r:
        case Ok(True):
            return "cached"
        case Ok(False):
            return "fresh"
        case Err(message=msg):
            return msg


@exhaustive
def both(a: bool, b: bool) -> str:
    match a, b:
        case True, True:
            return "both"
        case (True, False) | (False, True):
            return "one"
        case False, False:
            return "none"


@exhaustive
def unwrap(o: Option[int]) -> int:
    match o:
        case Some(value=v):
            return v
        case Nothing():
            return 0


@exhaustive
def greet(m: Mammal) -> str:
    match m:
        case Human() | Cat():
            return f"Hello {m.name}"


class Zoo:
    @staticmethod
    @exhaustive
    def sound(m: Mammal) -> str:
        match m:
            case Cat():
                return "meow"
            case Human():
                return "hello"


class TestAcceptedMatches(unittest.TestCase):
    """Accepted functions run unchanged"""

    def test_nested_sealed(self):
        self.assertEqual(evaluate(Add(Num(2), Mul(Num(3), Neg(Num(4))))), -10)

    def test_enum(self):
        self.assertEqual(colour(Suit.HEARTS), "red")

    def test_bool_field(self):
        self.assertEqual(describe(Ok(False)), "fresh")
        self.assertEqual(describe(Err("boom")), "boom")

    def test_multiple_subjects(self):
        self.assertEqual(both(True, False), "one")

    def test_generic_root(self):
        self.assertEqual(variants_of(Option), (Some, Nothing))
        self.assertEqual(unwrap(Some(5)), 5)
        self.assertEqual(unwrap(Nothing()), 0)

    def test_imported_hierarchy(self):
        self.assertEqual(greet(Cat("Lucy")), "Hello Lucy")

    def test_staticmethod(self):
        self.assertEqual(Zoo.sound(Cat("Tom")), "meow")

    def test_annotated_local(self):
        @exhaustive
        def first(items) -> str:
            head: Suit = items[0]
            match head:
                case Suit.HEARTS | Suit.SPADES:
                    return head.name

        self.assertEqual(first([Suit.SPADES]), "SPADES")

    def test_decorator_with_parentheses(self):
        @exhaustive()
        def flag(b: bool) -> int:
            match b:
                case True:
                    return 1
                case False:
                    return 0

        self.assertEqual(flag(False), 0)

    def test_functions_without_match(self):
        @exhaustive
        def plain(x):
            return x

        self.assertEqual(plain(3), 3)
        self.assertEqual(plain.__pysealed_check__.matches, [])


# ============================================================
# Tests that SHOULD FAIL (non-exhaustive matches)
# ============================================================

class TestRejectedMatches(unittest.TestCase):
    """Incomplete matches fail when the function is defined"""

    def test_missing_nested_variant(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def evaluate_partial(e: Expr) -> int:
                match e:
                    case Num(value=v):
                        return v
                    case Neg():
                        return 0
                    case Add():
                        return 1
        self.assertEqual(ctx.exception.uncovered, ["Mul()"])

    def test_missing_field_value(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def describe_partial(r: Response) -> str:
                match r:
                    case Ok(True):
                        return "cached"
                    case Err():
                        return "error"
        self.assertEqual(ctx.exception.uncovered, ["Ok(cached=False)"])

    def test_missing_enum_member(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def red_only(s: Suit) -> str:
                match s:
                    case Suit.HEARTS:
                        return "red"
        self.assertEqual(ctx.exception.uncovered, ["Suit.SPADES"])

    def test_generic_root_missing_variant(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def unwrap_some(o: Option[int]) -> int:
                match o:
                    case Some(value=v):
                        return v
        self.assertEqual(ctx.exception.uncovered, ["Nothing()"])

    def test_guarded_arm(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def guarded(m: Mammal) -> str:
                match m:
                    case Human():
                        return "human"
                    case Cat() if m.name:
                        return "named cat"
        self.assertIn("Guard conditions", str(ctx.exception))

    def test_unannotated_subject(self):
        with self.assertRaises(InexhaustiveMatch):
            @exhaustive
            def untyped(m):
                match m:
                    case Human():
                        return "human"
                    case Cat():
                        return "cat"

    def test_multiple_subjects(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def both_partial(a: bool, b: bool) -> str:
                match a, b:
                    case True, _:
                        return "first"
                    case _, True:
                        return "second"
        self.assertEqual(ctx.exception.uncovered, ["(False, False)"])

    def test_location_points_at_match(self):
        with self.assertRaises(InexhaustiveMatch) as ctx:
            @exhaustive
            def red_only(s: Suit) -> str:
                match s:
                    case Suit.HEARTS:
                        return "red"
        filename, _, line = ctx.exception.location.rpartition(':')
        self.assertEqual(os.path.abspath(filename), os.path.abspath(__file__))
        with open(__file__, encoding='utf-8') as f:
            source_line = f.readlines()[int(line) - 1]
        self.assertEqual(source_line.strip(), "match s:")


if __name__ == '__main__':
    unittest.main()
