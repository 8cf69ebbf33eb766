# python
"""
Parsing module behavioral tests (token cursor, structs, unions and parse()).

Scope
- Validate Tokens: immutability, take(), sequence behavior, input validation.
- Validate struct parsing: one token per plain field, delegated fields,
  conversion failures and exhausted input.
- Validate union parsing: case-insensitive variant selection, variant fields,
  unknown variants, enums and the unit() converter.
- Validate parse(): trailing-token rejection, callbacks, string/argv inputs
  and shell mode.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (parse, try_parse, Struct, TaggedUnion, Field, Variant).
"""

from __future__ import annotations

import contextlib
import decimal
import enum
import io
import sys
import unittest
from unittest import TestCase
from unittest.mock import patch

from arbor import (
    Tokens,
    Parsed,
    Field,
    Variant,
    Struct,
    TaggedUnion,
    parse_fields,
    parse_variants,
    try_parse,
    unit,
    parse,
    TooFewArgumentsError,
    BadTypeError,
    VariantNotFoundError,
    TooManyArgumentsError,
)


class Unit(enum.Enum):
    One = 1
    Two = 2
    Three = 3


class Pair(Struct):
    __fields__ = (Field("a", int), Field("b"))


class Action(TaggedUnion):
    __variants__ = (
        Variant("Tuple", Field("number", int), Field("pair", Pair, delegate=True)),
        Variant("Struct", Field("unit", unit(Unit)), Field("other", int)),
        Variant("Unit"),
    )


class Parent(Struct):
    __fields__ = (Field("pair", Pair, delegate=True), Field("action", Action, delegate=True))


class TestTokens(TestCase):
    """Behavioral tests for the token cursor."""

    def testTakeDoesNotMutate(self):
        tokens = Tokens(["a", "b"])
        token, rest = tokens.take()
        self.assertEqual(token, "a")
        self.assertEqual(rest, ("b",))
        self.assertEqual(tokens, ("a", "b"))
        self.assertEqual(rest.offset, 1)

    def testTakeOnEmptyRaises(self):
        with self.assertRaises(TooFewArgumentsError):
            Tokens().take()

    def testSequenceBehavior(self):
        tokens = Tokens(["a", "b", "c"]).take()[1]
        self.assertEqual(len(tokens), 2)
        self.assertEqual(tokens[0], "b")
        self.assertEqual(tokens[-1], "c")
        self.assertEqual(tokens[:1], ("b",))
        self.assertIn("c", tokens)
        self.assertNotIn("a", tokens)
        with self.assertRaises(IndexError):
            tokens[2]

    def testEmptyIsFalsy(self):
        self.assertFalse(Tokens())
        self.assertTrue(Tokens(["a"]))

    def testTokensPassThrough(self):
        tokens = Tokens(["a"])
        self.assertIs(Tokens(tokens), tokens)

    def testStringRejected(self):
        with self.assertRaises(TypeError):
            Tokens("a b")

    def testNonStringItemsRejected(self):
        with self.assertRaises(TypeError):
            Tokens(["a", 1])

    def testRepr(self):
        self.assertEqual(repr(Tokens(["a"])), "tokens(['a'])")


class TestStruct(TestCase):
    """Behavioral tests for struct parsing."""

    def testPlainFields(self):
        value, rest = try_parse(Pair, ["32", "Hello, world"])
        self.assertEqual(value, Pair(32, "Hello, world"))
        self.assertEqual(value.a, 32)
        self.assertFalse(rest)

    def testTooFewArguments(self):
        with self.assertRaises(TooFewArgumentsError):
            try_parse(Pair, ["32"])

    def testBadType(self):
        with self.assertRaises(BadTypeError):
            try_parse(Pair, ["", "Hello, world"])

    def testDelegatedFields(self):
        value, rest = try_parse(Parent, ["42", "Thank", "tuple", "32", "32", "Hello, world", "end"])
        self.assertEqual(value.pair, Pair(42, "Thank"))
        self.assertEqual(value.action, Action("Tuple", 32, Pair(32, "Hello, world")))
        self.assertEqual(list(rest), ["end"])

    def testDelegatedEnumFields(self):
        class Color(enum.Enum):
            White = 0
            Black = 1

        class Example(Struct):
            __fields__ = (Field("number", Unit, delegate=True), Field("color", Color, delegate=True))

        value, rest = try_parse(Example, ["One", "Black"])
        self.assertEqual((value.number, value.color), (Unit.One, Color.Black))
        self.assertFalse(rest)

    def testArithmeticConverterFailureIsBadType(self):
        class Price(Struct):
            __fields__ = (Field("amount", decimal.Decimal),)

        self.assertEqual(try_parse(Price, ["1.50"]).value.amount, decimal.Decimal("1.50"))
        with self.assertRaises(BadTypeError):
            try_parse(Price, ["abc"])

    def testParseFieldsReturnsTuple(self):
        values, rest = parse_fields((Field("x", int), Field("y", float)), ["1", "2.5", "z"])
        self.assertEqual(values, (1, 2.5))
        self.assertEqual(rest, ["z"])

    def testWrongArity(self):
        with self.assertRaises(TypeError):
            Pair(1)

    def testFieldsMustBeFields(self):
        with self.assertRaises(TypeError):
            type("Broken", (Struct,), {"__fields__": ("a",)})

    def testRepr(self):
        self.assertEqual(repr(Pair(1, "x")), "Pair(a=1, b='x')")


class TestTaggedUnion(TestCase):
    """Behavioral tests for union parsing."""

    def testTupleVariantLeavesRemainder(self):
        value, rest = try_parse(Action, ["tuple", "32", "32", "Hello, world", "following"])
        self.assertEqual(value, Action("Tuple", 32, Pair(32, "Hello, world")))
        self.assertEqual(value.variant, "Tuple")
        self.assertEqual(value.number, 32)
        self.assertEqual(rest, ["following"])

    def testStructVariant(self):
        value, rest = try_parse(Action, ["struct", "three", "42"])
        self.assertEqual(value, Action("Struct", Unit.Three, 42))
        self.assertEqual(value.values, (Unit.Three, 42))
        self.assertFalse(rest)

    def testUnitVariant(self):
        value, rest = try_parse(Action, ["unit"])
        self.assertEqual(value, Action("Unit"))
        self.assertFalse(rest)

    def testVariantNamesAreCaseInsensitive(self):
        self.assertEqual(try_parse(Action, ["UNIT"]).value, Action("Unit"))

    def testUnknownVariant(self):
        with self.assertRaises(VariantNotFoundError):
            try_parse(Action, ["unexistant"])

    def testMissingVariant(self):
        with self.assertRaises(TooFewArgumentsError):
            try_parse(Action, [])

    def testMissingVariantFields(self):
        with self.assertRaises(TooFewArgumentsError):
            try_parse(Action, ["tuple"])

    def testBadVariantField(self):
        with self.assertRaises(BadTypeError):
            try_parse(Action, ["tuple", "test", "43", "Hello"])

    def testUnitConverterFailureIsBadType(self):
        with self.assertRaises(BadTypeError):
            try_parse(Action, ["struct", "four", "42"])

    def testUnknownFieldAttribute(self):
        with self.assertRaises(AttributeError):
            Action("Unit").number

    def testVariantFactory(self):
        class Shape(TaggedUnion):
            __variants__ = (
                Variant("Square", Field("side", int), factory=lambda side: ("square", side)),
                Variant("Dot"),
            )

        self.assertEqual(try_parse(Shape, ["square", "3"]).value, ("square", 3))
        self.assertEqual(try_parse(Shape, ["dot"]).value, Shape("Dot"))

    def testParseVariants(self):
        (variant, values), rest = parse_variants(Action.__variants__, ["unit", "x"])
        self.assertEqual((variant.name, values), ("Unit", ()))
        self.assertEqual(rest, ["x"])

    def testDuplicateVariantNamesRejected(self):
        with self.assertRaises(ValueError):
            type("Broken", (TaggedUnion,), {"__variants__": (Variant("A"), Variant("a"))})

    def testReservedFieldNamesRejected(self):
        for name in ("variant", "values"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    type("Broken", (TaggedUnion,), {"__variants__": (Variant("Full", Field(name, int)),)})

    def testReservedFieldNamesAllowedWithFactory(self):
        class Tagged(TaggedUnion):
            __variants__ = (Variant("Full", Field("values", int), factory=lambda values: values),)

        self.assertEqual(try_parse(Tagged, ["full", "3"]).value, 3)

    def testUnknownVariantConstruction(self):
        with self.assertRaises(ValueError):
            Action("Missing")

    def testRepr(self):
        self.assertEqual(repr(Action("Struct", Unit.One, 1)), "Action.Struct(<Unit.One: 1>, 1)")


class TestEnums(TestCase):
    """Behavioral tests for enums and unit()."""

    def testEnumIsParseable(self):
        self.assertEqual(try_parse(Unit, ["TWO"]), Parsed(Unit.Two, Tokens()))

    def testEnumUnknownVariant(self):
        with self.assertRaises(VariantNotFoundError):
            try_parse(Unit, ["four"])

    def testUnitConverter(self):
        self.assertIs(unit(Unit)("oNe"), Unit.One)

    def testUnitConverterMessage(self):
        with self.assertRaisesRegex(ValueError, "Unexistant variant Four"):
            unit(Unit)("Four")

    def testUnitIsCached(self):
        self.assertIs(unit(Unit), unit(Unit))

    def testUnitRejectsNonEnum(self):
        with self.assertRaises(TypeError):
            unit(int)


class TestTryParse(TestCase):
    """Behavioral tests for try_parse() dispatch."""

    def testUnparseableTarget(self):
        with self.assertRaises(TypeError):
            try_parse(int, ["1"])

    def testHookMustReturnParsed(self):
        class Broken:
            @classmethod
            def __try_parse__(cls, tokens):
                return tokens.take()

        with self.assertRaises(TypeError):
            try_parse(Broken, ["a"])

    def testCustomHook(self):
        class Rest:
            @classmethod
            def __try_parse__(cls, tokens):
                return Parsed(list(tokens), Tokens())

        self.assertEqual(try_parse(Rest, ["a", "b"]).value, ["a", "b"])

    def testDelegateRequiresParseableType(self):
        with self.assertRaises(TypeError):
            Field("x", int, delegate=True)

    def testFieldNameMustBeIdentifier(self):
        with self.assertRaises(ValueError):
            Field("not a name")


class TestParse(TestCase):
    """Behavioral tests for parse()."""

    def testCompleteInput(self):
        value = parse(Parent, ["42", "Thank", "unit"])
        self.assertEqual(value.action, Action("Unit"))

    def testTooManyArguments(self):
        with self.assertRaises(TooManyArgumentsError):
            parse(Parent, ["42", "Thank", "tuple", "32", "32", "Hello, world", "end"])

    def testCallbackResultIsReturned(self):
        self.assertEqual(parse(Pair, ["1", "x"], lambda pair: pair.b * 2), "xx")

    def testCallbackMustBeCallable(self):
        with self.assertRaises(TypeError):
            parse(Pair, ["1", "x"], "callback")

    def testStringInputIsShellSplit(self):
        self.assertEqual(parse(Pair, "32 'Hello, world'"), Pair(32, "Hello, world"))

    def testDefaultsToArgv(self):
        with patch.object(sys, "argv", ["prog", "7", "seven"]):
            self.assertEqual(parse(Pair), Pair(7, "seven"))

    def testUnionThenInteger(self):
        class Tata(TaggedUnion):
            __variants__ = (Variant("One"), Variant("Two"), Variant("Three"))

        class Example(Struct):
            __fields__ = (Field("tata", Tata, delegate=True), Field("count", int))

        value = parse(Example, ["one", "32"])
        self.assertEqual((value.tata, value.count), (Tata("One"), 32))
        with self.assertRaises(VariantNotFoundError):
            parse(Example, ["unexistant"])
        with self.assertRaises(TooFewArgumentsError):
            parse(Example, ["two"])

    def testShellModePrintsAndExits(self):
        with contextlib.redirect_stderr(io.StringIO()) as buffer:
            with self.assertRaises(SystemExit) as context:
                parse(Pair, ["32"], shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("11201", buffer.getvalue())
        self.assertIn("Too Few Arguments", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
