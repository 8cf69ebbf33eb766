"""
Tests for the internal helpers (Unset, coalesce, rename, mirror).

This module verifies semantic guarantees of the `Unset` sentinel:
- Singleton identity (single instance per interpreter process).
- Falsy semantics and representation behavior.
- Copying, deep copying, pickling, and thread safety properties.
- Finality (type cannot be subclassed).
and the contracts of the small helpers built around it.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from types import MappingProxyType
from unittest import TestCase

from arbor.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def setUp(self) -> None:
        self.unset: UnsetType = UnsetType()

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(self.unset, UnsetType())
        self.assertIs(Unset, self.unset)

    def testRepr(self) -> None:
        self.assertEqual(repr(self.unset), "Unset")

    def testFalsely(self) -> None:
        self.assertFalse(bool(self.unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values (None/False).
        """
        self.assertNotEqual(self.unset, None)
        self.assertNotEqual(self.unset, False)  # noqa: E712

    def testUnionWithTypes(self) -> None:
        """
        `str | Unset` can be used in isinstance checks.
        """
        self.assertIsInstance("name", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance(Unset, Unset | str)
        self.assertNotIsInstance(None, str | Unset)

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(self.unset), self.unset)
        self.assertIs(copy.deepcopy(self.unset), self.unset)

    def testPickleRoundTrip(self) -> None:
        """
        Pickle round-trips preserve the identity of the singleton.
        """
        data: bytes = pickle.dumps(self.unset)
        self.assertIs(pickle.loads(data), self.unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results: list[UnsetType] = []
        lock: Lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 16)
        for instance in results:
            self.assertIs(instance, self.unset)

    def testFinalType(self) -> None:
        with self.assertRaises(TypeError):
            type("unsettype", (UnsetType,), {})


class CoalesceTest(TestCase):

    def testUnsetResolvesToDefault(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testUnsetWithoutDefaultIsNone(self) -> None:
        self.assertIsNone(coalesce(Unset))

    def testFalseyValuesArePreserved(self) -> None:
        for object in (None, 0, "", ()):
            self.assertIs(coalesce(object, "fallback"), object)


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testWrongArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(print, "a", "b")

    def testNonStringName(self) -> None:
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)

    def testBuiltinIsRejected(self) -> None:
        with self.assertRaises(TypeError):
            rename(len, "length")


class MirrorTest(TestCase):

    def setUp(self) -> None:
        class Holder:
            items = mirror("items")
            mapping = mirror("mapping")
            tags = mirror("tags")
            name = mirror("name")

            def __init__(self):
                self._items = [1, 2]
                self._mapping = {"a": 1}
                self._tags = {"x"}
                self._name = "holder"

        self.holder = Holder()

    def testContainersAreFrozen(self) -> None:
        self.assertEqual(self.holder.items, (1, 2))
        self.assertIsInstance(self.holder.mapping, MappingProxyType)
        self.assertEqual(self.holder.tags, frozenset({"x"}))

    def testScalarsAreReturnedAsIs(self) -> None:
        self.assertEqual(self.holder.name, "holder")

    def testReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            self.holder.name = "other"

    def testNonStringName(self) -> None:
        with self.assertRaises(TypeError):
            mirror(42)


if __name__ == '__main__':
    unittest.main()
