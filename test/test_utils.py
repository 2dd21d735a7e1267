"""
Utilities tests (Unset sentinel, coalesce, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

import copy
import pickle
import unittest
from unittest import TestCase

from argolex.utils import Unset, UnsetType, coalesce, mirror, rename


class TestUnset(TestCase):
    def testIsAFalseySingleton(self):
        self.assertFalse(Unset)
        self.assertIs(UnsetType(), Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testSurvivesCopiesAndPickling(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testWorksInUnions(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(3, str | Unset)


class TestCoalesce(TestCase):
    def testReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):
    def testDirectForm(self):
        function = rename(lambda: None, "named")
        self.assertEqual(function.__name__, "named")
        self.assertEqual(function.__qualname__, "named")

    def testDecoratorForm(self):
        @rename("other")
        def function():
            pass

        self.assertEqual(function.__name__, "other")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    def setUp(self):
        class Record:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, [2, 3]]
                self._table = {"a": {1, 2}}

        self.record = Record()

    def testContainersComeBackAsCopies(self):
        self.assertEqual(self.record.items, (1, (2, 3)))
        self.assertEqual(self.record.table, {"a": frozenset({1, 2})})
        self.record.table["b"] = 1
        self.assertNotIn("b", self.record.table)

    def testIsReadOnly(self):
        with self.assertRaises(AttributeError):
            self.record.items = ()


if __name__ == "__main__":
    unittest.main()
