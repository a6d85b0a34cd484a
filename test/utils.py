"""
Utility tests (sentinel, ordinals, identifier helpers).
"""
import unittest
from unittest import TestCase

from argoshell.utils import Unset, UnsetType, humanize, nullify, ordinal


class TestUnset(TestCase):
    def testSingletonAndFalsy(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Sub", (UnsetType,), {})

    def testUnionWithTypes(self):
        self.assertIsInstance("x", str | Unset)
        self.assertIsInstance(Unset, str | Unset)

    def testNullify(self):
        self.assertEqual(nullify(Unset, 3), 3)
        self.assertIsNone(nullify(None, 3))


class TestOrdinal(TestCase):
    def testWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")


class TestIdentifiers(TestCase):
    def testHumanize(self):
        self.assertEqual(humanize("FileNotFound"), "File Not Found")


if __name__ == "__main__":
    unittest.main()
