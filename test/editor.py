"""
Line editor adapter tests.
"""
import unittest
from unittest import TestCase

from prompt_toolkit.document import Document

from argoshell.editor import ShellCompleter, wordstart


class TestWordStart(TestCase):
    def testStartOfWordUnderCursor(self):
        self.assertEqual(wordstart(""), 0)
        self.assertEqual(wordstart("ech"), 0)
        self.assertEqual(wordstart("echo hi"), 5)
        self.assertEqual(wordstart("echo "), 5)

    def testSpacesInsideQuotesDoNotSplit(self):
        self.assertEqual(wordstart('cd "My Mu'), 3)


class TestShellCompleter(TestCase):
    def testCompletionsReplaceTheCurrentWord(self):
        calls = []

        def complete(text, index):
            calls.append((text, index))
            return ["echo", "exit"]

        completer = ShellCompleter(complete)
        completions = list(completer.get_completions(Document("help ex"), None))
        self.assertEqual(calls, [("help ex", 5)])
        self.assertEqual([completion.text for completion in completions], ["echo", "exit"])
        self.assertTrue(all(completion.start_position == -2 for completion in completions))


if __name__ == "__main__":
    unittest.main()
