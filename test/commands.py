"""
Command layer tests (descriptors, decorator, table, syntax text).

Scope
- Signature-driven parameter specs (annotations, defaults, Param metadata).
- Case-insensitive table lookups and startup failures on duplicates.
- Discovery of descriptors declared on a host class.
- Syntax rendering of required, optional and injectable parameters.

Conventions
- Test method names follow CamelCase per project convention.
"""
import enum
import unittest
from unittest import TestCase

from argoshell import CommandDescriptor, CommandTable, Param, ParameterSpec, command
from argoshell.utils import Unset


class Color(enum.Enum):
    White = 0
    Red = 1


class TestCommandDecorator(TestCase):
    def testDefaultsFromFunction(self):
        @command
        def get_file(path, retries: int = 3):
            """fetch a file.

            longer description that is not part of the help line.
            """

        self.assertIsInstance(get_file, CommandDescriptor)
        self.assertEqual(get_file.name, "get-file")
        self.assertEqual(get_file.help, "fetch a file.")
        path, retries = get_file.parameters
        self.assertEqual((path.name, path.type, path.default), ("path", str, Unset))
        self.assertEqual((retries.name, retries.type, retries.default), ("retries", int, 3))

    def testTypeInferredFromDefault(self):
        @command("echo")
        def echo(text, color=Color.White, loud=False):
            pass

        self.assertIs(echo.parameter("color").type, Color)
        self.assertIs(echo.parameter("LOUD").type, bool)
        self.assertIs(echo.parameter("missing"), Unset)

    def testParamMetadata(self):
        def provider():
            return ["a"]

        @command(name="cd", help="change directory")
        def cd(directory=Param(suggest=provider, descr="target")):
            pass

        directory = cd.parameter("directory")
        self.assertIs(directory.suggest, provider)
        self.assertEqual(directory.descr, "target")
        self.assertIs(directory.default, Unset)
        self.assertTrue(directory.required)

    def testDescriptorStaysCallable(self):
        @command
        def add(a: int, b: int):
            return a + b

        self.assertEqual(add(2, 3), 5)

    def testVariadicParametersRejected(self):
        with self.assertRaises(TypeError):
            @command
            def bad(*args):
                pass

    def testInvalidNameRejected(self):
        with self.assertRaises(ValueError):
            command(lambda: None, name="two words")


class TestSyntax(TestCase):
    def testSyntaxFormat(self):
        @command("echo")
        def echo(text, color=Color.White):
            pass

        self.assertEqual(echo.syntax(), "echo (str text) (Color [color] = White)")

    def testNoParameters(self):
        @command("exit")
        def exit():
            pass

        self.assertEqual(exit.syntax(), "exit <no parameters>")

    def testInjectableParametersAreHidden(self):
        @command("status")
        def status(service=Param(inject=True), verbose=False):
            pass

        self.assertEqual(status.syntax(), "status (bool [verbose] = False)")


class TestCommandTable(TestCase):
    def testCaseInsensitiveLookup(self):
        @command("Echo")
        def echo(text):
            pass

        table = CommandTable([echo])
        self.assertIs(table["ECHO"], echo)
        self.assertIn("echo", table)
        self.assertEqual(table.names, ("Echo",))
        self.assertEqual(list(table), ["Echo"])

    def testDuplicateNamesAbort(self):
        first = command(lambda: None, name="list")
        second = command(lambda: None, name="LIST")
        with self.assertRaises(ValueError) as context:
            CommandTable([first, second])
        self.assertIn("duplicate definition", str(context.exception))

    def testSingleDefaultCommand(self):
        first = command(lambda name: None, name="a", default=True)
        second = command(lambda name: None, name="b", default=True)
        with self.assertRaises(ValueError):
            CommandTable([first, second])
        self.assertIs(CommandTable([first]).fallback, first)
        self.assertIs(CommandTable([]).fallback, Unset)

    def testScanBindsMethods(self):
        class Host:
            prefix = ">"

            def names(self):
                return ["x", "y"]

            @command("show")
            def show(self, text=Param(suggest="names")):
                return self.prefix + text

        host = Host()
        table = CommandTable.scan(host)
        descriptor = table["show"]
        self.assertEqual(descriptor("hi"), ">hi")
        self.assertEqual(descriptor.parameter("text").suggest(), ["x", "y"])

    def testScanRejectsMissingProvider(self):
        class Host:
            @command("show")
            def show(self, text=Param(suggest="nowhere")):
                pass

        with self.assertRaises(TypeError):
            CommandTable.scan(Host())

    def testUnboundDescriptorRejected(self):
        class Host:
            @command("show")
            def show(self):
                pass

        with self.assertRaises(TypeError):
            CommandTable([Host.show])

    def testParameterSpecValidation(self):
        with self.assertRaises(ValueError):
            ParameterSpec("1bad")
        with self.assertRaises(TypeError):
            ParameterSpec("fine", type=42)


if __name__ == "__main__":
    unittest.main()
