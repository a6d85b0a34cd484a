"""
Execution engine tests.

Scope
- End-to-end dispatch of a line: parse, stack, resolve, bind, invoke, render.
- Fault recovery: every user-facing fault is reported, none escapes dispatch().
- Default command, "did you mean" suggestions, help and syntax text.
- Cooperative cancellation through the injected CancellationToken.
- Autocomplete candidates.

Conventions
- Test method names follow CamelCase per project convention.
- Results and faults are captured through the renderer and fallback hooks.
"""
import enum
import threading
import time
import unittest
from unittest import TestCase

from argoshell import CancellationToken, Dispatcher, Param, State, command
from argoshell.faults import (
    CanceledError,
    CommandNotFoundError,
    ConversionError,
    InvocationError,
    MalformedInputError,
    MissingRequiredParametersError,
    MissingValueError,
)


class Color(enum.Enum):
    White = 0
    Red = 1


def build(*descriptors, **options):
    results = []
    faults = []
    dispatcher = Dispatcher(
        descriptors,
        renderer=lambda result, console: results.append(result),
        **options,
    )
    dispatcher.fallback(faults.append)
    return dispatcher, results, faults


class TestDispatch(TestCase):
    def setUp(self):
        self.calls = []

        @command("echo")
        def echo(text, color=Color.White):
            self.calls.append((text, color))
            return text

        @command("connect")
        def connect(port: int):
            self.calls.append(port)

        self.dispatcher, self.results, self.faults = build(echo, connect)

    def testEndToEnd(self):
        self.assertTrue(self.dispatcher.dispatch('echo -color Red "hi there"'))
        self.assertEqual(self.calls, [("hi there", Color.Red)])
        self.assertEqual(self.results, ["hi there"])
        self.assertEqual(self.faults, [])
        self.assertIs(self.dispatcher.outcome, State.COMPLETED)
        self.assertIs(self.dispatcher.state, State.IDLE)

    def testCommandNameIsCaseInsensitive(self):
        self.assertTrue(self.dispatcher.dispatch("ECHO hi"))
        self.assertEqual(self.calls, [("hi", Color.White)])

    def testTokenSequenceIsAccepted(self):
        self.assertTrue(self.dispatcher.dispatch(["echo", "hi"]))

    def testBlankAndCommentLinesDoNothing(self):
        self.assertFalse(self.dispatcher.dispatch("   "))
        self.assertFalse(self.dispatcher.dispatch("# echo hi"))
        self.assertEqual(self.calls, [])
        self.assertEqual(self.faults, [])

    def testMalformedInputIsReported(self):
        self.assertFalse(self.dispatcher.dispatch('echo "hi'))
        self.assertIsInstance(self.faults[0], MalformedInputError)
        self.assertIs(self.dispatcher.outcome, State.ERRORED)
        self.assertEqual(self.calls, [])

    def testBinderFaultCarriesSyntax(self):
        self.assertFalse(self.dispatcher.dispatch("echo hi -color"))
        fault, = self.faults
        self.assertIsInstance(fault, MissingValueError)
        self.assertIn("syntax: echo (str text) (Color [color] = White)", fault.options["details"])

    def testConversionFaultKeepsChoices(self):
        self.dispatcher.dispatch("echo hi Blue")
        fault, = self.faults
        self.assertIsInstance(fault, ConversionError)
        self.assertEqual(fault.options["details"][0], "valid values for Color: White, Red")
        self.assertTrue(fault.options["details"][-1].startswith("syntax: "))

    def testMissingRequiredParameter(self):
        self.assertFalse(self.dispatcher.dispatch("connect"))
        fault, = self.faults
        self.assertIsInstance(fault, MissingRequiredParametersError)
        self.assertEqual(fault.options["missing"], ("port",))

    def testFaultsCarryRuntimeOptions(self):
        self.dispatcher.dispatch("connect")
        self.assertEqual(self.faults[0].options["prog"], self.dispatcher.prog)
        self.assertTrue(self.faults[0].options["colorful"])

    def testBindingIsIdempotent(self):
        self.dispatcher.dispatch("echo -color Red hi")
        self.dispatcher.dispatch("echo -color Red hi")
        self.assertEqual(self.calls, [("hi", Color.Red), ("hi", Color.Red)])


class TestStack(TestCase):
    def testPushedContextPrefixesLines(self):
        seen = []

        @command("users")
        def users(action):
            seen.append(action)

        dispatcher, results, faults = build(users)
        paths = []
        dispatcher.stack.listen(paths.append)

        self.assertFalse(dispatcher.dispatch("users \\"))
        self.assertIs(dispatcher.outcome, State.STACK_ONLY)
        self.assertEqual(paths, [("users",)])

        self.assertTrue(dispatcher.dispatch("list"))
        self.assertEqual(seen, ["list"])

        dispatcher.dispatch("...")
        self.assertEqual(len(dispatcher.stack), 0)
        self.assertEqual(faults, [])


class TestResolution(TestCase):
    def testNotFoundSuggestsNames(self):
        dispatcher, results, faults = build(
            command(lambda: None, name="get-file"),
            command(lambda: None, name="list"),
        )
        self.assertFalse(dispatcher.dispatch("gf"))
        fault, = faults
        self.assertIsInstance(fault, CommandNotFoundError)
        self.assertEqual(fault.options["suggestions"], ("get-file",))
        self.assertIn("get-file", fault.options["hint"])

    def testDefaultCommandReceivesNameAndArguments(self):
        received = []

        @command("run", default=True)
        def run(program, argument=""):
            received.append((program, argument))

        dispatcher, results, faults = build(run)
        self.assertTrue(dispatcher.dispatch("notepad readme.txt"))
        self.assertEqual(received, [("notepad", "readme.txt")])

    def testDefaultActionCanBeOverridden(self):
        class Echoing(Dispatcher):
            def default_action(self, name, arguments):
                return [name, *arguments]

        results = []
        dispatcher = Echoing(renderer=lambda result, console: results.append(result))
        self.assertTrue(dispatcher.dispatch("anything goes"))
        self.assertEqual(results, [["anything", "goes"]])


class TestInvocation(TestCase):
    def testHandlerExceptionChainIsReported(self):
        @command("load")
        def load(path):
            try:
                raise FileNotFoundError(f"{path} is missing")
            except FileNotFoundError as exception:
                raise RuntimeError("cannot load configuration") from exception

        dispatcher, results, faults = build(load)
        self.assertFalse(dispatcher.dispatch("load app.ini"))
        fault, = faults
        self.assertIsInstance(fault, InvocationError)
        self.assertEqual(fault.message, "File Not Found: app.ini is missing")
        self.assertEqual(fault.options["details"], ("Runtime Error: cannot load configuration",))
        self.assertIs(dispatcher.outcome, State.ERRORED)

    def testKeywordOnlyParametersArePassedByName(self):
        @command("shout")
        def shout(text, *, loud=False, times: int = 1):
            return (text.upper() if loud else text) * times

        dispatcher, results, faults = build(shout)
        self.assertTrue(dispatcher.dispatch("shout hi -loud -times 2"))
        self.assertEqual(results, ["HIHI"])
        self.assertTrue(dispatcher.dispatch("shout hi"))
        self.assertEqual(results, ["HIHI", "hi"])
        self.assertEqual(faults, [])

    def testBuiltinExceptionKeepsFullName(self):
        @command("parse")
        def parse(value):
            return int(value)

        dispatcher, results, faults = build(parse)
        self.assertFalse(dispatcher.dispatch("parse abc"))
        fault, = faults
        self.assertTrue(fault.message.startswith("Value Error: "), fault.message)

    def testCoroutineHandler(self):
        @command("later")
        async def later(value: int):
            return value * 2

        dispatcher, results, faults = build(later)
        self.assertTrue(dispatcher.dispatch("later 21"))
        self.assertEqual(results, [42])

    def testDispatcherIsInjectable(self):
        @command("whoami")
        def whoami(dispatcher: Dispatcher):
            return dispatcher

        dispatcher, results, faults = build(whoami)
        dispatcher.dispatch("whoami")
        self.assertIs(results[0], dispatcher)
        self.assertEqual(dispatcher.syntax("whoami"), "whoami <no parameters>")

    def testRegisteredCapabilityIsInjected(self):
        class Clock:
            pass

        clock = Clock()

        @command("tick")
        def tick(clock: Clock, times: int = 1):
            return clock, times

        dispatcher, results, faults = build(tick)
        dispatcher.register(Clock, clock)
        dispatcher.dispatch("tick 2")
        self.assertEqual(results, [(clock, 2)])


class TestCancellation(TestCase):
    def testCooperativeHandlerIsCanceled(self):
        observed = []

        @command("spin")
        def spin(token: CancellationToken):
            observed.append(token.wait(5))
            token.raise_if_canceled()

        dispatcher, results, faults = build(spin, keypress=lambda: True, delay=0.01, interval=0.01)
        self.assertFalse(dispatcher.dispatch("spin"))
        self.assertIs(dispatcher.outcome, State.CANCELED)
        self.assertIsInstance(faults[0], CanceledError)
        self.assertEqual(faults[0].message, "command canceled")
        self.assertEqual(results, [])

    def testCancellationIsAdvisory(self):
        finished = threading.Event()

        @command("stubborn")
        def stubborn():
            time.sleep(0.3)
            finished.set()

        dispatcher, results, faults = build(stubborn, keypress=lambda: True, delay=0.01, interval=0.01)
        self.assertFalse(dispatcher.dispatch("stubborn"))
        self.assertIs(dispatcher.outcome, State.CANCELED)
        self.assertFalse(finished.is_set())
        self.assertTrue(finished.wait(5))

    def testNoKeypressCompletes(self):
        @command("quick")
        def quick(token: CancellationToken):
            return token.canceled

        dispatcher, results, faults = build(quick, keypress=lambda: False, delay=0.01, interval=0.01)
        self.assertTrue(dispatcher.dispatch("quick"))
        self.assertEqual(results, [False])


class TestHelp(TestCase):
    def setUp(self):
        @command("echo", help="print text")
        def echo(text, color=Color.White):
            pass

        @command("exit", help="leave")
        def exit():
            pass

        self.dispatcher, self.results, self.faults = build(echo, exit)

    def testListing(self):
        self.assertEqual(
            self.dispatcher.help(),
            "echo".ljust(20) + " print text\n" + "exit".ljust(20) + " leave",
        )

    def testSingleCommand(self):
        self.assertEqual(
            self.dispatcher.help("ECHO"),
            "command echo print text\nsyntax: echo (str text) (Color [color] = White)",
        )

    def testUnknownCommand(self):
        with self.assertRaises(CommandNotFoundError):
            self.dispatcher.help("nope")


class TestSuggestions(TestCase):
    def setUp(self):
        @command("echo")
        def echo(text, color=Color.White, loud=False):
            pass

        def folders(hint: str):
            return ["Desktop", "My Music", "Pictures"]

        @command("cd")
        def cd(directory=Param(suggest=folders)):
            pass

        @command("get-file")
        def get_file(path):
            pass

        self.history = ["echo first", "echo second", "cd Documents"]
        self.dispatcher, self.results, self.faults = build(
            echo, cd, get_file, history=lambda: self.history
        )

    def testCommandNames(self):
        self.assertEqual(self.dispatcher.suggest("", 0), ["echo", "cd", "get-file"])
        self.assertEqual(self.dispatcher.complete("gf", 0), ["get-file"])

    def testFlagNames(self):
        self.assertEqual(self.dispatcher.suggest("echo -", 5), ["-text", "-color", "-loud"])

    def testEnumValuesAfterFlag(self):
        self.assertEqual(self.dispatcher.suggest("echo -color ", 12), ["White", "Red"])
        self.assertEqual(self.dispatcher.complete("echo -color r", 12), ["Red"])

    def testBooleanValues(self):
        self.assertEqual(self.dispatcher.suggest("echo -loud ", 11), ["Y", "N", "true", "false"])

    def testProviderWinsAndCompletionsAreQuoted(self):
        self.assertEqual(self.dispatcher.complete("cd My", 3), ['"My Music"'])

    def testHistoryValuesAtSameSlot(self):
        self.assertEqual(self.dispatcher.suggest("echo ", 5), ["first", "second"])

    def testTooManyPositionals(self):
        self.assertEqual(self.dispatcher.suggest("get-file a b", 11), [])

    def testUnparsableText(self):
        self.assertEqual(self.dispatcher.suggest('echo "open', 5), [])

    def testProviderFailureFallsBack(self):
        def broken(hint: str):
            raise RuntimeError("boom")

        @command("open")
        def open_(name=Param(suggest=broken)):
            pass

        dispatcher, results, faults = build(open_)
        with self.assertLogs("argoshell.dispatcher", level="WARNING"):
            self.assertEqual(dispatcher.suggest("open ", 5), [])


if __name__ == "__main__":
    unittest.main()
