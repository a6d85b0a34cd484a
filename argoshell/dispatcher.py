"""
Argoshell execution engine: one input line in, one outcome out.

A dispatch walks a small state machine:

    IDLE → PARSING → STACK_ONLY                                  → IDLE
                   → RESOLVING → BINDING → INVOKING → COMPLETED  → IDLE
                                                   → CANCELED
                                                   → ERRORED

- PARSING: the line is tokenized; malformed input is reported and nothing runs.
- STACK_ONLY: push/pop/clear lines only touch the argument stack.
- RESOLVING: the first token of (stack + tokens) names the command; a miss goes to
  the default command when the table has one, else to default_action().
- BINDING: binder faults are reported with the command's syntax.
- INVOKING: the handler runs under a cancellation context; its result goes to the
  renderer, its exception is reported as an invocation fault.

Every fault is recovered here: dispatch() never raises for user input. Faults are
routed through Dispatcher.trigger(), which honours a host-installed report hook
(@dispatcher.fallback) before falling back to the rich console.
"""
import copy
import enum
import logging
from types import MappingProxyType

from . import rendering
from .binder import bind, flagname, injectable, isflag
from .cancellation import CancellationContext, CancellationToken, execute
from .commands import WIDTH, CommandTable
from .conversions import choicesof, converters as _converters, tagof
from .faults import (
    CanceledError,
    CommandNotFoundError,
    InvocationError,
    MalformedInputError,
    ShellException,
    trigger,
)
from .injection import InjectableRegistry
from .ranking import quote_if_needed, rank_all
from .stack import ArgumentStack
from .tokenizer import tokenize, unquote
from .utils import Unset, nullify

logger = logging.getLogger(__name__)

BOOLEANS = ("Y", "N", "true", "false")


class State(enum.Enum):
    IDLE = "idle"
    PARSING = "parsing"
    STACK_ONLY = "stack-only"
    RESOLVING = "resolving"
    BINDING = "binding"
    INVOKING = "invoking"
    COMPLETED = "completed"
    CANCELED = "canceled"
    ERRORED = "errored"
    EXITED = "exited"


class Dispatcher:
    """
    parse → stack control → resolve → bind → invoke → report.

    options
    - registry: InjectableRegistry shared by every dispatch (the dispatcher registers
      itself in it, so handlers can ask for it by annotation).
    - push, pop, clear: argument stack control tokens.
    - prog, colorful, fancy: fault rendering options.
    - delay, interval, keypress: cancel poller timing and input source; without a
      keypress source invocations can only be canceled with Ctrl-C.
    - history: callable returning prior input lines, used for suggestions.
    - renderer: callable(result, console) used for handler results.
    """

    def __init__(
            self,
            commands=(),
            /,
            *,
            registry=Unset,
            push="\\",
            pop="..",
            clear="...",
            prog=Unset,
            colorful=True,
            fancy=False,
            delay=0.2,
            interval=0.1,
            keypress=Unset,
            history=Unset,
            renderer=Unset,
            converters=Unset,
            console=Unset,
    ):
        self.commands = commands if isinstance(commands, CommandTable) else CommandTable(commands)
        self.registry = InjectableRegistry() if registry is Unset else registry
        self.registry.register(self)
        self.stack = ArgumentStack(push, pop, clear)
        self.prog = nullify(prog, getattr(__import__("__main__"), "__prog__", "shell"))
        self.colorful = colorful
        self.fancy = fancy
        self.delay = delay
        self.interval = interval
        self.keypress = keypress
        self.recall = nullify(history, tuple)
        self.renderer = nullify(renderer, rendering.render)
        self.converters = nullify(converters, _converters)
        self.console = nullify(console, rendering.console)

        self._state = State.IDLE
        self._outcome = Unset
        self._fallback = Unset

    @property
    def state(self):
        return self._state

    @property
    def outcome(self):
        """terminal state of the last dispatch (Unset before the first one)."""
        return self._outcome

    @property
    def names(self):
        """every name a line can start with."""
        return self.commands.names

    @property
    def options(self):
        return MappingProxyType({"prog": self.prog, "colorful": self.colorful, "fancy": self.fancy})

    def register(self, type, instance=Unset, /):
        """register an injectable capability (see InjectableRegistry.register)."""
        return self.registry.register(type, instance)

    def fallback(self, fallback, /):
        """
        install the fault report hook; usable as a decorator.

        the hook receives every fault (with runtime options merged) instead of the
        console. it can be set only once.
        """
        if not callable(fallback):
            raise TypeError("dispatcher fallback must be callable")
        if self._fallback is not Unset:
            raise TypeError("dispatcher fallback cannot be overridden")
        self._fallback = fallback
        return fallback

    def trigger(self, fault, /, **options):
        if self._fallback is not Unset:
            self._fallback(copy.replace(fault, **self.options | options))
        else:
            trigger(fault, **self.options | options)

    # --- parsing -------------------------------------------------------

    def parse(self, line, /):
        return tokenize(line)

    def context(self, tokens, /):
        """stack content followed by the new tokens: [name, *arguments]."""
        return self.stack.combine(tokens)

    def injectable(self, parameter, /):
        return injectable(parameter, self.registry)

    def resolve(self, name, /):
        """descriptor registered under `name` (case-insensitive, quotes removed), or Unset."""
        try:
            return self.commands[unquote(name)]
        except KeyError:
            return Unset

    # --- dispatch ------------------------------------------------------

    def _finish(self, outcome):
        self._outcome = outcome
        self._state = State.IDLE
        logger.debug("dispatch finished: %s", outcome.value)
        return outcome is State.COMPLETED

    def dispatch(self, line, /):
        """
        run one input line (a string, or an already tokenized sequence).

        returns True when a command ran to completion; any failure has already
        been reported when this returns False.
        """
        self._state = State.PARSING
        if isinstance(line, str):
            try:
                tokens = self.parse(line)
            except MalformedInputError as fault:
                self.trigger(fault)
                return self._finish(State.ERRORED)
        else:
            tokens = [token for token in map(str, line) if token.strip()]

        if not tokens:
            return self._finish(State.IDLE)

        if self.stack.control(tokens):
            self._state = State.STACK_ONLY
            logger.debug("stack changed: %r", self.stack)
            return self._finish(State.STACK_ONLY)

        name, *arguments = self.context(tokens)

        self._state = State.RESOLVING
        descriptor = self.resolve(name)
        if descriptor is Unset:
            # names listed beyond the table are built-ins of the default action
            builtin = unquote(name).casefold() in {known.casefold() for known in self.names}
            if builtin or (descriptor := self.commands.fallback) is Unset:
                logger.debug("no command named %r, running the default action", name)
                return self._finish(self._default(name, arguments))
            arguments = [name, *arguments]

        return self._finish(self.invoke(descriptor, arguments))

    def invoke(self, descriptor, arguments, /):
        """bind `arguments` to `descriptor` and run it; returns the terminal state."""
        self._state = State.BINDING
        context = CancellationContext(self.keypress, delay=self.delay, interval=self.interval)
        registry = self.registry.overlay({CancellationToken: context.token})
        try:
            invocation = bind(arguments, descriptor, registry, converters=self.converters)
        except ShellException as fault:
            hidden = lambda parameter: injectable(parameter, registry)
            self.trigger(fault, details=(
                *fault.options.get("details", ()), "syntax: %s" % descriptor.syntax(hidden)
            ))
            return State.ERRORED

        logger.debug("invoking %r", invocation)
        self._state = State.INVOKING
        with context:
            try:
                result = execute(invocation, context.token)
            except CanceledError as fault:
                self.trigger(fault)
                return State.CANCELED
            except ShellException as fault:
                self.trigger(fault)
                return State.ERRORED
            except Exception as exception:
                logger.debug("command %r failed", descriptor.name, exc_info=True)
                self.trigger(InvocationError.wrap(exception, command=descriptor.name))
                return State.ERRORED

        self.on_result(result)
        return State.COMPLETED

    def _default(self, name, arguments):
        try:
            result = self.default_action(name, arguments)
        except ShellException as fault:
            self.trigger(fault)
            return State.ERRORED
        except Exception as exception:
            self.trigger(InvocationError.wrap(exception, command=name))
            return State.ERRORED
        self.on_result(result)
        return State.COMPLETED

    def default_action(self, name, arguments, /):
        """
        handle a line whose command name is not registered.

        the base implementation reports the miss with "did you mean" suggestions;
        subclasses handle their built-in commands here and defer to it otherwise.
        """
        raise self.notfound(name)

    def notfound(self, name, /):
        """a command-not-found fault with "did you mean" suggestions."""
        suggestions = rank_all(self.names, name)
        return CommandNotFoundError(
            "command %r not found" % name,
            name=name,
            suggestions=tuple(suggestions),
            hint="did you mean %s?" % " or ".join(map(repr, suggestions[:3])) if suggestions else
                 "type 'help' to list the available commands",
        )

    def on_result(self, result, /):
        self.renderer(result, self.console)

    # --- help ----------------------------------------------------------

    def syntax(self, name, /):
        if (descriptor := self.resolve(name)) is Unset:
            raise self.notfound(name)
        return descriptor.syntax(self.injectable)

    def help(self, name=Unset, /):
        """full listing (names padded to a fixed width), or one command's help and syntax."""
        if name is Unset:
            return "\n".join(
                "%s %s" % (descriptor.name.ljust(WIDTH), descriptor.help)
                for descriptor in self.commands.values()
            )
        if (descriptor := self.resolve(name)) is Unset:
            raise self.notfound(name)
        return "command %s %s\nsyntax: %s" % (
            descriptor.name, descriptor.help, descriptor.syntax(self.injectable)
        )

    # --- suggestions ---------------------------------------------------

    def suggest(self, text, index, /):
        """
        raw completion candidates for the word of `text` starting at `index`.

        the candidates are not ranked; see complete().
        """
        try:
            tokens = self.parse(text)
        except MalformedInputError:
            return []

        tokens = self.context(tokens)
        if text.endswith(" ") and tokens:
            tokens.append("")
        if len(tokens) < 2:
            return list(self.names)

        name, *arguments = tokens
        if (descriptor := self.resolve(name)) is Unset:
            return list(self.names)

        visible = [parameter for parameter in descriptor.parameters if not self.injectable(parameter)]
        last = arguments[-1]
        if isflag(last):
            return ["-" + parameter.name for parameter in visible]

        flagged = set()
        ordinal = 0
        position = 0
        while position < len(arguments):
            if isflag(arguments[position]):
                flagged.add(flagname(arguments[position]).casefold())
                position += 2
                continue
            ordinal += 1
            position += 1

        if len(arguments) >= 2 and isflag(arguments[-2]):
            selected = descriptor.parameter(flagname(arguments[-2]))
        else:
            free = [parameter for parameter in visible if parameter.name.casefold() not in flagged]
            if ordinal > len(free):
                return []
            selected = free[max(0, ordinal - 1)]

        if selected is Unset:
            return []
        return self._candidates(name, selected, last, index, ordinal)

    def _candidates(self, name, parameter, hint, index, ordinal):
        if callable(parameter.suggest):
            try:
                result = self.registry.overlay({str: hint, int: index}).call(parameter.suggest)
            except Exception:
                logger.warning("suggestion provider for %r failed", parameter.name, exc_info=True)
            else:
                if result and (result := [str(item) for item in result]):
                    return result

        if tagof(parameter.type) == "enum":
            return list(choicesof(parameter.type))
        if tagof(parameter.type) == "boolean":
            return list(BOOLEANS)

        values = []
        for item in self.recall():
            if not item.casefold().startswith(name.casefold()):
                continue
            try:
                tokens = self.parse(item)
            except MalformedInputError:
                continue
            if ordinal < len(tokens) and tokens[ordinal]:
                values.append(tokens[ordinal])
        return values

    def complete(self, text, index, /):
        """ranked, quoted completions for the word of `text` starting at `index`."""
        return [quote_if_needed(candidate) for candidate in rank_all(self.suggest(text, index), text[index:])]

    def __repr__(self):
        return "dispatcher(%s)" % ", ".join(map(repr, self.commands.names))


__all__ = (
    "State",
    "Dispatcher",
)
