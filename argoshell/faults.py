"""
Argoshell faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- ShellException: base type that carries message + options and knows how to render
  itself in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault on the console.
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: binding messages include the ordinal position of the
  offending token so users can learn by trying (“at third position”, etc.).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The tokenizer and binder raise faults; the dispatcher recovers every one of them at
  its boundary and calls trigger(fault, **ctx). Nothing raised here escapes a dispatch.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, humanize

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the shell (stable identifiers).

    grouping (by high-level domain)
    - input (111xx)
      • MALFORMED_INPUT
    - binding (112xx)
      • UNKNOWN_FLAG, DUPLICATE_PARAMETER, MISSING_VALUE, CONVERSION,
        MISSING_PARAMETERS, UNEXPECTED_ARGUMENT
    - routing (113xx)
      • COMMAND_NOT_FOUND
    - invocation (114xx)
      • INVOCATION, CANCELED
    """
    # --- input errors (111xx) ---
    MALFORMED_INPUT             = 11101

    # --- binding errors (112xx) ---
    UNKNOWN_FLAG                = 11201
    DUPLICATE_PARAMETER         = 11202
    MISSING_VALUE               = 11203
    CONVERSION                  = 11204
    MISSING_PARAMETERS          = 11205
    UNEXPECTED_ARGUMENT         = 11206

    # --- routing errors (113xx) ---
    COMMAND_NOT_FOUND           = 11301

    # --- invocation errors (114xx) ---
    INVOCATION                  = 11401
    CANCELED                    = 11402

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ShellException(Exception):
    """
    base class of every user-facing fault.

    - message: one lowercased sentence describing what went wrong.
    - options: read-only mapping with rendering context; the renderer looks at
      'title', 'code', 'hint', 'prog', 'fancy' and 'colorful'. other keys carry
      fault-specific context ('token', 'index', 'choices', 'missing', ...).
    """
    __defaults__ = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message or "")
        self.message = message
        self.options = MappingProxyType(type(self).__defaults__ | options)

    def __str__(self):
        return self.message or ""

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "error-detail": "#8A8A96",  # dimmer gray for syntax and choices
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style])

        prog = text(getattr(main, "__prog__", self.options.get("prog", "shell")), "prog-name")
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code else "?", "code"),
            " | ",
            text(str(self.options.get("title", "error")).title(), "error-title"),
            " ]"
        )
        body = [text(self.message, "error-message")]
        body.extend(text(detail, "error-detail") for detail in self.options.get("details", ()))
        if self.options.get("hint"):
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(self.options["hint"], "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __trigger__(self) -> None:
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        clone = type(self)(self.message, **{**self.options, **overrides})
        clone.__cause__ = self.__cause__
        clone.__context__ = self.__context__
        return clone


class MalformedInputError(ShellException):
    __defaults__ = {"title": "malformed input", "code": FaultCode.MALFORMED_INPUT}


class UnknownFlagError(ShellException):
    __defaults__ = {"title": "unknown flag", "code": FaultCode.UNKNOWN_FLAG}


class DuplicateParameterError(ShellException):
    __defaults__ = {"title": "duplicate parameter", "code": FaultCode.DUPLICATE_PARAMETER}


class MissingValueError(ShellException):
    __defaults__ = {"title": "missing value", "code": FaultCode.MISSING_VALUE}


class ConversionError(ShellException):
    __defaults__ = {"title": "invalid value", "code": FaultCode.CONVERSION}


class MissingRequiredParametersError(ShellException):
    __defaults__ = {"title": "missing parameters", "code": FaultCode.MISSING_PARAMETERS}


class UnexpectedArgumentError(ShellException):
    __defaults__ = {"title": "unexpected argument", "code": FaultCode.UNEXPECTED_ARGUMENT}


class CommandNotFoundError(ShellException):
    __defaults__ = {"title": "command not found", "code": FaultCode.COMMAND_NOT_FOUND}


class InvocationError(ShellException):
    __defaults__ = {"title": "command failed", "code": FaultCode.INVOCATION}

    @classmethod
    def wrap(cls, exception, /, **options):
        """
        build an invocation fault from a handler exception.

        the message lists the whole exception chain (explicit __cause__, else the
        implicit __context__), innermost cause first; every entry is rendered as
        "<Humanized Type>: <message>" with the Error/Exception suffix dropped
        when more than one word remains ("Value Error", but "File Not Found").
        """
        chain = []
        seen = set()
        while exception is not None and id(exception) not in seen:
            seen.add(id(exception))
            chain.append(exception)
            exception = exception.__cause__ or (
                None if exception.__suppress_context__ else exception.__context__
            )

        lines = []
        for exception in reversed(chain):
            name = type(exception).__name__
            kind = humanize(name.removesuffix("Exception").removesuffix("Error"))
            if " " not in kind:
                kind = humanize(name)
            lines.append(f"{kind}: {exception}" if kind else str(exception))

        fault = cls(lines[0], details=tuple(lines[1:]), chain=tuple(reversed(chain)), **options)
        fault.__cause__ = chain[0]
        return fault


class CanceledError(ShellException):
    """
    raised (or reported) when an invocation is canceled.

    handlers observing their CancellationToken may raise it themselves through
    token.raise_if_canceled(); the engine reports it the same way as a user cancel.
    """
    __defaults__ = {"title": "canceled", "code": FaultCode.CANCELED}

    def __init__(self, message="command canceled", /, **options):
        super().__init__(message, **options)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ShellException).
    - options are merged into a copy of the fault via __replace__(**options) before triggering.
    - rendering happens on the stderr rich console.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ShellException",
    "MalformedInputError",
    "UnknownFlagError",
    "DuplicateParameterError",
    "MissingValueError",
    "ConversionError",
    "MissingRequiredParametersError",
    "UnexpectedArgumentError",
    "CommandNotFoundError",
    "InvocationError",
    "CanceledError",
    "trigger",
    "getdoc",
)
