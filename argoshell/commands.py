"""
Argoshell command layer: describe, register and look up shell commands.

What this module provides
- CommandDescriptor: one named operation (name, ordered parameter specs, help text,
  handler, default flag). Descriptors stay callable like the function they wrap.
- command(...): build a descriptor from a function signature, directly or as a decorator.
- CommandTable: immutable, case-insensitive mapping name → descriptor, built once
  before the shell loop starts. Duplicate names abort construction.

Core ideas
- Signature-driven: annotations give parameter types, defaults give optional values,
  and Param(...) defaults carry anything else (suggestion providers, injection).
- Registration is explicit: hosts hand descriptors to CommandTable(...), or let
  CommandTable.scan(host) collect the descriptors declared on the host's class.

Quick start
    from argoshell import command, CommandTable, Param

    class Color(enum.Enum):
        White = 0
        Red = 1

    @command("echo", help="print text in a color")
    def echo(text, color=Color.White):
        ...

    table = CommandTable([echo])
    table["ECHO"] is echo
"""
import enum
import inspect
from collections.abc import Mapping
from types import MappingProxyType, MethodType

from .parameters import Param, ParameterSpec
from .utils import Unset, nullify, rename, view

WIDTH = 20


def _infer(annotation, default):
    # annotation wins; otherwise the default's own type (None says nothing)
    if annotation is not inspect.Parameter.empty:
        return annotation
    if isinstance(default, Param):
        default = default.default
    if default not in (Unset, inspect.Parameter.empty, None):
        return type(default)
    return Unset


def _process_source(callback):
    """
    introspect a handler and materialize its parameter specs.

    returns (specs, unbound) where unbound is True when the first parameter is
    named 'self' (a method declared on a host class, bound later by scan()).
    """
    try:
        signature = inspect.signature(callback, eval_str=True)
    except TypeError:
        raise TypeError("command 'callback' must be callable") from None
    except ValueError:
        raise ValueError("command 'callback' must be an inspectable callable") from None

    parameters = list(signature.parameters.values())
    unbound = bool(parameters) and parameters[0].name == "self"
    if unbound:
        del parameters[0]

    specs = []
    for parameter in parameters:
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            raise TypeError(f"command parameter {parameter.name!r} cannot be variadic")
        default = parameter.default
        specs.append(ParameterSpec.fromparam(
            parameter.name,
            _infer(parameter.annotation, default),
            Unset if default is inspect.Parameter.empty else default,
        ))
    return specs, unbound


def _format_default(value):
    if isinstance(value, enum.Enum):
        return value.name
    return str(value)


class CommandDescriptor:
    """
    metadata + handler for one named operation.

    - name: command name; lookups are case-insensitive.
    - parameters: ordered ParameterSpec tuple (names unique case-insensitively).
    - help: one-line help text ("" when not given).
    - handler: the callable invoked with one argument per parameter, in order
      (keyword-only parameters by name).
    - default: when True, this command receives every line whose name matches nothing.
    """
    __introspectable__ = ("name", "parameters", "help", "handler", "default")

    name = view("name")
    parameters = view("parameters")
    help = view("help")
    handler = view("handler")
    default = view("default")

    def __init__(self, name, parameters=(), handler=Unset, /, help=Unset, *, default=False, unbound=False):
        if not isinstance(name, str):
            raise TypeError("command 'name' must be a string")
        elif not (name := name.strip()) or any(char.isspace() for char in name):
            raise ValueError(f"command 'name' must be a non-empty word, got {name!r}")
        if not callable(handler):
            raise TypeError(f"command {name!r} 'handler' must be callable")
        if not isinstance(help := nullify(help, ""), str):
            raise TypeError(f"command {name!r} 'help' must be a string")

        parameters = tuple(parameters)
        seen = set()
        for parameter in parameters:
            if not isinstance(parameter, ParameterSpec):
                raise TypeError(f"command {name!r} parameters must be parameter specs")
            if (key := parameter.name.casefold()) in seen:
                raise ValueError(f"command {name!r} parameter name {parameter.name!r} is already in use")
            seen.add(key)

        self._name = name
        self._parameters = parameters
        self._handler = handler
        self._help = help
        self._default = bool(default)
        self._unbound = bool(unbound)

    @property
    def unbound(self):
        return self._unbound

    def __call__(self, *args, **kwargs):
        return self._handler(*args, **kwargs)

    def parameter(self, name, /):
        """return the parameter named `name` (case-insensitive), or Unset."""
        folded = name.casefold()
        for parameter in self._parameters:
            if parameter.name.casefold() == folded:
                return parameter
        return Unset

    def bind(self, target, /):
        """
        return a copy whose handler is bound to `target`.

        string suggestion providers are resolved as attributes of the target.
        """
        def resolve(parameter):
            if isinstance(parameter.suggest, str):
                provider = getattr(target, parameter.suggest, Unset)
                if not callable(provider):
                    raise TypeError(
                        f"command {self._name!r} suggestion provider {parameter.suggest!r} "
                        f"is not a method of {type(target).__name__}"
                    )
                return parameter.replace(suggest=provider)
            return parameter

        handler = MethodType(self._handler, target) if self._unbound else self._handler
        return type(self)(
            self._name,
            map(resolve, self._parameters),
            handler,
            self._help,
            default=self._default,
        )

    def syntax(self, hidden=lambda parameter: parameter.inject, /):
        """
        render "<name> <param-syntax...>".

        each visible parameter renders as (type name), or (type [name] = default)
        when optional; `hidden` decides which parameters are injectable.
        """
        fragments = []
        for parameter in self._parameters:
            if hidden(parameter):
                continue
            if parameter.default is Unset:
                fragments.append(f"({parameter.typename} {parameter.name})")
            else:
                fragments.append(
                    f"({parameter.typename} [{parameter.name}] = {_format_default(parameter.default)})"
                )
        return f"{self._name} {' '.join(fragments) or '<no parameters>'}"

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "command-descriptor(%s)" % ", ".join(
            "%s=%r" % (name, getattr(self, name)) for name in ("name", "parameters", "default")
        )


def command(source=Unset, /, name=Unset, help=Unset, *, default=False):
    """
    Create a CommandDescriptor or return a decorator to build it later.

    Invocation modes
    - Direct:     command(func, name="x", help="...")
    - Decorator:  @command, @command("x"), @command(name="x", help="...")

    Defaults
    - name: the function name with underscores turned into hyphens.
    - help: the first line of the function docstring.
    """
    if isinstance(source, str):
        source, name = Unset, source

    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        specs, unbound = _process_source(source)
        doc = inspect.getdoc(source) or ""
        return CommandDescriptor(
            nullify(name, getattr(source, "__name__", "").replace("_", "-")),
            specs,
            source,
            nullify(help, doc.strip().splitlines()[0] if doc.strip() else ""),
            default=default,
            unbound=unbound,
        )

    return wrapper(source) if source is not Unset else wrapper


class CommandTable(Mapping):
    """
    immutable mapping from case-insensitive command name to descriptor.

    built once; safe for concurrent reads. construction fails with ValueError on
    duplicate names or on more than one default command; these are programming
    errors in the host and must abort startup.
    """

    def __init__(self, descriptors=(), /):
        table = {}
        for descriptor in descriptors:
            if not isinstance(descriptor, CommandDescriptor):
                raise TypeError("command table entries must be command descriptors")
            if descriptor.unbound:
                raise TypeError(
                    f"command {descriptor.name!r} is declared on a class; use CommandTable.scan(host)"
                )
            if (previous := table.setdefault(descriptor.name.casefold(), descriptor)) is not descriptor:
                raise ValueError(
                    f"there is a duplicate definition for the command {descriptor.name!r} "
                    f"on handlers {_qualname(previous.handler)} and {_qualname(descriptor.handler)}"
                )

        defaults = [descriptor for descriptor in table.values() if descriptor.default]
        if len(defaults) > 1:
            raise ValueError(
                "only one default command is allowed, got %s" % ", ".join(repr(d.name) for d in defaults)
            )

        self._table = MappingProxyType(table)
        self._fallback = defaults[0] if defaults else Unset

    @classmethod
    def scan(cls, target, /, extra=()):
        """
        collect the descriptors declared on type(target), bind them to target and
        build a table with them (plus any `extra` descriptors).
        """
        found = {}
        for klass in reversed(type(target).__mro__):
            for attribute, value in vars(klass).items():
                if isinstance(value, CommandDescriptor):
                    found[attribute] = value
        return cls([descriptor.bind(target) for descriptor in found.values()] + list(extra))

    @property
    def names(self):
        return tuple(descriptor.name for descriptor in self._table.values())

    @property
    def fallback(self):
        """the default command (Unset when none is declared)."""
        return self._fallback

    def __getitem__(self, name):
        if not isinstance(name, str):
            raise KeyError(name)
        return self._table[name.casefold()]

    def __iter__(self):
        return iter(self.names)

    def __len__(self):
        return len(self._table)

    def __repr__(self):
        return "command-table(%s)" % ", ".join(map(repr, self.names))


def _qualname(handler):
    return getattr(handler, "__qualname__", repr(handler))


__all__ = (
    "CommandDescriptor",
    "CommandTable",
    "command",
    "WIDTH",
)
