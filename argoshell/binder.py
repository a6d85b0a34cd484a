"""
Argument binder: map a token sequence onto a command's parameters.

Binding walks the argument tokens once, left to right:

- a token starting with '-' is a flag naming a parameter (leading dashes stripped,
  case-insensitive). boolean flags followed by nothing or by another flag bind True
  (switch form); any other flag consumes the next token as its value.
- any other token binds to the next free positional slot. slots already bound by a
  flag and injectable slots are skipped.

Every parameter starts from its injected capability or its declared default, so
the resulting invocation holds one value per parameter, in declaration order.
Values are converted through the conversion registry; one layer of wrapping quotes
is removed first, which is also how a user passes a literal value starting with '-'.

Position-first messages count the command's arguments from 1.
"""
import inspect

from .conversions import converters as _converters
from .faults import (
    ConversionError,
    DuplicateParameterError,
    MissingRequiredParametersError,
    MissingValueError,
    UnexpectedArgumentError,
    UnknownFlagError,
)
from .injection import InjectableRegistry
from .ranking import rank_all
from .utils import Unset, ordinal


def _keywords(handler):
    """names of the keyword-only parameters of `handler` (empty when it has no signature)."""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return frozenset()
    return frozenset(
        parameter.name for parameter in signature.parameters.values()
        if parameter.kind is parameter.KEYWORD_ONLY
    )


class Invocation:
    """
    a resolved descriptor plus one typed argument per parameter.

    calling the invocation calls the handler with the arguments in order; keyword-only
    parameters are passed by name.
    """
    __slots__ = ("descriptor", "arguments")

    def __init__(self, descriptor, arguments, /):
        self.descriptor = descriptor
        self.arguments = tuple(arguments)

    def __call__(self):
        handler = self.descriptor.handler
        keywords = _keywords(handler)
        positional = []
        named = {}
        for parameter, value in zip(self.descriptor.parameters, self.arguments):
            if parameter.name in keywords:
                named[parameter.name] = value
            else:
                positional.append(value)
        return handler(*positional, **named)

    @property
    def namespace(self):
        """parameter name → bound value."""
        return {
            parameter.name: value
            for parameter, value in zip(self.descriptor.parameters, self.arguments)
        }

    def __eq__(self, other):
        if not isinstance(other, Invocation):
            return NotImplemented
        return self.descriptor is other.descriptor and self.arguments == other.arguments

    def __repr__(self):
        return "invocation(%s, %r)" % (self.descriptor.name, self.namespace)


def isflag(token, /):
    return isinstance(token, str) and token.startswith("-")


def flagname(token, /):
    """strip the leading dashes only; dashes inside a parameter name are kept."""
    return token.lstrip("-")


def injectable(parameter, registry, /):
    return parameter.inject or registry.caninject(parameter.type)


def _convert(converters, parameter, token, position):
    try:
        return converters.convert(token, parameter.type)
    except (ValueError, TypeError) as exception:
        choices = parameter.choices
        details = ("valid values for %s: %s" % (parameter.typename, ", ".join(choices)),) if choices else ()
        raise ConversionError(
            "cannot convert %r at %s position to %s for parameter %r" % (
                token, ordinal(position), parameter.typename, parameter.name
            ),
            token=token,
            index=position,
            parameter=parameter.name,
            choices=choices,
            details=details,
            hint="expected one of %s" % ", ".join(choices) if choices else str(exception),
        ) from exception


def bind(tokens, descriptor, registry=Unset, /, *, converters=_converters):
    """
    bind argument tokens (command name excluded) to `descriptor`'s parameters.

    returns an Invocation, or raises one of UnknownFlagError, DuplicateParameterError,
    MissingValueError, ConversionError, UnexpectedArgumentError or
    MissingRequiredParametersError.
    """
    if registry is Unset:
        registry = InjectableRegistry()
    parameters = descriptor.parameters
    tokens = [token for token in tokens if token.strip()]

    values = []
    injected = set()
    for index, parameter in enumerate(parameters):
        instance = registry.resolve(parameter.type)
        if parameter.inject or instance is not Unset:
            injected.add(index)
        if instance is not Unset:
            values.append(instance)
        else:
            values.append(None if parameter.default is Unset else parameter.default)

    used = set()
    cursor = 0
    position = 0
    while position < len(tokens):
        token = tokens[position]
        position += 1

        if isflag(token):
            name = flagname(token)
            index = next(
                (index for index, parameter in enumerate(parameters)
                 if index not in injected and parameter.name.casefold() == name.casefold()),
                -1,
            )
            if index < 0:
                visible = [
                    parameter.name for index, parameter in enumerate(parameters) if index not in injected
                ]
                suggestions = rank_all(visible, name) if name else []
                raise UnknownFlagError(
                    "no parameter named %r at %s position" % (token, ordinal(position)),
                    token=token,
                    index=position,
                    suggestions=tuple(suggestions),
                    hint="did you mean '-%s'?" % suggestions[0] if suggestions else
                         "valid flags: %s" % (", ".join("-" + name for name in visible) or "none"),
                )
            parameter = parameters[index]
            if index in used:
                raise DuplicateParameterError(
                    "parameter %r at %s position was specified more than once" % (token, ordinal(position)),
                    token=token,
                    index=position,
                    parameter=parameter.name,
                    hint="give each parameter once, either by position or by flag",
                )
            used.add(index)

            following = tokens[position] if position < len(tokens) else None
            if following is None or isflag(following):
                if parameter.tag != "boolean":
                    raise MissingValueError(
                        "a value was not specified for %r at %s position" % (token, ordinal(position)),
                        token=token,
                        index=position,
                        parameter=parameter.name,
                        hint="pass the value after the flag (for example: -%s <value>)" % parameter.name,
                    )
                values[index] = True
                continue

            values[index] = _convert(converters, parameter, following, position + 1)
            position += 1
            continue

        while cursor < len(parameters) and (cursor in used or cursor in injected):
            cursor += 1
        if cursor >= len(parameters):
            raise UnexpectedArgumentError(
                "unexpected argument %r at %s position" % (token, ordinal(position)),
                token=token,
                index=position,
                hint="this command takes %d argument(s); quote values that contain spaces" % (
                    len(parameters) - len(injected)
                ),
            )
        used.add(cursor)
        values[cursor] = _convert(converters, parameters[cursor], token, position)
        cursor += 1

    missing = tuple(
        parameter.name
        for index, parameter in enumerate(parameters)
        if parameter.default is Unset and index not in injected and index not in used
    )
    if missing:
        raise MissingRequiredParametersError(
            "incorrect number of arguments, missing: %s" % ", ".join(missing),
            missing=missing,
            hint="pass %s by position or as flags" % ", ".join("-" + name for name in missing),
        )

    return Invocation(descriptor, values)


__all__ = (
    "Invocation",
    "bind",
    "isflag",
    "flagname",
    "injectable",
)
