"""
Argoshell utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the tokenizer, binder, dispatcher and shell
  so that naming, sentinels and user-facing phrasing stay consistent.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- nullify(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks and help.

- view("attr")
  • Read-only property exposing a private backing field (self._attr) as an immutable view.

- ordinal(number)
  • Human-friendly ordinal used by position-first messages ("at third position").

- humanize(text)
  • Split CamelCase identifiers with spaces ("FileNotFound" → "File Not Found"), used to
    name exception types in invocation faults.
"""
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    internal singleton sentinel representing an "unset" value.

    intent
    - used by the internal API to distinguish "not provided" from a user‑supplied
      value (including None or other falsy values), e.g. a parameter that has no
      declared default versus one whose default is None.

    behavior
    - truthiness: bool(Unset) is False.
    - identity: Unset is a process‑wide singleton (see __new__).
    - display: repr(Unset) -> "Unset" (human‑friendly).
    - final: subclassing is forbidden to preserve semantics (see __init_subclass__).
    """

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def nullify(object, default=None, /):
    """
    return `default` when `object` is Unset; otherwise return `object`.

    notes
    - this function does not copy; it simply passes through the object.
    """
    return default if object is Unset else object


def rename(x, /, name=None):
    """
    set a stable __name__/__qualname__ on a callable, or return a curried renamer.

    parameters
    - x: callable | str
      • callable → rename in place.
      • str      → desired name; returns a callable that will rename a future function.
    - name: str | None
      target name to assign.

    errors
    - TypeError if a callable is given and the name is not a string.
    """
    if isinstance(x, str):
        return functools.partial(rename, name=x)
    if not isinstance(name, str):
        raise TypeError("callable name must be a string")
    x.__qualname__ = name
    x.__name__ = name
    return x


def view(name):
    """
    build a read-only property over the backing field self._<name>.

    behavior
    - Sequence (non-str) → tuple
    - Mapping           → MappingProxyType
    - Set               → frozenset
    - other types       → returned as-is
    """

    @rename(name)
    def getter(self):
        value = getattr(self, "_" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


@functools.cache
def ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else f"{number}th"
    except IndexError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def humanize(text, /):
    """split a CamelCase identifier with spaces ("FileNotFound" → "File Not Found")."""
    return re.sub(r"(?<!^)(?=[A-Z])", " ", text)


__all__ = (
    "UnsetType",
    "Unset",
    "nullify",
    "rename",
    "view",
    "ordinal",
    "humanize",
)
