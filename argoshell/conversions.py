"""
String-to-value conversion keyed by a semantic type tag.

Every declared parameter type maps to one tag:

- "string"  → str, kept as typed (after unquoting)
- "boolean" → bool, accepts y/n/true/false in any case
- "integer" → int
- "float"   → float
- "enum"    → Enum subclasses, matched case-insensitively by member name
- "custom"  → anything else; a converter registered for that exact type wins,
              otherwise the type itself is called with the string

Hosts extend the table through Converters.register(), either for a whole tag or
for one concrete type:

    >>> converters.register(Path)(lambda text, type: Path(text).expanduser())
"""
import enum

from .tokenizer import unquote
from .utils import Unset

TRUTHY = frozenset({"y", "true"})
FALSY = frozenset({"n", "false"})


def tagof(type, /):
    """return the semantic tag of a declared parameter type."""
    if type is str:
        return "string"
    if type is bool:
        return "boolean"
    if type is int:
        return "integer"
    if type is float:
        return "float"
    if isinstance(type, enum.EnumMeta):
        return "enum"
    return "custom"


def choicesof(type, /):
    """names accepted for an enum type, in declaration order (empty for other types)."""
    if tagof(type) != "enum":
        return ()
    return tuple(type.__members__)


class Converters:
    """
    registry of converters keyed by tag or by concrete type.

    a converter is called as converter(text, type) and returns the converted value;
    it signals bad input by raising ValueError or TypeError.
    """

    def __init__(self):
        self._tags = {}
        self._types = {}

    def register(self, key, converter=Unset, /):
        """
        register a converter for a tag (str) or a concrete type.

        usable directly, register(int, func), or as a decorator, @register("boolean").
        """
        if converter is Unset:
            return lambda converter: self.register(key, converter)
        if not callable(converter):
            raise TypeError("converter must be callable")
        (self._tags if isinstance(key, str) else self._types)[key] = converter
        return converter

    def convert(self, text, type, /):
        """
        convert a raw token into a value of the declared type.

        raises ValueError/TypeError when the text cannot be converted.
        """
        text = unquote(text)
        try:
            converter = self._types[type]
        except (KeyError, TypeError):
            converter = self._tags.get(tagof(type), _fallback)
        return converter(text, type)


def _fallback(text, type, /):
    # generic conversion primitive: call the declared type with the string
    if not callable(type):
        raise TypeError(f"cannot convert to {type!r}")
    return type(text)


converters = Converters()


@converters.register("string")
def _string(text, type, /):
    return text


@converters.register("boolean")
def _boolean(text, type, /):
    if (folded := text.casefold()) in TRUTHY:
        return True
    if folded in FALSY:
        return False
    raise ValueError(f"{text!r} is not a valid boolean (use y, n, true or false)")


@converters.register("integer")
def _integer(text, type, /):
    return int(text)


@converters.register("float")
def _float(text, type, /):
    return float(text)


@converters.register("enum")
def _enumeration(text, type, /):
    folded = text.casefold()
    for name, member in type.__members__.items():
        if name.casefold() == folded:
            return member
    raise ValueError(f"{text!r} is not a valid {type.__name__}")


__all__ = (
    "Converters",
    "converters",
    "tagof",
    "choicesof",
)
