r"""
Argoshell parameter specifications.

Overview
- ParameterSpec: one handler parameter as seen by the binder and the help renderer.
  • name: unique (case-insensitively) within its command; matched by flags.
  • type: declared Python type; its semantic tag drives conversion and suggestions.
  • default: Unset when the parameter is required.
  • suggest: optional provider returning candidate values for autocomplete.
  • inject: declared as a framework capability (never user supplied, never shown).

- Param(...): declaration helper used as a parameter default when a handler needs
  more than an annotation and a plain default can say:

    >>> @command("cd")
    ... def cd(directory=Param(suggest="directories", descr="target directory")):
    ...     ...

Validation highlights
- name must be a non-empty identifier-like string.
- suggest must be callable or a string naming an attribute of the host object
  (resolved by CommandTable.scan).
- descr must be a non-empty string when provided.
"""
import re

from .conversions import tagof, choicesof
from .utils import Unset, view


class Param:
    """
    parameter metadata attached through the default value of a handler parameter.

    every field is optional; Unset fields fall back to what the signature says
    (annotation for the type, nothing for the default).
    """
    __slots__ = ("default", "type", "suggest", "descr", "inject")

    def __init__(self, default=Unset, /, *, type=Unset, suggest=Unset, descr=Unset, inject=False):
        self.default = default
        self.type = type
        self.suggest = suggest
        self.descr = descr
        self.inject = bool(inject)

    def __repr__(self):
        fields = ", ".join(
            "%s=%r" % (name, getattr(self, name))
            for name in self.__slots__ if getattr(self, name) not in (Unset, False)
        )
        return f"param({fields})"


class ParameterSpec:
    """
    immutable description of one handler parameter.

    properties are read-only views over private backing fields; a parameter never changes
    once its command descriptor is built.
    """
    __introspectable__ = ("name", "type", "default", "suggest", "descr", "inject")

    name = view("name")
    type = view("type")
    default = view("default")
    suggest = view("suggest")
    descr = view("descr")
    inject = view("inject")

    def __init__(self, name, /, type=str, default=Unset, *, suggest=Unset, descr=Unset, inject=False):
        if not isinstance(name, str):
            raise TypeError("parameter 'name' must be a string")
        elif not re.fullmatch(r"[^\W\d](-?\w)*", name):
            raise ValueError(f"parameter 'name' must be an identifier-like string, got {name!r}")
        if type is Unset:
            type = str
        if not callable(type):
            raise TypeError(f"parameter {name!r} 'type' must be a type or a callable")
        if suggest is not Unset and not (callable(suggest) or isinstance(suggest, str)):
            raise TypeError(f"parameter {name!r} 'suggest' must be callable or an attribute name")
        if descr is not Unset and not (isinstance(descr, str) and descr.strip()):
            raise ValueError(f"parameter {name!r} 'descr' must be a non-empty string")

        self._name = name
        self._type = type
        self._default = default
        self._suggest = suggest
        self._descr = descr
        self._inject = bool(inject)

    @classmethod
    def fromparam(cls, name, annotation, default, /):
        """build a parameter from a signature parameter (annotation Unset when missing)."""
        if isinstance(default, Param):
            return cls(
                name,
                default.type if default.type is not Unset else annotation,
                default.default,
                suggest=default.suggest,
                descr=default.descr,
                inject=default.inject,
            )
        return cls(name, annotation, default)

    @property
    def tag(self):
        return tagof(self.type)

    @property
    def choices(self):
        return choicesof(self.type)

    @property
    def required(self):
        return self._default is Unset and not self._inject

    @property
    def typename(self):
        return getattr(self._type, "__name__", str(self._type))

    def replace(self, **overrides):
        fields = {name: getattr(self, name) for name in self.__introspectable__} | overrides
        return type(self)(fields.pop("name"), fields.pop("type"), fields.pop("default"), **fields)

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "parameter-spec(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __eq__(self, other):
        if not isinstance(other, ParameterSpec):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__introspectable__)

    def __hash__(self):
        return hash((self._name, self._type))


__all__ = (
    "Param",
    "ParameterSpec",
)
