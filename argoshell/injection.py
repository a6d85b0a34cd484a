"""
Injectable registry: capabilities the framework hands to handlers automatically.

A handler parameter is injected when its declared type is assignable from a
registered capability type (the registered type is the declared type or one of
its subclasses). Injected parameters are never counted as user supplied and never
appear in syntax help.

The registry is layered: overlay() returns a child registry whose entries shadow
the parent's without touching it. The dispatcher uses one overlay per invocation
to hand out that invocation's CancellationToken, and one per suggestion request
to expose the partial word (str) and its cursor index (int) to providers.
"""
import builtins
import inspect
from collections import ChainMap

from .utils import Unset


class InjectableRegistry:
    """
    mapping capability-type → instance, at most one instance per type.

    mutable at any time outside a dispatch; not designed for concurrent mutation
    while a dispatch is in flight.
    """

    def __init__(self, entries=(), /):
        self._entries = ChainMap({})
        for type, instance in dict(entries).items():
            self.register(type, instance)

    def register(self, type, instance=Unset, /):
        """
        register an instance under a capability type.

        register(instance) registers under type(instance).
        """
        if instance is Unset:
            type, instance = builtins.type(type), type
        if not isinstance(type, builtins.type):
            raise TypeError("register() capability must be a type")
        self._entries[type] = instance
        return instance

    def unregister(self, type, /):
        self._entries.pop(type, None)

    def get(self, type, /, default=Unset):
        """return the instance registered exactly under `type`."""
        try:
            return self._entries[type]
        except KeyError:
            if default is Unset:
                raise KeyError(f"no capability registered for {type!r}") from None
            return default

    def resolve(self, annotation, /):
        """
        return the instance whose registered type is assignable to `annotation`,
        or Unset when none is.
        """
        if not isinstance(annotation, builtins.type):
            return Unset
        try:
            return self._entries[annotation]
        except KeyError:
            pass
        for type, instance in self._entries.items():
            if issubclass(type, annotation):
                return instance
        return Unset

    def caninject(self, annotation, /):
        return self.resolve(annotation) is not Unset

    def overlay(self, entries=(), /):
        """return a child registry whose entries shadow this one's."""
        child = type(self)()
        child._entries = self._entries.new_child(dict(entries))
        return child

    def call(self, function, /, *args, **kwargs):
        """
        call `function`, filling every parameter not given in args/kwargs whose
        annotation resolves to a registered capability.
        """
        try:
            signature = inspect.signature(function, eval_str=True)
        except (TypeError, ValueError, NameError):
            return function(*args, **kwargs)

        bound = signature.bind_partial(*args, **kwargs)
        for name, parameter in signature.parameters.items():
            if name in bound.arguments or parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                continue
            if (instance := self.resolve(parameter.annotation)) is not Unset:
                bound.arguments[name] = instance
        return function(*bound.args, **bound.kwargs)

    def __contains__(self, type):
        return type in self._entries

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return "injectable-registry(%s)" % ", ".join(
            getattr(type, "__name__", repr(type)) for type in self._entries
        )


__all__ = (
    "InjectableRegistry",
)
