"""
Argument stack: a context prefix the user can push to avoid retyping it.

    app> users \\          push "users"          (prompt becomes app/users>)
    app/users> list       dispatches "users list"
    app/users> ..         pop "users"
    app> ...              clear everything

The three control tokens are configurable per stack. Every change notifies the
registered listeners with the stack content, oldest first.
"""
from .utils import Unset


class ArgumentStack:
    """
    LIFO buffer of tokens; iteration and notifications go oldest → newest.
    """

    def __init__(self, push="\\", pop="..", clear="...", /):
        if len({push, pop, clear}) != 3 or not all(isinstance(token, str) and token for token in (push, pop, clear)):
            raise ValueError("stack control tokens must be distinct non-empty strings")
        self.controls = (push, pop, clear)
        self._tokens = []
        self._listeners = []

    @property
    def push_token(self):
        return self.controls[0]

    @property
    def pop_token(self):
        return self.controls[1]

    @property
    def clear_token(self):
        return self.controls[2]

    def listen(self, listener, /):
        """register a stack-changed listener; usable as a decorator."""
        if not callable(listener):
            raise TypeError("stack listener must be callable")
        self._listeners.append(listener)
        return listener

    def push(self, *tokens):
        self._tokens.extend(tokens)
        self._notify()

    def pop(self):
        """remove and return the top token (Unset when empty)."""
        token = self._tokens.pop() if self._tokens else Unset
        self._notify()
        return token

    def clear(self):
        self._tokens.clear()
        self._notify()

    def control(self, tokens, /):
        """
        apply a stack control line; return True when the line was one.

        - last token is the push token: every preceding token is pushed.
        - the line is exactly the pop token: the top is removed.
        - the line is exactly the clear token: the stack is emptied.
        """
        if not tokens:
            return False
        push, pop, clear = self.controls
        if tokens[-1] == push:
            self.push(*tokens[:-1])
            return True
        if len(tokens) == 1 and tokens[0] == pop:
            self.pop()
            return True
        if len(tokens) == 1 and tokens[0] == clear:
            self.clear()
            return True
        return False

    def combine(self, tokens, /):
        """stack content followed by the non-blank new tokens."""
        return [*self._tokens, *(token for token in tokens if token.strip())]

    def _notify(self):
        snapshot = tuple(self._tokens)
        for listener in self._listeners:
            listener(snapshot)

    def __iter__(self):
        return iter(tuple(self._tokens))

    def __len__(self):
        return len(self._tokens)

    def __repr__(self):
        return "argument-stack(%s)" % " ".join(self._tokens)


__all__ = (
    "ArgumentStack",
)
