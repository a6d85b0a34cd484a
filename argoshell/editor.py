"""
Interactive line editor backed by prompt_toolkit.

The shell only needs four things from its editor:

- read(prompt) → the next line (EOFError on Ctrl-D, KeyboardInterrupt on Ctrl-C)
- add_history(line)
- history → prior lines, oldest first
- a completion callback complete(text, index) → candidates for the word of `text`
  starting at `index`

Any object with the same surface can be handed to Shell(editor=...), which is how
the tests drive the interactive loop without a terminal.
"""
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory

from .tokenizer import QUOTE
from .utils import Unset


def wordstart(text, /, delimiter=" "):
    """index where the word under the cursor starts (delimiters inside quotes do not count)."""
    quoted = False
    start = 0
    for index, char in enumerate(text):
        if char == QUOTE:
            quoted = not quoted
        elif char == delimiter and not quoted:
            start = index + 1
    return start


class ShellCompleter(Completer):
    """adapt a complete(text, index) callback to prompt_toolkit."""

    def __init__(self, complete, /):
        self.complete = complete

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        index = wordstart(text)
        for candidate in self.complete(text, index):
            yield Completion(candidate, start_position=index - len(text))


class PromptEditor:
    def __init__(self, complete=Unset, /, **options):
        self._history = InMemoryHistory()
        self.session = PromptSession(
            history=self._history,
            completer=ShellCompleter(complete) if complete is not Unset else None,
            complete_while_typing=False,
            **options,
        )

    def read(self, prompt, /):
        return self.session.prompt(prompt)

    def add_history(self, line, /):
        self._history.append_string(line)

    @property
    def history(self):
        return list(self._history.get_strings())


__all__ = (
    "PromptEditor",
    "ShellCompleter",
    "wordstart",
)
