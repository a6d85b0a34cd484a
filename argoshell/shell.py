"""
Argoshell REPL: read lines, dispatch them, keep a history.

Two modes, picked from the input stream unless forced with interactive=...:

- batch: the stream is redirected (not a terminal). every line is echoed as
  "> <line>" and dispatched until end of input; exit() only sets the exit code.
- interactive: a line editor prompts with "<prompt>>" (or "<prompt>/<stack>>" while
  the argument stack holds something), dispatches each non-blank line and records
  it in the history until exit() is called, Ctrl-D is pressed, or Ctrl-C is
  confirmed with <return>.

History is a UTF-8, newline-delimited file. It is loaded on a background thread
when an interactive session starts (duplicates collapse onto their most recent
occurrence) and saved when it ends, keeping the newest `history_limit` entries.

Built-in commands, used when no registered command has the same name:

    help [command]    list the commands, or show one command's help and syntax
    exit              end the session (exit code 0)
    clear             clear the screen
"""
import logging
import sys
import threading
from pathlib import Path

from .cancellation import keypressed
from .dispatcher import Dispatcher, State
from .editor import PromptEditor
from .ranking import quote_if_needed
from .tokenizer import unquote
from .utils import Unset, nullify

logger = logging.getLogger(__name__)

BUILTINS = ("help", "exit", "clear")


def dedupe(lines, /):
    """drop blank lines and keep only the most recent occurrence of each line."""
    seen = set()
    kept = []
    for line in reversed(lines):
        if line.strip() and line not in seen:
            seen.add(line)
            kept.append(line)
    return kept[::-1]


class Shell(Dispatcher):
    """
    top-level read-dispatch loop.

    handlers can ask for the running shell by annotating a parameter with Shell
    (or Dispatcher) and call exit(code) on it.
    """

    def __init__(
            self,
            commands=(),
            /,
            *,
            prompt=">",
            history_file=Unset,
            history_limit=100,
            editor=Unset,
            stream=Unset,
            interactive=Unset,
            **options,
    ):
        options.setdefault("history", lambda: self.history)
        super().__init__(commands, **options)
        self.prompt = prompt
        self.history_file = Path(nullify(history_file, Path.home() / f".{self.prog}_history"))
        self.history_limit = history_limit
        self.stream = nullify(stream, sys.stdin)
        self.interactive = interactive
        self.editor = editor

        self._history = []
        self._lock = threading.Lock()
        self._running = True
        self._exit_code = 0
        self._path = ""
        self.stack.listen(self._onstack)

    @property
    def is_running(self):
        return self._running

    @property
    def exit_code(self):
        return self._exit_code

    @property
    def current_path(self):
        return self._path

    @property
    def history(self):
        with self._lock:
            return tuple(self._history)

    @property
    def names(self):
        names = super().names
        folded = {name.casefold() for name in names}
        return names + tuple(name for name in BUILTINS if name not in folded)

    @property
    def prompt_text(self):
        return f"{self.prompt}/{self._path}>" if self._path else f"{self.prompt}>"

    def _onstack(self, tokens):
        self._path = " ".join(tokens)

    def exit(self, code=0, /):
        """request the end of the session with `code` as the exit code."""
        self._exit_code = code
        self._running = False
        self._state = State.EXITED

    def _finish(self, outcome):
        completed = super()._finish(outcome)
        if not self._running:
            self._state = State.EXITED
        return completed

    def default_action(self, name, arguments, /):
        builtin = unquote(name).casefold()
        if builtin == "help":
            return self.help(*map(unquote, arguments[:1]))
        if builtin == "exit":
            return self.exit(0)
        if builtin == "clear":
            return self.console.clear()
        return super().default_action(name, arguments)

    # --- history -------------------------------------------------------

    def add_history(self, line, /):
        with self._lock:
            self._history.append(line)
        if self.editor is not Unset:
            self.editor.add_history(line)

    def load_history(self):
        """read the history file on a background thread; returns the thread."""
        def load():
            try:
                lines = dedupe(self.history_file.read_text(encoding="utf-8").splitlines())
            except FileNotFoundError:
                return
            except (OSError, UnicodeDecodeError):
                logger.warning("cannot read history file %s", self.history_file, exc_info=True)
                return
            with self._lock:
                self._history[:0] = lines
            if self.editor is not Unset:
                for line in lines:
                    self.editor.add_history(line)
            logger.debug("loaded %d history entries from %s", len(lines), self.history_file)

        thread = threading.Thread(target=load, name="argoshell-history", daemon=True)
        thread.start()
        return thread

    def save_history(self):
        lines = dedupe(self.history)[-self.history_limit:] if self.history_limit > 0 else []
        try:
            self.history_file.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        except OSError:
            logger.warning("cannot write history file %s", self.history_file, exc_info=True)

    # --- loop ----------------------------------------------------------

    def run(self, argv=Unset, /):
        """
        run the session and return its exit code.

        in interactive mode `argv` (default: sys.argv[1:]) is dispatched once as a
        single line before the first prompt.
        """
        interactive = self.interactive
        if interactive is Unset:
            interactive = hasattr(self.stream, "isatty") and self.stream.isatty()

        if not interactive:
            for line in self.stream:
                line = line.rstrip("\r\n")
                self.console.print(f"> {line}", style="grey50", markup=False, highlight=False)
                self.dispatch(line)
            self._running = False
            return self._exit_code

        if self.keypress is Unset and self.stream is sys.stdin:
            self.keypress = keypressed
        if self.editor is Unset:
            self.editor = PromptEditor(self.complete)
        loader = self.load_history()

        argv = sys.argv[1:] if argv is Unset else list(argv)
        try:
            if argv:
                self.dispatch(" ".join(map(quote_if_needed, argv)))
            while self._running:
                try:
                    line = self.editor.read(self.prompt_text)
                except EOFError:
                    break
                except KeyboardInterrupt:
                    self.console.print("press <return> to exit", style="green")
                    self._running = False
                    try:
                        self.editor.read("")
                    except (EOFError, KeyboardInterrupt):
                        pass
                    break
                if line.strip():
                    self.dispatch(line)
                    self.add_history(line)
        finally:
            self._running = False
            # saving rewrites the file from memory; wait for the load
            loader.join()
            self.save_history()

        self._state = State.EXITED
        return self._exit_code

    def __repr__(self):
        return "shell(%s)" % ", ".join(map(repr, self.commands.names))


__all__ = (
    "Shell",
    "BUILTINS",
    "dedupe",
)
