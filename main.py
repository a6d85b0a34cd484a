import enum
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from argoshell import *

__prog__ = "dos"

console = Console()


class Color(enum.Enum):
    White = "white"
    Red = "red"
    Green = "green"
    Blue = "blue"
    Yellow = "yellow"


class DOS:
    @property
    def dir(self):
        return Path.cwd()

    def suggest_dirs(self):
        return [entry.name for entry in self.dir.iterdir() if entry.is_dir()]

    @command("echo")
    def echo(self, text, color=Color.White):
        """print text in a color"""
        console.print(text, style=color.value, markup=False, highlight=False)

    @command("cd")
    def change_dir(self, shell: Shell, directory=Param(type=str, suggest="suggest_dirs")):
        """change the current directory"""
        path = (self.dir / directory).resolve()
        if not path.is_dir():
            raise FileNotFoundError(f"{path} does not exist")
        os.chdir(path)
        shell.prompt = str(path)

    @command("dir")
    def list(self, pattern="*"):
        """list the entries of the current directory"""
        return sorted(entry.name for entry in self.dir.glob(pattern))

    @command("exit")
    def exit(self, shell: Shell):
        """leave the shell"""
        shell.exit(0)


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[RichHandler()])
    shell = Shell(CommandTable.scan(DOS()), prompt=str(Path.cwd()))
    sys.exit(shell.run(sys.argv[1:]))
