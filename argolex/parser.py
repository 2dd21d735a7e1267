r"""
Argolex driver: parse real command lines and turn results into exit codes.

Overview
- ArgumentParser owns the root Command of a program and proxies its builder
  methods (add_keyword, add_positional, add_subcommand, command, handler).
- parse(line) accepts a command-line string, an argv-like iterable of strings,
  or nothing (sys.argv[1:]); lexical errors become PARSE_ERROR results, so
  every call ends in a ParseResult.
- run(line) parses and renders: help to stdout, "Error: <message>" followed by
  the failing command's help to stderr. It returns the exit code.
- invoke(parser, line) is the script entry point: configures logging, runs,
  and exits the interpreter with the exit code.

argv handling
- items are joined with single spaces and tokenized as one line.
- an item that does not read back as exactly one identifier, number or
  keyword is re-quoted as a string literal, so shell grouping survives:
      ["view", "MY DATA"]    ->  'view "MY DATA"'
      ["cat", "my-file.txt"] ->  'cat "my-file.txt"'
- items starting with "-" are flags and stay as they are; in "--name=value"
  only the value is re-quoted:
      ["--message=hello world"]  ->  '--message="hello world"'

Rendering options
- colorful, fancy: forwarded to the root command (inherited by the tree) and
  to faults through copy.replace().
- stdout, stderr: rich consoles used by run(); injectable for tests.
"""
import copy
import sys
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .commands import Command
from .faults import LexError, console as errors
from .lexer import tokenize
from .logging import get_logger, setup_logging
from .results import ParseResult
from .tokens import TokenKind
from .utils import Unset, coalesce

logger = get_logger(__name__)

FILENAME = "<cli>"

_ESCAPES = str.maketrans({
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
})

_BARE_KINDS = frozenset({TokenKind.IDENTIFIER, TokenKind.INT_LITERAL, TokenKind.FLOAT_LITERAL})


def _bare(item):
    """
    Whether item tokenizes back into itself as one identifier, number or keyword.
    """
    try:
        tokens = tokenize(item, FILENAME)
    except LexError:
        return False
    match tokens:
        case [token, _]:
            kind = token.kind
            return (kind.keyword or kind in _BARE_KINDS) and token.source == item
    return False


def _literal(item):
    return item if _bare(item) else '"' + item.translate(_ESCAPES) + '"'


def _quote(item):
    """
    Spell one argv item so the tokenizer reads it back as a single value.
    """
    if not isinstance(item, str):
        raise TypeError("parse() argument must be a string or an iterable of strings")
    if item.startswith("-"):
        name, assign, value = item.partition("=")
        return name + assign + _literal(value) if assign else item
    return _literal(item)


class ArgumentParser:
    """
    Program-level facade over a root Command.

    Parameters
    - prog: str
      Program name; the root command's name and the head of every command path.
    - description: str
      Shown under the usage line of the root help.
    - colorful, fancy: bool | Unset
      Rendering flags (default False).
    - stdout, stderr: rich.console.Console | Unset
      Output targets of run().
    """

    def __init__(self, prog, /, description="", *, colorful=Unset, fancy=Unset, stdout=Unset, stderr=Unset):
        if not isinstance(stdout, Console | Unset) or not isinstance(stderr, Console | Unset):
            raise TypeError("argument-parser consoles must be rich consoles")
        self._root = Command(prog, description, colorful=coalesce(colorful, False), fancy=coalesce(fancy, False))
        self._stdout = Console() if stdout is Unset else stdout
        self._stderr = errors if stderr is Unset else stderr

    @property
    def root(self):
        return self._root

    @property
    def prog(self):
        return self._root.name

    def add_keyword(self, name, /, *flags, **options):
        self._root.add_keyword(name, *flags, **options)
        return self

    def add_positional(self, name, /, help="", **options):
        self._root.add_positional(name, help, **options)
        return self

    def add_subcommand(self, command, /):
        self._root.add_subcommand(command)
        return self

    def command(self, name, /, help="", **options):
        return self._root.command(name, help, **options)

    def handler(self, handler, /):
        return self._root.handler(handler)

    def locate(self, path, /):
        return self._root.locate(path)

    def _line(self, line):
        """
        Normalize the accepted input shapes into one command-line string.
        """
        if line is Unset:
            line = sys.argv[1:]
        if isinstance(line, str):
            return line
        if isinstance(line, Iterable):
            return " ".join(map(_quote, line))
        raise TypeError("parse() argument must be a string or an iterable of strings")

    def parse(self, line=Unset, /):
        """
        Parse a command line against the command tree.

        Returns
        - ParseResult. A LexError is reported as a PARSE_ERROR result whose
          fault is the LexError and whose command path is the program name.

        Raises
        - TypeError: on a wrong input type or a non-string argv item.
        - Anything raised by a handler.
        """
        line = self._line(line)
        logger.debug("parsing %r", line)
        try:
            tokens = tokenize(line, FILENAME)
        except LexError as error:
            result = ParseResult(command_path=self.prog)
            return result.fail(error)
        result = self._root.parse(tokens)
        result.command_path = result.command_path or self.prog
        return result

    def help(self, path=Unset, /, console=Unset):
        """
        Build the help renderable for a command path ("git remote add").

        Raises
        - ValueError: when the path names no command.
        """
        if (command := self._root.locate(coalesce(path, self.prog))) is None:
            raise ValueError(f"no command found at {path!r}")
        return command.render_help(console=console)

    def report(self, fault, /):
        """
        Attach the parser's rendering context to a fault (for rich printing).
        """
        return copy.replace(fault, prog=self.prog, colorful=self._root.colorful, fancy=self._root.fancy)

    def run(self, line=Unset, /):
        """
        Parse, render the outcome, and return the exit code.

        - help requested: help of the executing command on stdout, 0.
        - parse error: "Error: <message>" (or, when fancy, the fault panel) and
          the failing command's help on stderr, 1.
        - success: the handler's exit code (0 without a handler).
        """
        result = self.parse(line)
        command = self._root.locate(result.command_path) or self._root

        if result.help_requested:
            self._stdout.print(command.render_help(console=self._stdout))
        elif result.failed:
            if self._root.fancy:
                self._stderr.print(self.report(result.fault))
            else:
                self._stderr.print(Text.assemble("Error: ", result.error_message), highlight=False)
            self._stderr.print(command.render_help(console=self._stderr))

        logger.debug("%r finished with status %s (exit code %d)", result.command_path, result.status.name, result.exit_code)
        return result.exit_code

    def __invoke__(self, line=Unset, /):
        return self.run(line)


def invoke(parser, line=Unset, /):
    """
    Script entry point: run the parser and exit with its code.

    Logging is configured from ARGOLEX_LOG_LEVEL before anything is parsed.
    """
    if not hasattr(parser, "__invoke__") or not callable(parser.__invoke__):
        raise TypeError("invoke() argument must be an argument parser")
    setup_logging()
    sys.exit(parser.__invoke__(line))


__all__ = (
    "ArgumentParser",
    "invoke",
)
