"""
Argolex command layer: declare a command tree and parse token streams against it.

What this module provides
- Command: one node of the grammar tree with
  • keyword arguments (flags, single-value and multi-value options),
  • ordered positional slots,
  • subcommands reachable by name or alias,
  • an optional handler invoked with the finished ParseResult,
  • a rich help renderer (render_help()).
- Every command owns a synthetic help flag (-h/--help).

Core ideas
- Builder-populated, read-only while parsing: registration validates eagerly
  (duplicate names, taken spellings, alias collisions, cycles) so parse time
  never has to.
- One result shape: grammar errors are recorded in the ParseResult (status,
  message, fault) instead of being raised; the parser never prints.
- Help wins: a help flag anywhere on the line requests help for the deepest
  command reached, regardless of what else is there.

Parse algorithm (per command)
1. seed keyword defaults, then pre-scan the line for the help flag.
2. walk the tokens: clustered short flags, single flags (with values), a
   subcommand name/alias (recurse and return its result), or the next
   positional slot.
3. check required keywords/positionals, fill optional positional defaults.
4. on success, run the handler; its return value is the exit code.

Quick start
    from argolex import ArgKind, Command, tokenize

    git = Command("git", "the stupid content tracker")
    commit = git.command("commit", "record changes", aliases=("ci",))
    commit.add_keyword("message", "-m", "--message", kind=ArgKind.SINGLE, required=True)

    result = git.parse(tokenize('ci -m "initial import"'))
    result.command_path            # 'git commit'
    result.get_string("message")   # 'initial import'
"""
import difflib
import functools
import operator
import re
from collections import defaultdict, deque

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import ArgKind, ArgumentDef
from .faults import (
    FaultCode,
    UnknownOptionError,
    UncombinableOptionError,
    MissingValueError,
    InvalidValueError,
    UnexpectedArgumentError,
    MissingRequiredOptionError,
    MissingRequiredArgumentError,
    AmbiguousAliasError,
    getdoc,
)
from .logging import get_logger
from .results import ParseResult
from .tokens import Token, TokenKind, KEYWORDS
from .utils import Unset, coalesce, mirror, rename
from .values import ArgValue, ValueKind

logger = get_logger(__name__)


class CommandType(type):
    """
    Metaclass that gives Command its introspection surface.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and rich UI.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='commit', help='record changes', aliases=('ci',), ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _check_route(cls, route, /):
    """
    Validate a subcommand name or alias: it must lex as a plain identifier.
    """
    if not isinstance(route, str):
        raise TypeError(f"{cls.__typename__} names and aliases must be strings")
    if not re.fullmatch(r"[A-Za-z$_/][A-Za-z0-9$_/.]*", route):
        raise ValueError(f"{cls.__typename__} route {route!r} must be a plain identifier")
    if route in KEYWORDS:
        raise ValueError(f"{cls.__typename__} route {route!r} is a reserved keyword")


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing a tree with unique routes.

    Behavior
    - a command can have one parent only, and cannot be attached to itself or
      to one of its descendants (keeps the tree acyclic).
    - the command's name and aliases must not collide with any sibling's name
      or aliases; collisions raise ValueError here, at registration time.
    """
    if self._parent is not Unset:
        raise ValueError(f"{type(self).__typename__} {self._name!r} is already attached to {self._parent.name!r}")
    if self in parent.path:
        raise ValueError(f"{type(self).__typename__} {self._name!r} cannot be attached to itself or its descendants")

    for route in (self._name, *self._aliases):
        _check_route(type(self), route)

    routes = {self._name, *self._aliases}
    for sibling in parent._subcommands.values():
        if clash := routes & {sibling._name, *sibling._aliases}:
            raise ValueError(
                f"{type(self).__typename__} route {min(clash)!r} is already in use by subcommand {sibling._name!r}"
            )

    parent._subcommands[self._name] = self
    self._parent = parent
    logger.debug("attached subcommand %r to %r", self._name, parent.name)


class Command(metaclass=CommandType):
    """
    Grammar node: arguments, subcommands and an optional handler.

    Responsibilities
    - Introspection: exposes metadata (name, help, aliases, arguments, subcommands)
      as read-only properties.
    - Composition: parent/child hierarchies model subcommands.
    - Parsing: parse() binds a token stream to this command (or a descendant).
    - Rendering: render_help() builds rich help for this command.

    Runtime flags
    - colorful, fancy: rendering switches. If Unset, values inherit from the
      parent (or default False).
    """

    __introspectable__ = (
        "name",
        "help",
        "aliases",
        "keywords",
        "positionals",
        "subcommands",
        "parent",
    )

    __displayable__ = (
        "name",
        "help",
        "aliases",
        "keywords",
        "positionals",
        "subcommands",
    )

    def __init__(self, name, /, help="", *, aliases=(), handler=None, colorful=Unset, fancy=Unset):
        """
        Construct a command.

        Parameters
        - name: str
          Command name. Subcommand names must be plain identifiers (checked when
          attached); a root command may use any non-empty program name.
        - help: str
          One-line description used in help output.
        - aliases: Iterable[str]
          Alternative names accepted for this command when it is a subcommand.
        - handler: Callable[[ParseResult], int | None] | None
          Invoked after a successful parse that ends in this command.
        - colorful, fancy: bool | Unset
          Rendering flags (inherited from the parent when Unset).

        Raises
        - TypeError/ValueError on invalid metadata.
        """
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} 'name' cannot be empty")
        if not isinstance(help, str):
            raise TypeError(f"{type(self).__typename__} 'help' must be a string")
        if isinstance(aliases, str):
            raise TypeError(f"{type(self).__typename__} 'aliases' must be an iterable of strings")
        if not isinstance(colorful, bool | Unset) or not isinstance(fancy, bool | Unset):
            raise TypeError(f"{type(self).__typename__} runtime flags must be booleans")

        self._name = name
        self._help = help.strip()
        self._aliases = []
        self._keywords = [
            ArgumentDef("help", "-h", "--help", "show this help message and exit", helper=True),
        ]
        self._positionals = []
        self._subcommands = {}
        self._parent = Unset
        self._handler = Unset
        self._colorful = colorful
        self._fancy = fancy

        for alias in aliases:
            self.add_alias(alias)
        if handler is not None:
            self.handler(handler)

    @property
    def colorful(self):
        return bool(coalesce(self._colorful, getattr(self._parent, "colorful", False)))

    @property
    def fancy(self):
        return bool(coalesce(self._fancy, getattr(self._parent, "fancy", False)))

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        Space-joined names from the root to this command ("git remote add").
        """
        return " ".join(command._name for command in self.path)

    @property
    def helper(self):
        """
        The synthetic help flag of this command.
        """
        return self._keywords[0]

    # ── Registration ────────────────────────────────────────────────────────

    def _register(self, *arguments):
        """
        Append arguments after checking every name and spelling, all-or-nothing.
        """
        taken = {argument.name: argument for argument in (*self._keywords, *self._positionals)}
        spellings = {
            spelling: argument
            for argument in self._keywords
            for spelling in (argument.short, argument.long)
            if spelling is not None
        }
        for argument in arguments:
            if argument.name in taken:
                raise ValueError(f"{type(self).__typename__} argument {argument.name!r} already exists")
            taken[argument.name] = argument
            for spelling in (argument.short, argument.long):
                if spelling is None:
                    continue
                if (other := spellings.get(spelling)) is not None:
                    raise ValueError(
                        f"{type(self).__typename__} flag {spelling!r} is already used by argument {other.name!r}"
                    )
                spellings[spelling] = argument

        for argument in arguments:
            (self._positionals if argument.positional else self._keywords).append(argument)
            logger.debug("registered %s argument %r on %r", argument.kind.value, argument.name, self._name)

    def add_keyword(self, name, /, *flags, help="", kind=ArgKind.FLAG, required=False, default=Unset, type=None):
        """
        Declare a keyword argument (flag or option).

        Parameters
        - name: str
          Lookup key in the ParseResult. "help" is reserved.
        - *flags: str
          Spellings: at most one short ("-f") and at most one long ("--file").
        - help: str
          Description shown in help output.
        - kind: ArgKind.FLAG | ArgKind.SINGLE | ArgKind.MULTIPLE
        - required: bool
          Missing required keywords are parse errors.
        - default: Unset | bool | int | float | str | Iterable[str] | ArgValue
          Flags default to false; options default to an unset (none) value.
        - type: None | bool | int | float | str
          Declared value type; None infers it from the literal.

        Negation
        - a FLAG with a long spelling and a true default also registers
          "no_<name>" spelled "--no-<long>", defaulting to false.

        Returns
        - self, for chaining.

        Raises
        - TypeError/ValueError on invalid metadata, reserved or duplicate names,
          or spellings already used by another argument (nothing is registered).
        """
        if name == "help":
            raise ValueError(f"{type(self).__typename__} argument name 'help' is reserved for the automatic help flag")
        if kind is ArgKind.POSITIONAL:
            raise ValueError(f"{type(self).__typename__} keyword arguments cannot be positional")

        short = long = None
        for flag in flags:
            if not isinstance(flag, str):
                raise TypeError(f"{type(self).__typename__} flag spellings must be strings")
            elif flag.startswith("--"):
                if long is not None:
                    raise ValueError(f"{type(self).__typename__} argument {name!r} can have only one long spelling")
                long = flag
            elif flag.startswith("-"):
                if short is not None:
                    raise ValueError(f"{type(self).__typename__} argument {name!r} can have only one short spelling")
                short = flag
            else:
                raise ValueError(f"{type(self).__typename__} flag spelling {flag!r} must start with '-' or '--'")
        if short is None and long is None:
            raise TypeError(f"{type(self).__typename__} keyword argument {name!r} must specify at least one flag")

        arguments = [argument := ArgumentDef(name, short, long, help, kind, required, default, type)]

        if kind is ArgKind.FLAG and argument.long is not None and argument.default.as_bool():
            arguments.append(ArgumentDef(
                "no_" + argument.name,
                None,
                "--no-" + argument.long[2:],
                f"negate {argument.long}",
                ArgKind.FLAG,
                default=False,
                negates=argument.name,
            ))

        self._register(*arguments)
        return self

    def add_positional(self, name, /, help="", kind=ArgKind.SINGLE, required=True, default=Unset, type=None):
        """
        Declare the next positional slot.

        Parameters
        - kind: ArgKind.SINGLE (or POSITIONAL) takes one token; ArgKind.MULTIPLE
          takes every following token up to the next flag, as strings.
        - required: bool
          Missing required positionals are parse errors; optional ones get
          their default.

        Returns
        - self, for chaining.
        """
        if kind is ArgKind.FLAG:
            raise ValueError(f"{type(self).__typename__} positional arguments cannot be flags")
        if kind is ArgKind.POSITIONAL:
            kind = ArgKind.SINGLE
        self._register(ArgumentDef(name, None, None, help, kind, required, default, type))
        return self

    def add_subcommand(self, command, /):
        """
        Attach an existing command as a subcommand. Returns self.
        """
        if not isinstance(command, Command):
            raise TypeError(f"{type(self).__typename__} subcommands must be commands")
        _attach_to_parent(command, self)
        return self

    def command(self, name, /, help="", **options):
        """
        Create, attach and return a subcommand (options as for Command()).
        """
        self.add_subcommand(command := Command(name, help, **options))
        return command

    def add_alias(self, alias, /):
        """
        Add an alternative name. Collisions with siblings are rejected now,
        also when this command is already attached. Returns self.
        """
        _check_route(type(self), alias)
        if alias == self._name or alias in self._aliases:
            raise ValueError(f"{type(self).__typename__} alias {alias!r} is already a route of {self._name!r}")
        if self._parent:
            for sibling in self._parent._subcommands.values():
                if sibling is not self and alias in (sibling._name, *sibling._aliases):
                    raise ValueError(
                        f"{type(self).__typename__} route {alias!r} is already in use by subcommand {sibling._name!r}"
                    )
        self._aliases.append(alias)
        return self

    def handler(self, handler, /):
        """
        Register the handler (once).

        The handler receives the finished ParseResult and returns an exit code
        (None means 0). Returns the handler, enabling decorator-style usage:
        @cmd.handler
        """
        if not callable(handler):
            raise TypeError(f"{type(self).__typename__} handler must be callable")
        if self._handler is not Unset:
            raise TypeError(f"{type(self).__typename__} handler cannot be overridden")
        self._handler = handler
        return handler

    def locate(self, route, /):
        """
        Find a descendant from a space-joined route starting at this command's name.

        Returns None when the route does not lead to a command.
        """
        if not isinstance(route, str):
            raise TypeError("locate() argument must be a string")
        if route != self._name and not route.startswith(self._name + " "):
            return None
        command = self
        for name in route[len(self._name):].split():
            if (command := command._subcommands.get(name)) is None:
                return None
        return command

    # ── Parsing ─────────────────────────────────────────────────────────────

    def _find_keyword(self, name, /, *, short):
        for argument in self._keywords:
            if argument.matches(name, short=short):
                return argument
        return None

    def _resolve_route(self, name, /):
        """
        Subcommands reachable by name: an exact name wins, otherwise every
        subcommand carrying the alias (more than one means ambiguous).
        """
        if (command := self._subcommands.get(name)) is not None:
            return [command]
        return [command for command in self._subcommands.values() if name in command._aliases]

    def _help_route(self, tokens):
        """
        Pre-scan the whole line for a help flag, following subcommand routes.

        Returns the subcommands entered before the flag (innermost last), or
        None when no help flag is present. An ambiguous alias is not entered.
        """
        command, route = self, []
        for token in tokens:
            match token.kind:
                case TokenKind.IDENTIFIER if len(routes := command._resolve_route(token.text)) == 1:
                    command, = routes
                    route.append(command)
                case TokenKind.SHORT_FLAG if any(command.helper.matches(char, short=True) for char in token.name):
                    return route
                case TokenKind.LONG_FLAG if command.helper.matches(token.name, short=False):
                    return route
        return None

    def _fault(self, cls, message, code, title, hint, /, **context):
        return cls(message, code=code, title=title, hint=hint, docs=getdoc(code), **context)

    def _fail(self, result, fault, /):
        logger.debug("parse failed in %r: [%s] %s", result.command_path, fault.code.name, fault)
        return result.fail(fault)

    def _unknown_option(self, result, token, /):
        spellings = [
            spelling
            for argument in self._keywords
            for spelling in (argument.short, argument.long)
            if spelling is not None
        ]
        route = result.command_path
        try:
            suggestion, = difflib.get_close_matches(str(token), spellings, 1)
            hint = "did you mean %r? run '%s --help' to see available options" % (suggestion, route)
        except ValueError:
            hint = "run '%s --help' to see available options" % route
        return self._fault(
            UnknownOptionError,
            f"unknown option: {token}",
            FaultCode.UNKNOWN_OPTION,
            "unknown option",
            hint,
            token=token,
        )

    def _consume_values(self, tokens, argument, /):
        """
        Greedily take following non-flag tokens as strings (MULTIPLE arguments).
        """
        values = []
        while tokens and not tokens[0].kind.flag:
            if (value := argument.convert(tokens[0])) is None:
                break
            tokens.popleft()
            values.append(value.value)
        return values

    def _parse_cluster(self, token, result, seen, /):
        """
        Resolve "-abc" one character at a time; every character must be a flag.
        """
        for char in token.name:
            if (argument := self._find_keyword(char, short=True)) is None:
                return self._fault(
                    UnknownOptionError,
                    f"unknown option in combined flags: -{char}",
                    FaultCode.UNKNOWN_OPTION,
                    "unknown option",
                    "run '%s --help' to see available options" % result.command_path,
                    token=token,
                )
            if argument.helper:
                return result.request_help()
            if argument.kind is not ArgKind.FLAG:
                return self._fault(
                    UncombinableOptionError,
                    f"option -{char} requires a value and cannot be combined",
                    FaultCode.UNCOMBINABLE_OPTION,
                    "uncombinable option",
                    f"pass {argument.display} on its own, followed by its value",
                    argument=argument,
                    token=token,
                )
            seen.add(argument.name)
            result.keyword_values[argument.name] = ArgValue.of(True)
        return None

    def _parse_flag(self, token, tokens, result, seen, /):
        """
        Bind one flag token (the token is already consumed).

        Returns None on success, the result itself on a help request, or a fault.
        """
        short = token.kind is TokenKind.SHORT_FLAG
        if short and len(token.name) > 1:
            return self._parse_cluster(token, result, seen)

        if (argument := self._find_keyword(token.name, short=short)) is None:
            return self._unknown_option(result, token)
        if argument.helper:
            return result.request_help()

        repeated = argument.name in seen
        seen.add(argument.name)

        if argument.kind is ArgKind.FLAG:
            result.keyword_values[argument.name] = ArgValue.of(True)
            return None

        # --name=value
        if tokens and tokens[0].kind is TokenKind.ASSIGN:
            tokens.popleft()

        if not tokens or tokens[0].kind.flag:
            return self._fault(
                MissingValueError,
                f"option {argument.display} requires a value",
                FaultCode.MISSING_VALUE,
                "missing value",
                f"write the value right after {token}",
                argument=argument,
            )
        if (value := argument.convert(tokens[0])) is None:
            return self._fault(
                InvalidValueError,
                f"invalid value for option {argument.display}",
                FaultCode.INVALID_VALUE,
                "invalid value",
                f"{tokens[0]} is not accepted here" + (f"; expected a {argument.type.__name__}" if argument.type else ""),
                argument=argument,
                token=tokens[0],
            )
        tokens.popleft()

        if argument.kind is ArgKind.MULTIPLE:
            values = (value.value, *self._consume_values(tokens, argument))
            previous = result.keyword_values.get(argument.name)
            if repeated and previous is not None and previous.kind is ValueKind.STRING_LIST:
                value = previous.extend(*values)
            else:
                value = ArgValue.of_list(values)

        result.keyword_values[argument.name] = value
        return None

    def _parse_positional(self, tokens, result, positionals, /):
        """
        Bind the next positional slot from the head of the token stream.
        """
        token = tokens[0]
        if not positionals:
            return self._fault(
                UnexpectedArgumentError,
                f"unexpected argument: {token}",
                FaultCode.UNEXPECTED_ARGUMENT,
                "unexpected argument",
                "remove the extra input or run '%s --help' to see valid forms" % result.command_path,
                token=token,
            )
        argument = positionals.popleft()
        if (value := argument.convert(token)) is None:
            return self._fault(
                InvalidValueError,
                f"invalid value for positional argument {argument.name!r}",
                FaultCode.INVALID_ARGUMENT,
                "invalid value",
                f"{token} is not accepted here" + (f"; expected a {argument.type.__name__}" if argument.type else ""),
                argument=argument,
                token=token,
            )
        tokens.popleft()

        if argument.kind is ArgKind.MULTIPLE:
            value = ArgValue.of_list((value.value, *self._consume_values(tokens, argument)))

        result.bind_positional(argument.name, value)
        return None

    def parse(self, tokens, /, result=Unset, *, prefix=""):
        """
        Parse a token stream against this command (and its subcommands).

        Parameters
        - tokens: deque[Token] | Iterable[Token]
          The token stream; a deque is consumed in place (it is the cursor), any
          other iterable is copied. EOF tokens are dropped.
        - result: ParseResult | Unset
          The result being threaded through subcommand recursion; a fresh one
          is created when Unset.
        - prefix: str
          Route of the parent commands, including the trailing space.

        Returns
        - ParseResult with status SUCCESS, HELP_REQUESTED or PARSE_ERROR. When a
          subcommand is entered, its result is returned unchanged.

        Raises
        - TypeError: on a wrong result type, or a handler returning a non-int.
        - Any exception raised by the handler propagates.
        """
        if not isinstance(tokens, deque):
            tokens = deque(tokens)
        while tokens and tokens[-1].kind is TokenKind.EOF:
            tokens.pop()
        if not all(isinstance(token, Token) for token in tokens):
            raise TypeError("parse() argument must be an iterable of tokens")
        if result is Unset:
            result = ParseResult()
        elif not isinstance(result, ParseResult):
            raise TypeError("parse() result must be a parse result")

        result.command_path = prefix + self._name
        result.positional_values.clear()
        result.positional_names.clear()
        for argument in self._keywords:
            if not argument.helper:
                result.keyword_values[argument.name] = argument.default

        # help wins over anything else on the line, at the deepest command reached
        if (route := self._help_route(tokens)) is not None:
            for command in route:
                result.command_path += " " + command._name
                for argument in command._keywords:
                    if not argument.helper:
                        result.keyword_values[argument.name] = argument.default
            logger.debug("help requested for %r", result.command_path)
            return result.request_help()

        seen = set()
        positionals = deque(self._positionals)

        while tokens:
            token = tokens[0]

            if token.kind.flag:
                tokens.popleft()
                match self._parse_flag(token, tokens, result, seen):
                    case None:
                        continue
                    case ParseResult():
                        logger.debug("help requested for %r", result.command_path)
                        return result
                    case fault:
                        return self._fail(result, fault)

            if token.kind is TokenKind.IDENTIFIER and (routes := self._resolve_route(token.text)):
                if len(routes) > 1:
                    return self._fail(result, self._fault(
                        AmbiguousAliasError,
                        "ambiguous alias %r matches subcommands %s" % (
                            token.text, ", ".join(command._name for command in routes)
                        ),
                        FaultCode.AMBIGUOUS_ALIAS,
                        "ambiguous alias",
                        "use the full subcommand name instead",
                        token=token,
                    ))
                tokens.popleft()
                command, = routes
                logger.debug("dispatching %r to subcommand %r", token.text, command._name)
                return command.parse(tokens, result, prefix=result.command_path + " ")

            if (fault := self._parse_positional(tokens, result, positionals)) is not None:
                return self._fail(result, fault)

        for argument in self._keywords:
            if argument.required and argument.name not in seen:
                return self._fail(result, self._fault(
                    MissingRequiredOptionError,
                    f"missing required option: {argument.display}",
                    FaultCode.MISSING_REQUIRED_OPTION,
                    "missing option",
                    f"add {argument.display} to the command line",
                    argument=argument,
                ))

        for argument in positionals:
            if argument.required:
                return self._fail(result, self._fault(
                    MissingRequiredArgumentError,
                    f"missing required positional argument: {argument.name}",
                    FaultCode.MISSING_REQUIRED_ARGUMENT,
                    "missing argument",
                    "run '%s --help' to see the expected arguments" % result.command_path,
                    argument=argument,
                ))
            result.bind_positional(argument.name, argument.default)

        if self._handler is not Unset:
            if not isinstance(code := self._handler(result), int | None) or isinstance(code, bool):
                raise TypeError(f"{type(self).__typename__} handler must return an int exit code or None")
            result.exit_code = 0 if code is None else code
        return result

    # ── Rendering ───────────────────────────────────────────────────────────

    def render_help(self, /, route=Unset, *, console=Unset):
        """
        Build the help renderable of this command, laid out for the width of
        console (a default rich Console when Unset).

        Layout
        - usage line: route, [options], <command>, then positionals
          (<required>, [optional], trailing "..." for multiple).
        - description paragraph.
        - "arguments" and "options" groups with descriptions, defaults and
          [required]/[optional] markers.
        - "commands" table and a pointer to subcommand help.

        Palette keys
        - usage-label, program-name, usage-section, description-section
        - group-label, argument-name, option-name, flag-name, argument-description
        - children-title, children-table, children, children-description, footer
        - panel-title

        Customization
        - Define a mapping named __styles__ in __main__ to override any palette entry.
        - When colorful is False, styling is suppressed.
        """
        if console is Unset:
            console = Console()
        elif not isinstance(console, Console):
            raise TypeError(f"{type(self).__typename__} help console must be a rich console")
        styles = defaultdict(str, {
            # === Head sections ===
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
            "description-section": "italic #A3A3A3",  # Neutral gray

            # === Groups / arguments ===
            "group-label": "bold #FFFFFF",  # Pure white headers
            "argument-name": "bold #FFD600",  # AMBER for positionals
            "option-name": "bold #00E6FF",  # CYAN for options
            "flag-name": "bold #22C55E",  # GREEN for flags
            "argument-description": "#9CA3AF",  # Muted gray

            # === Children table ===
            "children-title": "bold #FFFFFF",
            "children-table": "#4B5563",  # Slate border
            "children": "bold #36C5F0",  # Sky-blue subcommands
            "children-description": "#9CA3AF",
            "footer": "#737373",

            # === Fancy panel ===
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self.colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self.colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        def describe(argument):
            parts = [argument.help] if argument.help else []
            default = argument.default
            if default.kind is not ValueKind.NONE and (default.kind is not ValueKind.BOOL or default.value):
                parts.append(f"(default: {default})")
            if argument.positional and not argument.required:
                parts.append("[optional]")
            elif not argument.positional and argument.required:
                parts.append("[required]")
            return " ".join(parts)

        route = coalesce(route, self.route)
        width = console.width - 4 * self.fancy
        renders = []

        usage = Text()
        usage.append("usage", styler("usage-label")).append(":").append(" ")
        usage.append(text(route, styler("program-name")))
        if self._keywords:
            usage.append(" ").append(text("[options]", styler("usage-section")))
        if self._subcommands:
            usage.append(" ").append(text("<command>", styler("usage-section")))
        for argument in self._positionals:
            label = f"<{argument.name}>" if argument.required else f"[{argument.name}]"
            usage.append(" ").append(text(label + "..." * (argument.kind is ArgKind.MULTIPLE), styler("usage-section")))
        renders.append(usage.append("\n"))

        if self._help:
            renders.append(text(self._help, styler("description-section")).append("\n"))

        padding = 2
        names = {
            argument: argument.name if argument.positional else argument.display
            for argument in (*self._positionals, *self._keywords)
        }
        indent = min(padding + max(map(len, names.values()), default=0) + 2, max(width // 2, padding + 2))

        groups = Text()
        for label, arguments in (("arguments", self._positionals), ("options", self._keywords)):
            if not arguments:
                continue
            groups.append(text(label, styler("group-label"))).append(":").append("\n")
            for argument in arguments:
                if argument.positional:
                    style = "argument-name"
                else:
                    style = "flag-name" if argument.kind is ArgKind.FLAG else "option-name"
                section = Text(" " * padding)
                section.append(text(names[argument], styler(style)))

                if descr := describe(argument):
                    if len(section) + 1 >= indent:
                        section.append("\n").append(" " * indent)
                    else:
                        section.append(" " * (indent - len(section)))
                    wrapped = text(descr, styler("argument-description")).wrap(console, max(width - indent, 10))
                    for index, line in enumerate(wrapped):
                        if index:
                            section.append("\n").append(" " * indent)
                        section.append(line)
                groups.append(section).append("\n")
            groups.append("\n")

        if groups:
            groups.rstrip()
            renders.append(groups.append("\n"))

        if self._subcommands:
            table = Table(
                "name", "help",
                title=text("commands" if not self._parent else "subcommands", styler("children-title")),
                width=int(width * (2 / 3)),
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("children-title"),
            )
            for name, command in self._subcommands.items():
                label = text(name, styler("children"))
                if command._aliases:
                    label = Text.assemble(label, f" ({', '.join(command._aliases)})")
                table.add_row(label, text(command._help, styler("children-description")))
            renders.append(table)
            renders.append(text(
                f"use '{route} <command> --help' for more information on a command", styler("footer"),
            ))

        renderable = Group(*renders)

        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{self._name} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )

        return renderable


__all__ = (
    "Command",
)

# Keep the metaclass out of star-imports; it is not part of the public API.
del CommandType
