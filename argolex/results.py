"""
Argolex parse results.

A ParseResult is the one shape every parse ends in: success, help request, or
error. It is created once per top-level parse, threaded through the recursive
Command.parse calls, and owns its data (ArgValue instances are immutable).

Lookups
- keyword(name) / positional(index_or_name) -> ArgValue | None
- get_bool/get_int/get_float/get_string/get_list(key) -> typed value | None;
  a string key looks up a keyword first, then a positional slot of that name,
  an int key looks up a positional by index. Absence and kind mismatch both
  answer None.
"""
from dataclasses import dataclass, field
from enum import Enum

from .values import ArgValue


class Status(Enum):
    SUCCESS = "success"
    HELP_REQUESTED = "help-requested"
    PARSE_ERROR = "parse-error"


@dataclass(eq=False)
class ParseResult:
    status: Status = Status.SUCCESS
    exit_code: int = 0
    error_message: str = ""
    command_path: str = ""
    keyword_values: dict[str, ArgValue] = field(default_factory=dict)
    positional_values: list[ArgValue] = field(default_factory=list)
    positional_names: list[str] = field(default_factory=list)
    fault: Exception | None = field(default=None, repr=False)

    @property
    def ok(self):
        return self.status is Status.SUCCESS

    @property
    def help_requested(self):
        return self.status is Status.HELP_REQUESTED

    @property
    def failed(self):
        return self.status is Status.PARSE_ERROR

    def fail(self, fault, /):
        """
        Record a grammar or lexical fault; the result becomes a PARSE_ERROR.
        """
        self.status = Status.PARSE_ERROR
        self.exit_code = 1
        self.error_message = str(fault)
        self.fault = fault
        return self

    def request_help(self):
        self.status = Status.HELP_REQUESTED
        self.exit_code = 0
        return self

    def bind_positional(self, name, value, /):
        self.positional_names.append(name)
        self.positional_values.append(value)

    def keyword(self, name, /):
        return self.keyword_values.get(name)

    def positional(self, key, /):
        if isinstance(key, bool) or not isinstance(key, int | str):
            raise TypeError("positional() argument must be an index or a name")
        if isinstance(key, str):
            try:
                key = self.positional_names.index(key)
            except ValueError:
                return None
        if 0 <= key < len(self.positional_values):
            return self.positional_values[key]
        return None

    def _lookup(self, key):
        if isinstance(key, str) and key in self.keyword_values:
            return self.keyword_values[key]
        return self.positional(key)

    def get_bool(self, key, /):
        return value.as_bool() if (value := self._lookup(key)) is not None else None

    def get_int(self, key, /):
        return value.as_int() if (value := self._lookup(key)) is not None else None

    def get_float(self, key, /):
        return value.as_float() if (value := self._lookup(key)) is not None else None

    def get_string(self, key, /):
        return value.as_string() if (value := self._lookup(key)) is not None else None

    def get_list(self, key, /):
        return value.as_list() if (value := self._lookup(key)) is not None else None


__all__ = (
    "Status",
    "ParseResult",
)
