"""
Anoma CLI faults and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing failure, grouped
  by domain (routing, switches, values, constraints, context).
- CommandException: base type carrying a message plus options (title, code,
  hint, key, raw input, ...) that knows how to render itself with rich.
- trigger(): the single way a fault is surfaced. Outside shell mode the
  exception is raised; in shell mode it is printed to stderr and the process
  exits with status 2.
- getdoc(): optional documentation lookup for a code from the host program.

Taxonomy
- argument parse errors: ArgumentParseError, EmptyValueError
- constraint violations: MissingArgumentError, ConflictingArgumentsError,
  RequiredGroupError
- syntax: MalformedTokenError, UnknownSwitchError, UnknownCommandError,
  UnknownSubcommandError, UnexpectedArgumentError, DuplicatedSwitchError,
  FlagAssignmentError, OptionValueRequiredError
- context construction: ContextError (message surfaced verbatim)

Host integration
- __styles__ in __main__ overrides palette entries.
- __codes__ in __main__ relabels codes, __docs__ documents them.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)

EXIT_USAGE = 2


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND
    - switches (1111x/1112x)
      • MALFORMED_TOKEN, UNKNOWN_SWITCH, FLAG_ASSIGNMENT, DUPLICATED_SWITCH,
        OPTION_VALUE_REQUIRED, UNEXPECTED_ARGUMENT, EMPTY_VALUE
    - values (1113x)
      • INVALID_VALUE
    - constraints (1115x)
      • MISSING_ARGUMENTS, CONFLICTING_ARGUMENTS, REQUIRED_GROUP
    - context (1116x)
      • CONTEXT_FAILURE
    """
    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    # --- switch errors ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_SWITCH              = 11112
    FLAG_ASSIGNMENT             = 11113
    DUPLICATED_SWITCH           = 11115
    OPTION_VALUE_REQUIRED       = 11117
    UNEXPECTED_ARGUMENT         = 11121
    EMPTY_VALUE                 = 11123

    # --- value errors ---
    INVALID_VALUE               = 11131

    # --- constraint errors ---
    MISSING_ARGUMENTS           = 11151
    CONFLICTING_ARGUMENTS       = 11152
    REQUIRED_GROUP              = 11153

    # --- context errors ---
    CONTEXT_FAILURE             = 11161

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host program may define __codes__ in __main__ mapping codes to
        friendlier labels; otherwise the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base of every fault raised while resolving a command line.

    The message is the one-sentence body shown to the user; options carry the
    structured details (title, code, hint, key, input, ...) and the runtime
    switches (tool, shell, fancy, colorful) merged in by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*([message] if message else []))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", tool.root.name if tool else "anoma"), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " | ",
            text(code.normalize() if code else "error", styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))

        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(EXIT_USAGE)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedTokenError(CommandException): ...
class UnknownSwitchError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class UnknownCommandError(CommandException): ...
class UnknownSubcommandError(CommandException): ...
class UnexpectedArgumentError(CommandException): ...
class DuplicatedSwitchError(CommandException): ...
class OptionValueRequiredError(CommandException): ...
class EmptyValueError(CommandException): ...


class ArgumentParseError(CommandException):
    """
    Raw text could not be converted to the argument's type.

    Always carries the argument key and the offending raw text; for values
    coming from the environment, the variable name as well.
    """

    @property
    def key(self):
        return self.options.get("key")

    @property
    def input(self):
        return self.options.get("input")


class ConstraintViolation(CommandException):
    """
    Base of the declarative constraint faults; keys lists the arguments involved.
    """

    @property
    def keys(self):
        return tuple(self.options.get("keys", ()))


class MissingArgumentError(ConstraintViolation): ...
class ConflictingArgumentsError(ConstraintViolation): ...
class RequiredGroupError(ConstraintViolation): ...


class ContextError(CommandException):
    """
    The wallet or the configuration under the base directory could not be loaded.
    """


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see CommandException).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode the fault is printed and the process exits with status 2;
      otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, from __docs__ in __main__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "MalformedTokenError",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "UnexpectedArgumentError",
    "DuplicatedSwitchError",
    "OptionValueRequiredError",
    "EmptyValueError",
    "ArgumentParseError",
    "ConstraintViolation",
    "MissingArgumentError",
    "ConflictingArgumentsError",
    "RequiredGroupError",
    "ContextError",
    "FaultCode",
    "EXIT_USAGE",
    "trigger",
    "getdoc",
)
