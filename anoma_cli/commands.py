"""
Anoma CLI command layer: definitions, matching, help, and command nodes.

What this module provides
- Command: one level of a command tree, with its argument definitions,
  constraint groups, mutually exclusive arguments and children. A root
  command also owns the global arguments, accepted at every level.
  • match(prompt) turns raw tokens into an ArgMatches tree, rejecting unknown
    or malformed switches, duplicates, missing values, missing required
    arguments and constraint violations with position-first messages.
  • help() / version() render with rich.

- Argument structs:
  • Args: base of frozen dataclasses whose fields are declared with
    argument(descriptor, descr, conflicts=...) or argument(OtherStruct).
    definitions() feeds a Command, parse(matches) builds the struct.

- Command nodes (the catalog's vocabulary):
  • Leaf: a command with an argument struct (field 'args').
  • Branch: a command with children (field 'sub' holds the selected one) and
    an optional default child used when no sub-token is given.
  • Both are declared with class keywords (token, descr, context, order,
    args / children / default) and build a fresh Command on every
    definition() call, so one node serves at any position of any tree.

Core ideas
- Build-time checks raise immediately: sibling tokens and argument keys are
  unique per parent, conflicts and groups only name known keys.
- Matching validates each level before descending into the next one.
- Faults go through trigger(): raised in library use, printed (exit 2) in
  shell mode.
"""
import dataclasses
import difflib
import functools
import logging
import operator
import re
import shlex
import sys
from collections import defaultdict, deque
from collections.abc import Iterable

from rich.box import ROUNDED
from rich.console import Console, Group as RenderGroup
from rich.containers import Lines
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Argument, Definition, FromContext, Group
from .faults import *
from .matches import ArgMatches
from .utils import *

logger = logging.getLogger(__name__)

_NAME = r"[a-z][a-z0-9]*(-[a-z0-9]+)*"
_RESERVED = ("help", "version")


class CommandType(type):
    """
    Metaclass giving commands stable, introspectable representations.

    Same contract as the descriptors' metaclass: __typename__, read-only
    mirrors for __introspectable__ and __repr__/__rich_repr__ built from
    __displayable__.
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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                object = getattr(self, name)
                # parent and children by name, the tree is cyclic
                if name == "parent":
                    object = object.name if object else None
                elif name == "children":
                    object = tuple(object)
                yield name, object
        self.__rich_repr__ = __rich_repr__

        return self


def _process_strings(cls, metadata):
    """
    Validate name, descr and version.

    - name: kebab-case token ("init-validator").
    - descr / version: Unset or a non-empty string (rich Text accepted for descr).
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not re.fullmatch(_NAME, name):
        raise ValueError(f"{cls.__typename__} 'name' must be a kebab-case token, got {name!r}")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(version := metadata["version"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'version' must be a string")
    elif isinstance(version, str) and not (version := version.strip()):
        raise ValueError(f"{cls.__typename__} 'version' cannot be empty")
    metadata["version"] = coalesce(version)


def _process_definitions(cls, metadata):
    """
    Index argument and global definitions by key.

    Raises
    - TypeError: not an iterable of Definition objects.
    - ValueError: a key is reserved (help, version) or declared twice.
    """
    for field in ("arguments", "globals"):
        if isinstance(metadata[field], str) or not isinstance(metadata[field], Iterable):
            raise TypeError(f"{cls.__typename__} {field!r} must be an iterable of definitions")

        definitions = {}
        for definition in metadata[field]:
            if not isinstance(definition, Definition):
                raise TypeError(f"{cls.__typename__} {field!r} must be an iterable of definitions")
            if definition.key in _RESERVED:
                raise ValueError(f"{cls.__typename__} argument key {definition.key!r} is reserved")
            if definition.key in definitions:
                raise ValueError(f"{cls.__typename__} argument key {definition.key!r} is already in use")
            definitions[definition.key] = definition
        metadata[field] = definitions


def _process_conflicts(cls, metadata):
    """
    Compile the symmetric conflict map from the definitions' conflicts.

    Result
    - { key: {peer1, peer2, ...}, ... } where key conflicts with every peer
      declared on either side.

    Raises
    - ValueError: a conflict names a key that is not an argument of the command.
    """
    conflicts = defaultdict(set)

    for definition in metadata["arguments"].values():
        for peer in definition.conflicts:
            if peer not in metadata["arguments"]:
                raise ValueError(f"{cls.__typename__} argument {definition.key!r} conflicts with unknown key {peer!r}")
            conflicts[definition.key].add(peer)
            conflicts[peer].add(definition.key)

    metadata["conflicts"] = {key: frozenset(peers) for key, peers in conflicts.items()}


def _process_groups(cls, metadata):
    """
    Validate constraint groups: known keys and unique names.
    """
    if isinstance(metadata["groups"], str) or not isinstance(metadata["groups"], Iterable):
        raise TypeError(f"{cls.__typename__} 'groups' must be an iterable of groups")

    groups = {}
    for group in metadata["groups"]:
        if not isinstance(group, Group):
            raise TypeError(f"{cls.__typename__} 'groups' must be an iterable of groups")
        if group.name in groups:
            raise ValueError(f"{cls.__typename__} group name {group.name!r} is already in use")
        if unknown := [key for key in group.keys if key not in metadata["arguments"]]:
            raise ValueError(f"{cls.__typename__} group {group.name!r} names unknown key {unknown[0]!r}")
        groups[group.name] = group

    metadata["groups"] = tuple(groups.values())


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique tokens.

    Raises
    - ValueError: the token is already used by a sibling, the command already
      has a parent, or it declares global arguments (roots only).
    """
    if self._parent is not None:
        raise ValueError(f"{type(self).__typename__} {self.name!r} is already attached to {self._parent.name!r}")
    if self._globals:
        raise ValueError(f"{type(self).__typename__} {self.name!r} declares global arguments and cannot be nested")

    if parent._children.setdefault(name := self.name, self) is not self:
        raise ValueError(f"{type(self).__typename__} subcommand name {name!r} is already in use under {parent.name!r}")
    self._parent = parent


def _route(command):
    return " ".join(step.name for step in command.path)


class Command(metaclass=CommandType):
    """
    One level of a command tree.

    Responsibilities
    - Introspection: name, descr, version, argument definitions, global
      definitions (root only), groups, conflicts, parent and children as
      read-only properties.
    - Composition: children are attached at construction; tokens are unique
      per parent and each command has at most one parent.
    - Matching: match(prompt) on the root builds the ArgMatches tree.
    - Rendering: help() and version() via rich.

    Runtime switches
    - shell: faults print and exit with status 2 instead of raising.
    - fancy: panels around help and faults.
    - colorful: styles on (palette overridable via __main__.__styles__).
    Children read them from their root.
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "arguments",
        "globals",
        "groups",
        "conflicts",
        "parent",
        "children",
        "default",
        "order",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "parent",
        "children",
        "default",
    )

    @property
    def root(self):
        """
        Return the topmost command of this tree.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root to this command.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def shell(self):
        return self.root._shell

    @property
    def fancy(self):
        return self.root._fancy

    @property
    def colorful(self):
        return self.root._colorful

    @property
    def switches(self):
        """
        Return every switch accepted at this level: the root's global
        arguments and the local ones, a local key shadowing a global one.
        """
        return {"--" + key: definition for key, definition in (self.root._globals | self._arguments).items()}

    def __new__(
            cls,
            name,
            /,
            *,
            descr=Unset,
            version=Unset,
            arguments=(),
            globals=(),
            groups=(),
            children=(),
            default=Unset,
            order=0,
            shell=False,
            fancy=False,
            colorful=True
    ):
        """
        Build a command definition.

        Parameters
        - name: kebab-case token.
        - descr: help text.
        - version: version string (roots); enables --version/-V.
        - arguments: Definition objects of this level.
        - globals: Definition objects accepted at every level (roots only).
        - groups: arguments.Group constraints over this level's keys.
        - children: Command objects, attached in display order (order, then
          declaration order).
        - default: token of the child used when none is given.
        - order: display rank among siblings.
        - shell / fancy / colorful: runtime switches (read from the root).
        """
        metadata = {
            "name": name,
            "descr": descr,
            "version": version,
            "arguments": arguments,
            "globals": globals,
            "groups": groups,
        }
        _process_strings(cls, metadata)
        _process_definitions(cls, metadata)
        _process_conflicts(cls, metadata)
        _process_groups(cls, metadata)

        if not isinstance(order, int) or isinstance(order, bool):
            raise TypeError(f"{cls.__typename__} 'order' must be an integer")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._order = order
        self._parent = None
        self._children = {}
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        if isinstance(children, str) or not isinstance(children, Iterable):
            raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands")
        children = list(children)
        if not all(isinstance(child, Command) for child in children):
            raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands")
        for child in sorted(children, key=lambda x: x.order):
            _attach_to_parent(child, self)

        if default is not Unset and default not in self._children:
            raise ValueError(f"{cls.__typename__} default {default!r} is not a subcommand of {self.name!r}")
        self._default = coalesce(default)

        return self

    def locate(self, matches, /):
        """
        Return the command of the deepest level selected in matches.
        """
        command = self
        for level in tuple(matches)[1:]:
            command = command._children[level.name]
        return command

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this tree's runtime switches.
        """
        trigger(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    def match(self, prompt=Unset, /):
        """
        Match a token stream against this tree.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string split with shlex.split.
          • Iterable[str]: pre-tokenized sequence, items kept verbatim.

        Returns
        - ArgMatches: the root level, with each selected subcommand chained.

        Raises
        - TypeError: prompt of the wrong type, or matching from a non-root.
        - CommandException subclasses (outside shell mode).
        """
        if self._parent is not None:
            raise TypeError("match() must be called on a root command")

        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("match() argument must be a string or an iterable of strings")
        else:
            raise TypeError("match() argument must be a string or an iterable of strings")

        logger.debug("matching %r against %r", tokens, self.name)
        self._parseargs(deque(tokens), matches := ArgMatches(self.name))
        return matches

    def _lookup(self, key):
        # local definitions shadow the root's globals
        if key in self._arguments:
            return self._arguments[key], False
        if key in (root := self.root)._globals:
            return root._globals[key], True
        raise KeyError(key)

    def _resolve_token(self, token, index):
        r"""
        normalize a raw switch token into (key, value) and validate its shape.

        - accepts '--key' (value taken from the next token) and '--key=value'.
        - '-h'/'--help' resolve to ('help', None); '-V'/'--version' to
          ('version', None) on commands of a versioned tree.
        - shape: (?P<input>--?[^\W\d_](-?[^\W_]+)*)(=(?P<value>[^\r\n]*))?
        - malformed token, unknown switch (with suggestions) and a value given
          to a flag are triggered as faults.
        """
        match = re.fullmatch(r"(?P<input>--?[^\W\d_](-?[^\W_]+)*)(=(?P<value>[^\r\n]*))?", token)

        if not match:
            return self.trigger(MalformedTokenError(
                "bad form of argument %r at %s position" % (token, ordinal(index)),
                title="malformed argument",
                code=FaultCode.MALFORMED_TOKEN,
                hint="try '%s --help' to see valid spellings and forms (e.g., --key=value)" % _route(self),
                token=token,
                index=index,
                docs=getdoc(FaultCode.MALFORMED_TOKEN)
            ))

        input = match["input"]
        value = match["value"]

        if input in ("-h", "--help", "-V", "--version"):
            if value is not None:
                return self.trigger(FlagAssignmentError(
                    "flag %r at %s position cannot have an inline value" % (input, ordinal(index)),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    input=input,
                    hint="remove everything from '=' (for example: %s)" % input,
                    docs=getdoc(FaultCode.FLAG_ASSIGNMENT)
                ))
            if input in ("-h", "--help"):
                return "help", None
            if self.root.version:
                return "version", None

        try:
            if not input.startswith("--"):
                raise KeyError(input)
            definition, _ = self._lookup(key := input[2:])
        except KeyError:
            suggestions = difflib.get_close_matches(input, self.switches.keys(), 5)
            try:
                hint = "did you mean %r? you can also run '%s --help' to see all arguments" % (
                    suggestions[0],
                    _route(self)
                )
            except IndexError:
                hint = "try '%s --help' to see all available arguments" % _route(self)
            return self.trigger(UnknownSwitchError(
                "unknown argument %r at %s position" % (input, ordinal(index)),
                title="unknown argument",
                code=FaultCode.UNKNOWN_SWITCH,
                input=input,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_SWITCH)
            ))

        if value is not None and not definition.takes_value:
            return self.trigger(FlagAssignmentError(
                "flag %r at %s position cannot have an inline value" % (input, ordinal(index)),
                title="flag cannot take a value",
                code=FaultCode.FLAG_ASSIGNMENT,
                input=input,
                hint="remove everything from '=' (for example: %s)" % input,
                docs=getdoc(FaultCode.FLAG_ASSIGNMENT)
            ))

        return key, value

    def _parseargs(self, tokens, matches, *, index=1):
        """
        match tokens for this level, then descend into the selected child.

        phases
        - loop
          • switches: resolved via _resolve_token(); values come inline or from
            the next token; globals are recorded on the root level.
          • first non-switch token: a child token (validated level first), or
            an unexpected argument when this level has no children.
        - post-loop
          • _validate(matches) for the last matched level.
        """
        while tokens:
            token = tokens.popleft()

            if token.startswith("-"):
                key, value = self._resolve_token(token, index)

                match key:
                    case "help":
                        self.help()
                        sys.exit(0)
                    case "version":
                        self.root.version_info()
                        sys.exit(0)

                definition, isglobal = self._lookup(key)
                target = matches.root if isglobal else matches
                input = "--" + key

                if key in target:
                    self.trigger(DuplicatedSwitchError(
                        "argument %r at %s position was already provided" % (input, ordinal(index)),
                        title="duplicated argument",
                        code=FaultCode.DUPLICATED_SWITCH,
                        input=input,
                        index=index,
                        hint="keep a single %r; each argument can be specified only once" % input,
                        docs=getdoc(FaultCode.DUPLICATED_SWITCH)
                    ))

                if not definition.takes_value:
                    target._record(key, True)
                    index += 1
                    continue

                start = index
                if value is None:
                    if not tokens or tokens[0].startswith("--"):
                        self.trigger(OptionValueRequiredError(
                            "argument %r at %s position requires a value" % (input, ordinal(start)),
                            title="missing value",
                            code=FaultCode.OPTION_VALUE_REQUIRED,
                            input=input,
                            index=start,
                            hint="pass it after a space or inline (for example: %s <%s> or %s=<%s>)" % (
                                input, definition.metavar, input, definition.metavar
                            ),
                            docs=getdoc(FaultCode.OPTION_VALUE_REQUIRED)
                        ))
                    value = tokens.popleft()
                    index += 1

                if not value:
                    self.trigger(EmptyValueError(
                        "empty value for argument %r at %s position" % (input, ordinal(start)),
                        title="empty value",
                        code=FaultCode.EMPTY_VALUE,
                        input=input,
                        index=start,
                        hint="add a value (for example: %s=<%s>)" % (input, definition.metavar),
                        docs=getdoc(FaultCode.EMPTY_VALUE)
                    ))

                target._record(key, value)
                index += 1

            elif self._children:
                self._validate(matches)
                try:
                    child = self._children[token]
                except KeyError:
                    suggestions = difflib.get_close_matches(token, self._children.keys(), 5)
                    try:
                        hint = "did you mean %r? you can also run '%s --help' to see available %scommands" % (
                            suggestions[0], _route(self), "sub" * bool(self._parent)
                        )
                    except IndexError:
                        hint = "run '%s --help' to see available %scommands" % (_route(self), "sub" * bool(self._parent))

                    exception = UnknownSubcommandError if self._parent else UnknownCommandError
                    code = FaultCode.UNKNOWN_SUBCOMMAND if self._parent else FaultCode.UNKNOWN_COMMAND
                    type = "subcommand" if self._parent else "command"

                    return self.trigger(exception(
                        "unknown %s %r at %s position" % (type, token, ordinal(index)),
                        title="unknown %s" % type,
                        code=code,
                        input=token,
                        index=index,
                        suggestions=suggestions,
                        hint=hint,
                        docs=getdoc(code),
                    ))

                logger.debug("selected %r under %r", token, self.name)
                return child._parseargs(tokens, matches._select(token), index=index + 1)

            else:
                self.trigger(UnexpectedArgumentError(
                    "unexpected argument %r at %s position" % (token, ordinal(index)),
                    title="unexpected argument",
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    input=token,
                    index=index,
                    hint="arguments are named: run '%s --help' to see the expected usage" % _route(self),
                    docs=getdoc(FaultCode.UNEXPECTED_ARGUMENT)
                ))

        self._validate(matches)
        return matches

    def _validate(self, matches):
        """
        enforce this level's declarative constraints on its matched values.

        order
        - mutually exclusive arguments (ConflictingArgumentsError)
        - groups: more than one key (ConflictingArgumentsError), none of a
          required group (RequiredGroupError)
        - required arguments without default (MissingArgumentError)
        """
        given = matches.values.keys()

        for key in given:
            if clash := sorted(self._conflicts.get(key, frozenset()) & given):
                self.trigger(ConflictingArgumentsError(
                    "argument '--%s' cannot be used with %s" % (key, ", ".join("'--%s'" % x for x in clash)),
                    title="conflicting arguments",
                    code=FaultCode.CONFLICTING_ARGUMENTS,
                    keys=(key, *clash),
                    hint="keep only one of them; run '%s --help' for details" % _route(self),
                    docs=getdoc(FaultCode.CONFLICTING_ARGUMENTS)
                ))

        for group in self._groups:
            present = [key for key in group.keys if key in given]
            if len(present) > 1:
                self.trigger(ConflictingArgumentsError(
                    "only one of %s can be given" % ", ".join("'--%s'" % x for x in group.keys),
                    title="conflicting arguments",
                    code=FaultCode.CONFLICTING_ARGUMENTS,
                    keys=tuple(present),
                    group=group.name,
                    hint="keep only one of them; run '%s --help' for details" % _route(self),
                    docs=getdoc(FaultCode.CONFLICTING_ARGUMENTS)
                ))
            if group.required and not present:
                self.trigger(RequiredGroupError(
                    "one of %s must be given" % ", ".join("'--%s'" % x for x in group.keys),
                    title="required group",
                    code=FaultCode.REQUIRED_GROUP,
                    keys=group.keys,
                    group=group.name,
                    hint="add one of them; run '%s --help' for details" % _route(self),
                    docs=getdoc(FaultCode.REQUIRED_GROUP)
                ))

        if missing := [key for key, definition in self._arguments.items() if definition.required and key not in given]:
            self.trigger(MissingArgumentError(
                "missing required %s: %s" % (pluralize("argument", len(missing)), ", ".join("'--%s'" % x for x in missing)),
                title="missing %s" % pluralize("argument", len(missing)),
                code=FaultCode.MISSING_ARGUMENTS,
                keys=tuple(missing),
                hint="add the missing %s; run '%s --help' to see the expected usage" % (
                    pluralize("argument", len(missing)), _route(self)
                ),
                docs=getdoc(FaultCode.MISSING_ARGUMENTS)
            ))

    def help(self, *, stderr=False):
        """
        Render help to the console (stdout, or stderr when asked).

        Palette keys
        - usage-label, program-name, usage-section, description-section
        - group-label, argument-description, argument-default, required-mark
        - option-name, flag-name, metavar, choice
        - children-title, children-table, children, children-description
        - panel-title, panel-subtitle

        Customization
        - Define a mapping named __styles__ in __main__ to override any entry.
        - When colorful is False, styling is suppressed.
        """
        console = Console(stderr=stderr)
        styles = defaultdict(str, {
            # === Head sections ===
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "usage-section": "bold #36C5F0",
            "description-section": "italic #A3A3A3",

            # === Groups / arguments ===
            "group-label": "bold #FFFFFF",
            "argument-description": "#9CA3AF",
            "argument-default": "dim #9CA3AF",
            "required-mark": "bold #EF4444",

            # === Names / metavars ===
            "option-name": "bold #00E6FF",
            "flag-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "choice": "bold #FF4D94",

            # === Children table ===
            "children-title": "bold #FFFFFF",
            "children-table": "#4B5563",
            "children": "bold #36C5F0",
            "children-description": "#9CA3AF",

            # === Fancy panel ===
            "panel-title": "bold #FF4D94",
            "panel-subtitle": "#9CA3AF",
        } | getattr(__import__('__main__'), "__styles__", {}))

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

        def name(definition):
            return text("--" + definition.key, styler("option-name" if definition.takes_value else "flag-name"))

        def metavar(definition):
            if definition.choices:
                return Text.assemble("{", Text(",").join(text(x, styler("choice")) for x in definition.choices), "}")
            return Text.assemble("<", text(definition.metavar, styler("metavar")), ">")

        renders = []
        width = console.width - 4 * self.fancy

        usage = Text()
        usage.append("usage", styler("usage-label")).append(":")
        usage.append(" ")
        usage.append(Text(" ").join(text(step.name, styler("program-name")) for step in self.path))
        usage.append(" ")

        offset = len(usage)
        inputs = deque([Text.assemble("[", text("--help", styler("flag-name")), "]")])
        if self.root.version:
            inputs.append(Text.assemble("[", text("--version", styler("flag-name")), "]"))

        for definition in self._arguments.values():
            if not definition.takes_value:
                inputs.append(Text.assemble("[", name(definition), "]"))
            elif definition.required:
                inputs.append(Text.assemble(name(definition), " ", metavar(definition)))
            else:
                inputs.append(Text.assemble("[", name(definition), " ", metavar(definition), "]"))

        if self._children:
            command = text("COMMAND", styler("metavar"))
            inputs.append(Text.assemble("[", command, "]") if self._default else Text.assemble("<", command, ">"))

        lines = Lines([inputs.popleft()])
        while inputs:
            if len(lines[-1]) + 1 + len(input := inputs.popleft()) > width - offset:
                lines.append(input)
            else:
                lines[-1].append(Text(" ") + input)

        usage.append(lines.pop(0))
        for line in lines:
            usage.append("\n").append(" " * offset).append(line)

        renders.append(usage.append("\n"))

        if self.descr:
            renders.append(Text.assemble(text(self.descr, styler("description-section")), "\n"))

        if self._children:
            table = Table(
                "name", "help",
                title=text("subcommands" if self._parent else "commands", styler("children-title")),
                width=int(width * (2 / 3)),
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("children-title"),
            )

            for token, child in self._children.items():
                if child.descr:
                    help = text(child.descr, styler("children-description"))
                else:
                    help = text("run '%s --help' for details" % _route(child), styler("children-description"))
                if token == self._default:
                    help = Text.assemble(help, " ", text("(default)", styler("argument-default")))
                table.add_row(text(token, styler("children")), help)

            renders.append(table)

        sections = {"arguments": self._arguments.values()}
        if shared := [x for key, x in self.root._globals.items() if key not in self._arguments]:
            sections["global arguments"] = shared

        groups = Text("\n" if self._children else "")
        sections = {label: definitions for label, definitions in sections.items() if definitions}
        for index, (label, definitions) in enumerate(sections.items()):
            groups.append(text(label, styler("group-label"))).append(":")
            groups.append("\n")

            padding = 2
            indent = 32

            for definition in definitions:
                section = Text(" " * padding)
                section.append(name(definition))
                if definition.takes_value:
                    section.append(" ").append(metavar(definition))

                parts = [text(definition.descr, styler("argument-description"))] if definition.descr else []
                if definition.default is not None:
                    parts.append(text("[default: %s]" % definition.default, styler("argument-default")))
                if definition.required:
                    parts.append(text("(required)", styler("required-mark")))
                descr = Text(" ").join(parts)

                if descr:
                    if len(section) >= indent - 1:
                        section.append("\n").append(" " * indent)
                    else:
                        section.append(" " * (indent - len(section)))
                    wrapped = descr.wrap(console, max(width - indent, 20))
                    section.append(wrapped.pop(0))
                    for line in wrapped:
                        section.append("\n").append(" " * indent).append(line)

                groups.append(section).append("\n")
            groups.append("\n" * (index < len(sections) - 1))

        if groups:
            renders.append(groups)

        if isinstance(renders[-1], Text):
            renders[-1].rstrip()

        renderable = RenderGroup(*renders)

        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{_route(self)} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
                subtitle=text(self.root.version, styler("panel-subtitle")),
            )

        console.print(renderable)

    def version_info(self):
        """
        Render "<name> — <version>" to the console.
        """
        console = Console()
        styles = defaultdict(str, {
            "program-name": "bold #FF4D94",
            "program-version": "bold #00E6FF",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__('__main__'), "__styles__", {}))

        def styler(style):
            return styles[style] if self.colorful else ""

        renderable = Text(" — ").join((
            Text(self.name, styler("program-name")),
            Text(self.version or "unknown", styler("program-version")),
        ))

        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{self.name} VERSION".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )

        console.print(renderable)


def argument(object, descr=Unset, /, *, conflicts=()):
    """
    Declare a field of an argument struct.

    Forms
    - argument(descriptor, descr, conflicts=(...)): one argument.
    - argument(Struct): a nested argument struct, flattened into the command.
    """
    if isinstance(object, type) and issubclass(object, Args):
        if descr is not Unset or conflicts:
            raise TypeError("argument() nested structs take no description or conflicts")
        return dataclasses.field(metadata={"struct": object})
    if not isinstance(object, Argument):
        raise TypeError("argument() first argument must be a descriptor or an argument struct")
    return dataclasses.field(metadata={"argument": object, "descr": descr, "conflicts": tuple(conflicts)})


class Args:
    """
    Base of argument structs.

    Subclasses are frozen dataclasses whose fields are all declared with
    argument(). __groups__ lists arguments.Group constraints over their keys.
    Nested structs contribute their definitions, groups and values.
    """
    __groups__ = ()

    @classmethod
    def _fields(cls):
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"argument struct {cls.__name__!r} must be a dataclass")
        for field in dataclasses.fields(cls):
            if "struct" not in field.metadata and "argument" not in field.metadata:
                raise TypeError(f"field {field.name!r} of {cls.__name__!r} must be declared with argument()")
            yield field

    @classmethod
    def definitions(cls):
        definitions = []
        for field in cls._fields():
            if struct := field.metadata.get("struct"):
                definitions.extend(struct.definitions())
            else:
                definitions.append(field.metadata["argument"].definition(
                    field.metadata["descr"],
                    conflicts=field.metadata["conflicts"],
                ))
        return tuple(definitions)

    @classmethod
    def descriptors(cls):
        for field in cls._fields():
            if struct := field.metadata.get("struct"):
                yield from struct.descriptors()
            else:
                yield field.metadata["argument"]

    @classmethod
    def groups(cls):
        groups = list(cls.__groups__)
        for field in cls._fields():
            if struct := field.metadata.get("struct"):
                groups.extend(struct.groups())
        return tuple(groups)

    @classmethod
    def parse(cls, matches, /):
        values = {}
        for field in cls._fields():
            if struct := field.metadata.get("struct"):
                values[field.name] = struct.parse(matches)
            else:
                values[field.name] = field.metadata["argument"].parse(matches)
        return cls(**values)


class CommandNode:
    """
    Base of the catalog's command nodes.

    Class keywords
    - token: the command token ("transfer").
    - descr: help text.
    - context: True (WithContext), False (WithoutContext) or unset to
      inherit from the enclosing command.
    - order: display rank among siblings.
    """
    token = Unset
    descr = Unset
    context = None
    order = 0

    def __init_subclass__(cls, /, token=Unset, descr=Unset, context=Unset, order=Unset, **options):
        super().__init_subclass__(**options)
        if token is not Unset:
            if not isinstance(token, str):
                raise TypeError(f"command token of {cls.__name__!r} must be a string")
            if not re.fullmatch(_NAME, token):
                raise ValueError(f"command token of {cls.__name__!r} must be a kebab-case token, got {token!r}")
            cls.token = token
        if descr is not Unset:
            cls.descr = descr
        if context is not Unset:
            if not isinstance(context, bool):
                raise TypeError(f"command context of {cls.__name__!r} must be a boolean")
            cls.context = context
        if order is not Unset:
            if not isinstance(order, int) or isinstance(order, bool):
                raise TypeError(f"command order of {cls.__name__!r} must be an integer")
            cls.order = order

    @classmethod
    def definition(cls):
        raise NotImplementedError

    @classmethod
    def parse(cls, matches, /):
        raise NotImplementedError

    @property
    def contextual(self):
        """
        Whether this selection needs the runtime context.
        """
        return requires_context(self)


@dataclasses.dataclass(frozen=True)
class Leaf(CommandNode):
    """
    A command without children; 'args' holds its parsed argument struct
    (None for commands without arguments).
    """
    args: object = None

    __arguments__ = None

    def __init_subclass__(cls, /, args=Unset, **options):
        super().__init_subclass__(**options)
        if args is not Unset:
            if args is not None and not (isinstance(args, type) and issubclass(args, Args)):
                raise TypeError(f"arguments of {cls.__name__!r} must be an argument struct")
            cls.__arguments__ = args

    @classmethod
    def definition(cls):
        if cls.token is Unset:
            raise TypeError(f"command {cls.__name__!r} has no token")
        struct = cls.__arguments__
        return Command(
            cls.token,
            descr=cls.descr,
            arguments=struct.definitions() if struct else (),
            groups=struct.groups() if struct else (),
            order=cls.order,
        )

    @classmethod
    def parse(cls, matches, /):
        if (matches := matches.subcommand_matches(cls.token)) is None:
            return None
        return cls.build(matches)

    @classmethod
    def build(cls, matches, /):
        return cls(cls.__arguments__.parse(matches) if cls.__arguments__ else None)


@dataclasses.dataclass(frozen=True)
class Branch(CommandNode):
    """
    A command with children; 'sub' holds the selected child node.

    Without a default child a subcommand is required: parse() yields None
    when none was given.
    """
    sub: CommandNode

    __children__ = ()
    __default__ = None

    def __init_subclass__(cls, /, children=Unset, default=Unset, **options):
        super().__init_subclass__(**options)
        if children is not Unset:
            children = tuple(children)
            if not all(isinstance(child, type) and issubclass(child, CommandNode) for child in children):
                raise TypeError(f"children of {cls.__name__!r} must be command nodes")
            cls.__children__ = children
        if default is not Unset:
            if default not in cls.__children__:
                raise ValueError(f"default of {cls.__name__!r} must be one of its children")
            if not issubclass(default, Leaf):
                raise TypeError(f"default of {cls.__name__!r} must be a leaf command")
            cls.__default__ = default

    @classmethod
    def definition(cls):
        if cls.token is Unset:
            raise TypeError(f"command {cls.__name__!r} has no token")
        return Command(
            cls.token,
            descr=cls.descr,
            children=[child.definition() for child in cls.__children__],
            default=cls.__default__.token if cls.__default__ else Unset,
            order=cls.order,
        )

    @classmethod
    def parse(cls, matches, /):
        if (matches := matches.subcommand_matches(cls.token)) is None:
            return None
        return cls.select(matches)

    @classmethod
    def select(cls, matches, /):
        for child in cls.__children__:
            if (found := child.parse(matches)) is not None:
                return cls(found)
        if cls.__default__ is not None and matches.subcommand is None:
            return cls(cls.__default__.build(matches))
        return None


def requires_context(node, /, default=True):
    """
    Whether a selected node needs the runtime context.

    The innermost explicit marker along the selection wins; without any, the
    default applies.
    """
    contextual = default
    while isinstance(node, CommandNode):
        if type(node).context is not None:
            contextual = type(node).context
        node = getattr(node, "sub", None)
    return contextual


def check_context(node, /, contextual=True):
    """
    Reject context-derived defaults in commands that run without a context.

    Raises
    - TypeError: a leaf reached without context uses a FromContext default.
    """
    if node.context is not None:
        contextual = node.context
    if issubclass(node, Branch):
        for child in node.__children__:
            check_context(child, contextual)
    elif not contextual and node.__arguments__ is not None:
        for descriptor in node.__arguments__.descriptors():
            if isinstance(descriptor.source, FromContext):
                raise TypeError(
                    f"command {node.token!r} runs without a context but {descriptor.key!r} takes its default from one"
                )


__all__ = (
    "Command",
    "Args",
    "argument",
    "CommandNode",
    "Leaf",
    "Branch",
    "requires_context",
    "check_context",
)

del CommandType
