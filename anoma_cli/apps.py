"""
Anoma CLI executables and dispatch.

Four executables share the catalog:
- anoma: routes to node, client and wallet, and inlines the most common
  node and client commands. It never builds a context.
- anoman, anomac, anomaw: the node, client and wallet tools.

dispatch(app, prompt) composes the executable's tree, matches the tokens,
selects the command variant, parses the global arguments, builds the context
when the variant needs one and resolves context-derived defaults. The result
is an Invocation; handlers take over from there.
"""
import logging
import sys
from dataclasses import dataclass

from rich.pretty import pprint

from . import __version__
from . import logs
from .arguments import resolve
from .args import GlobalArgs
from .cmds import *
from .commands import Command, check_context, requires_context
from .context import Context
from .faults import *
from .utils import Unset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class App:
    """
    An executable: its root token, help text, top-level commands (in parse
    order) and whether it builds contexts.
    """
    name: str
    descr: str
    commands: tuple
    contextual: bool = True

    def __post_init__(self):
        for command in self.commands:
            check_context(command)

    def definition(self, *, shell=False):
        """
        Compose a fresh command tree for this executable.
        """
        return Command(
            self.name,
            descr=self.descr,
            version=__version__,
            globals=GlobalArgs.definitions(),
            children=[command.definition() for command in self.commands],
            shell=shell,
        )

    def select(self, matches, /):
        """
        Return the first top-level command accepting the matches, or None.
        """
        for command in self.commands:
            if (found := command.parse(matches)) is not None:
                return found
        return None


ANOMA = App("anoma", "Anoma command line interface.", ANOMA_COMMANDS, contextual=False)
ANOMAN = App("anoman", "Anoma node command line interface.", NODE_COMMANDS)
ANOMAC = App("anomac", "Anoma client command line interface.", CLIENT_COMMANDS)
ANOMAW = App("anomaw", "Anoma wallet command line interface.", WALLET_COMMANDS)


@dataclass(frozen=True)
class Invocation:
    """
    The outcome of a dispatch.

    Attributes
    - command: the selected command variant, context-derived defaults resolved
      when a context was built.
    - token: the selected top-level token.
    - global_args: the parsed global arguments.
    - context: the context, or None when the variant runs without one.
    """
    command: object
    token: str
    global_args: GlobalArgs
    context: Context | None = None


def dispatch(app, prompt=Unset, /, *, context=Context.new, shell=False):
    """
    Resolve a command line for an executable.

    Parameters
    - app: the executable (ANOMA, ANOMAN, ANOMAC, ANOMAW).
    - prompt: tokens, a shell-like string, or Unset for sys.argv[1:].
    - context: factory called with the global arguments, at most once.
    - shell: print faults and exit with status 2 instead of raising.

    When no command was selected (a group without its subcommand, or nothing
    at all) the help of the deepest selected command goes to stderr and the
    process exits with status 2.
    """
    tree = app.definition(shell=shell)
    matches = tree.match(prompt)

    try:
        command = app.select(matches)
        if command is None:
            logger.debug("no command selected for %r", app.name)
            tree.locate(matches).help(stderr=True)
            sys.exit(EXIT_USAGE)

        global_args = GlobalArgs.parse(matches.root)
    except ArgumentParseError as error:
        tree.trigger(error)

    token = matches.subcommand_name
    if not app.contextual or not requires_context(command):
        logger.debug("selected %s without context", type(command).__name__)
        return Invocation(command, token, global_args)

    try:
        instance = context(global_args)
    except ContextError as error:
        tree.trigger(error)

    logger.debug("selected %s with context", type(command).__name__)
    return Invocation(resolve(command, instance), token, global_args, instance)


def anoma_cli(prompt=Unset, /, **options):
    return dispatch(ANOMA, prompt, **options)


def anoma_node_cli(prompt=Unset, /, **options):
    return dispatch(ANOMAN, prompt, **options)


def anoma_client_cli(prompt=Unset, /, **options):
    return dispatch(ANOMAC, prompt, **options)


def anoma_wallet_cli(prompt=Unset, /, **options):
    return dispatch(ANOMAW, prompt, **options)


def _show(invocation):
    pprint(invocation, expand_all=True)


def _run(cli, handler):
    logs.setup()
    handler(cli(shell=True))


def main(handler=_show):
    _run(anoma_cli, handler)


def main_node(handler=_show):
    _run(anoma_node_cli, handler)


def main_client(handler=_show):
    _run(anoma_client_cli, handler)


def main_wallet(handler=_show):
    _run(anoma_wallet_cli, handler)


__all__ = (
    "App",
    "ANOMA",
    "ANOMAN",
    "ANOMAC",
    "ANOMAW",
    "Invocation",
    "dispatch",
    "anoma_cli",
    "anoma_node_cli",
    "anoma_client_cli",
    "anoma_wallet_cli",
    "main",
    "main_node",
    "main_client",
    "main_wallet",
)
