"""CLI command modules for rumormill.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import identity, rumors, votes
from .identity import cmd_identity_reset, cmd_identity_show
from .rumors import cmd_delete, cmd_list, cmd_post, cmd_thread
from .votes import cmd_settle, cmd_vote

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    identity,
    rumors,
    votes,
]

__all__ = [
    "COMMAND_MODULES",
    "cmd_delete",
    "cmd_identity_reset",
    "cmd_identity_show",
    "cmd_list",
    "cmd_post",
    "cmd_settle",
    "cmd_thread",
    "cmd_vote",
]
