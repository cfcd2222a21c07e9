"""Respawn workflow for the Bradley APC encounter.

The command plugin wires these pieces to the game bridge and to the sibling
plugins that provide the ledger and lock services.
"""

from .config import ConfigError, MessagingConfig, PluginConfig, WorkflowConfig, load_config  # noqa: F401
from .encounter import BradleyEncounter  # noqa: F401
from .messages import MessageTable, load_messages  # noqa: F401
from .services import EncounterUnavailable, LedgerService, LockService  # noqa: F401
from .workflow import (  # noqa: F401
    COMMAND,
    PERMISSION_NOLOCK,
    PERMISSION_USE,
    InvocationKind,
    Notice,
    ResultKind,
    RespawnWorkflow,
    WorkflowResult,
)
