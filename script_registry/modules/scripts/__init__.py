"""Public exports for the script registry domain."""

from .exceptions import (
    ScriptDeleteError,
    ScriptError,
    ScriptExecutionError,
    ScriptNotFoundError,
    ScriptValidationError,
)
from .ledger import VersionLedger
from .models import (
    UNSET,
    Script,
    ScriptCreateInput,
    ScriptListQuery,
    ScriptPage,
    ScriptUpdateInput,
    ScriptVersion,
    VersionReceipt,
)
from .preview import ScriptPreviewService
from .service import ScriptService

__all__ = [
    "UNSET",
    "Script",
    "ScriptCreateInput",
    "ScriptDeleteError",
    "ScriptError",
    "ScriptExecutionError",
    "ScriptListQuery",
    "ScriptNotFoundError",
    "ScriptPage",
    "ScriptPreviewService",
    "ScriptService",
    "ScriptUpdateInput",
    "ScriptValidationError",
    "ScriptVersion",
    "VersionLedger",
    "VersionReceipt",
]
