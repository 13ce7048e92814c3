"""ORM layer."""

from .models import Script, ScriptVersion

__all__ = ["Script", "ScriptVersion"]
