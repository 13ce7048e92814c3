"""Local execution backend used by script previews."""

from .runner import ExecutionResult, ScriptRunnerError, SubprocessScriptRunner

__all__ = ["ExecutionResult", "ScriptRunnerError", "SubprocessScriptRunner"]
