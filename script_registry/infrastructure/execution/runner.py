"""
Subprocess execution for script previews.

Each run gets its own temporary directory holding the user code and a small
per-language wrapper. The wrapper reads ``{"data": ..., "config": ...}`` from
stdin, evaluates the code and writes the returned value as JSON on stdout.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

ENCODING_UTF8 = "utf-8"
SAFE_ENV_VARS = ("PATH", "HOME", "LANG", "LC_ALL", "SYSTEMROOT", "TMPDIR", "TEMP", "TMP")

PYTHON_WRAPPER = '''\
import json
import sys

payload = json.load(sys.stdin)
with open("script.py", encoding="utf-8") as handle:
    source = handle.read()

body = "".join("    " + line + "\\n" for line in source.splitlines()) or "    pass\\n"
namespace = {}
exec("def __preview__(data, config):\\n" + body, namespace)

stdout = sys.stdout
sys.stdout = sys.stderr
try:
    result = namespace["__preview__"](payload.get("data"), payload.get("config"))
finally:
    sys.stdout = stdout

json.dump({} if result is None else result, stdout)
'''

PHP_WRAPPER = '''\
<?php
$payload = json_decode(file_get_contents('php://stdin'), true);
$data = isset($payload['data']) ? $payload['data'] : [];
$config = isset($payload['config']) ? $payload['config'] : [];
ob_start();
$result = require __DIR__ . '/script.php';
ob_end_clean();
echo json_encode($result === null ? new stdClass() : $result);
'''

LUA_WRAPPER = '''\
local cjson = require("cjson")
local payload = cjson.decode(io.read("*a"))
local env = setmetatable({data = payload.data, config = payload.config}, {__index = _G})
local chunk = assert(loadfile("script.lua", "t", env))
local result = chunk(payload.data, payload.config)
io.write(cjson.encode(result or {}))
'''


@dataclass(slots=True, frozen=True)
class LanguageProfile:
    script_name: str
    wrapper_name: str
    wrapper_source: str


LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    "python": LanguageProfile("script.py", "wrapper.py", PYTHON_WRAPPER),
    "php": LanguageProfile("script.php", "wrapper.php", PHP_WRAPPER),
    "lua": LanguageProfile("script.lua", "wrapper.lua", LUA_WRAPPER),
}


@dataclass(slots=True)
class ExecutionResult:
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False


class ScriptRunnerError(Exception):
    """Raised when a run cannot be started or its output is unusable."""


def create_safe_environment() -> dict[str, str]:
    """Minimal environment for the child process."""
    env = {var: os.environ[var] for var in SAFE_ENV_VARS if var in os.environ}
    env["PYTHONIOENCODING"] = ENCODING_UTF8
    env["PYTHONUNBUFFERED"] = "1"
    return env


class SubprocessScriptRunner:
    """Runs preview code through a local interpreter per language."""

    def __init__(self, interpreters: Mapping[str, str], timeout_s: float) -> None:
        self._interpreters = {language.lower(): command for language, command in interpreters.items()}
        self._timeout_s = timeout_s

    def supports(self, language: str) -> bool:
        return language.lower() in self._interpreters and language.lower() in LANGUAGE_PROFILES

    async def run(
        self,
        code: str,
        language: str,
        *,
        data: Any = None,
        config: Any = None,
    ) -> Any:
        """Execute ``code`` and return the decoded JSON value it produced."""
        language = language.lower()
        if not self.supports(language):
            raise ScriptRunnerError(f"Unsupported language: {language}")

        profile = LANGUAGE_PROFILES[language]
        payload = json.dumps({"data": data, "config": config}).encode(ENCODING_UTF8)

        with tempfile.TemporaryDirectory(prefix="preview_") as workdir:
            exec_dir = Path(workdir)
            (exec_dir / profile.script_name).write_text(code, encoding=ENCODING_UTF8)
            (exec_dir / profile.wrapper_name).write_text(profile.wrapper_source, encoding=ENCODING_UTF8)
            result = await self._execute(
                [self._interpreters[language], profile.wrapper_name],
                exec_dir,
                payload,
            )

        if result.timed_out:
            raise ScriptRunnerError(f"Script timed out after {self._timeout_s:g}s")
        if result.exit_code != 0:
            detail = result.stderr.strip().splitlines()[-1:] or [f"exit code {result.exit_code}"]
            raise ScriptRunnerError(f"Script failed: {detail[0]}")
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise ScriptRunnerError("Script output is not valid JSON") from exc

    async def _execute(self, argv: list[str], cwd: Path, payload: bytes) -> ExecutionResult:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
                env=create_safe_environment(),
                start_new_session=True,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ScriptRunnerError(f"Interpreter unavailable: {argv[0]}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(payload), timeout=self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Preview process %s timed out, killing it", process.pid)
            process.kill()
            stdout, stderr = await process.communicate()
            return ExecutionResult(
                exit_code=process.returncode if process.returncode is not None else -1,
                stdout=stdout.decode(ENCODING_UTF8, errors="replace"),
                stderr=stderr.decode(ENCODING_UTF8, errors="replace"),
                timed_out=True,
            )

        return ExecutionResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode(ENCODING_UTF8, errors="replace"),
            stderr=stderr.decode(ENCODING_UTF8, errors="replace"),
        )


__all__ = [
    "ExecutionResult",
    "LANGUAGE_PROFILES",
    "ScriptRunnerError",
    "SubprocessScriptRunner",
    "create_safe_environment",
]
