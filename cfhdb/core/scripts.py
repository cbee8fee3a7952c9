"""Privileged command and generated-script execution."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from cfhdb.core.config import Settings
from cfhdb.core.errors import ScriptFailureError

LOGGER = logging.getLogger(__name__)

SCRIPT_HEADER = "#! /bin/bash\nset -e\n"
SCRIPT_MODE = 0o777


class Runner(Protocol):
    def run_privileged(self, argv: list[str]) -> str: ...

    def run_script(self, body: str) -> None: ...

    def check(self, check_script: str) -> bool: ...


def write_script(path: Path, body: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.unlink(missing_ok=True)
    path.write_text(SCRIPT_HEADER + body + "\n", encoding="utf-8")
    path.chmod(SCRIPT_MODE)


class ScriptRunner:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def is_privileged(self) -> bool:
        return os.geteuid() == 0

    def _elevate(self, argv: Sequence[str]) -> list[str]:
        if self.is_privileged():
            return list(argv)
        return [*self.settings.elevation_command, *argv]

    def _run(self, argv: Sequence[str]) -> subprocess.CompletedProcess[str]:
        LOGGER.debug("Running %s", " ".join(argv))
        try:
            return subprocess.run(
                list(argv),
                check=False,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise ScriptFailureError(f"Could not execute {argv[0]}: {exc}") from exc

    def run_privileged(self, argv: Sequence[str]) -> str:
        """Run ``argv`` as root (through the elevation command if needed) and return stdout."""
        result = self._run(self._elevate(argv))
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            detail = f": {stderr}" if stderr else ""
            raise ScriptFailureError(f"'{' '.join(argv)}' exited with status {result.returncode}{detail}")
        return result.stdout

    def run_script(self, body: str) -> None:
        """Write ``body`` to the scratch script, run it privileged, and always remove it."""
        path = self.settings.script_path
        try:
            write_script(path, body)
        except OSError as exc:
            raise ScriptFailureError(f"Could not write script {path}: {exc}") from exc
        try:
            LOGGER.info("Executing generated script %s", path)
            self.run_privileged([str(path)])
        finally:
            path.unlink(missing_ok=True)

    def check(self, check_script: str) -> bool:
        """Return whether ``check_script`` exits 0 when run unprivileged."""
        path = self.settings.check_script_path
        try:
            write_script(path, f"{check_script} > /dev/null 2>&1")
        except OSError as exc:
            raise ScriptFailureError(f"Could not write check script {path}: {exc}") from exc
        return self._run(["bash", "-c", str(path)]).returncode == 0
