"""
Soljitsu flatten/combine wrapper.

Runs the soljitsu CLI to produce the flattened and combined variants of
a contract tree. Both commands write one file per contract into the
destination directory, using dot-separated canonical names.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol, Sequence

from .errors import PreparationError


logger = logging.getLogger(__name__)


class Transform(Protocol):
    """A source transform writing one file per contract into dest_dir."""

    def __call__(
        self,
        source_dir: Path,
        dest_dir: Path,
        dependency_dirs: Sequence[Path] = (),
    ) -> None: ...


class SoljitsuRunner:
    """Runs soljitsu and reports failures as PreparationError."""

    def __init__(self, timeout: int = 300):
        """Initialize soljitsu runner.

        Args:
            timeout: Maximum seconds to wait for one transform
        """
        self.timeout = timeout

        # Cached command prefix
        self._soljitsu_cmd: list[str] | None = None

    def _find_soljitsu(self) -> list[str] | None:
        """Find soljitsu in PATH, falling back to npx."""
        if shutil.which("soljitsu"):
            return ["soljitsu"]
        if shutil.which("npx"):
            return ["npx", "--yes", "soljitsu"]
        return None

    def is_available(self) -> tuple[bool, str]:
        """Check if soljitsu can be invoked.

        Returns:
            Tuple of (available, command_or_error)
        """
        cmd = self._find_soljitsu()
        if not cmd:
            return False, "soljitsu not found in PATH (install with: npm install -g soljitsu)"
        self._soljitsu_cmd = cmd
        return True, " ".join(cmd)

    def build_command(
        self,
        action: str,
        source_dir: Path,
        dest_dir: Path,
        dependency_dirs: Sequence[Path] = (),
    ) -> list[str]:
        cmd = [
            *(self._soljitsu_cmd or ["soljitsu"]),
            action,
            f"--src-dir={source_dir}",
            f"--dest-dir={dest_dir}",
        ]
        for dep_dir in dependency_dirs:
            cmd.append(f"--dep-dir={dep_dir}")
        return cmd

    def _run(
        self,
        action: str,
        source_dir: Path,
        dest_dir: Path,
        dependency_dirs: Sequence[Path],
    ) -> None:
        available, info = self.is_available()
        if not available:
            raise PreparationError(info)

        dest_dir.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(action, source_dir, dest_dir, dependency_dirs)
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise PreparationError(f"soljitsu {action} timed out after {self.timeout}s") from None
        except OSError as e:
            raise PreparationError(f"soljitsu {action} could not be started: {e}") from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() if result.stderr else result.stdout.strip()
            raise PreparationError(f"soljitsu {action} failed: {error_msg[:500]}")

    def flatten(
        self,
        source_dir: Path,
        dest_dir: Path,
        dependency_dirs: Sequence[Path] = (),
    ) -> None:
        """Flatten source_dir (and reachable dependencies) into dest_dir."""
        self._run("flatten", source_dir, dest_dir, dependency_dirs)

    def combine(
        self,
        source_dir: Path,
        dest_dir: Path,
        dependency_dirs: Sequence[Path] = (),
    ) -> None:
        """Combine each top-level contract with its imports into dest_dir."""
        self._run("combine", source_dir, dest_dir, dependency_dirs)
