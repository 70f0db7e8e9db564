"""
Job scheduling through the orchestration layer.

Each tool is one docker-compose service that mounts the workspace input
read-only and writes into its own output directory. The scheduler
launches the requested services in one `up` call, blocks until every
container has exited and turns the aggregate status into success or
JobExecutionError.
"""

import logging
import os
import subprocess
from typing import Sequence

from .config import HydraConfig
from .errors import JobExecutionError
from .tools import ToolRun, ToolTable
from .workspace import Workspace


logger = logging.getLogger(__name__)


class JobScheduler:
    """Runs a selection of tools against a prepared workspace."""

    def __init__(self, table: ToolTable, config: HydraConfig, workspace: Workspace):
        self.table = table
        self.config = config
        self.workspace = workspace
        self._launched = False

    @property
    def project_name(self) -> str:
        """Compose project name, unique per workspace."""
        return f"solhydra{self.workspace.id}"

    def environment(self) -> dict[str, str]:
        """Environment for the orchestration process."""
        env = dict(os.environ)
        env["WORKSPACE_ID"] = self.workspace.id
        env["WORKSPACE_DIR"] = str(self.workspace.path.resolve())
        return env

    def _base_command(self) -> list[str]:
        return [
            *self.config.compose_command,
            "-f", str(self.config.compose_file),
            "-p", self.project_name,
        ]

    def build_command(self, tools: Sequence[str]) -> list[str]:
        cmd = [*self._base_command(), "up"]
        if self.config.build_images:
            cmd.append("--build")
        cmd.extend(tools)
        return cmd

    def run(self, tools: Sequence[str]) -> list[ToolRun]:
        """Run the tools and wait for all of them to finish.

        Args:
            tools: Enabled tool names; all enabled tools when empty

        Returns:
            One ToolRun per output channel of the selected tools

        Raises:
            UnknownToolError: Before anything is launched, for a bad name
            JobExecutionError: If the orchestration layer fails
        """
        selected = self.table.validate(tools) if tools else self.table.names
        runs = self.table.plan(selected)

        for run in runs:
            self.workspace.output_dir_for(run.channel).mkdir(parents=True, exist_ok=True)

        cmd = self.build_command(selected)
        logger.info("Running tools: %s", ", ".join(selected))
        logger.debug("Running %s", " ".join(cmd))

        self._launched = True
        try:
            # stdout/stderr stay attached so tool progress is visible
            result = subprocess.run(cmd, env=self.environment())
        except OSError as e:
            raise JobExecutionError(f"Failed to start {cmd[0]}: {e}") from e

        if result.returncode != 0:
            raise JobExecutionError(
                f"{' '.join(self.config.compose_command)} exited with error code: {result.returncode}",
                exit_code=result.returncode,
            )

        for run in runs:
            out_dir = self.workspace.output_dir_for(run.channel)
            run.output_root_exists = out_dir.is_dir() and any(out_dir.iterdir())

        return runs

    def stop(self) -> None:
        """Stop and remove any containers of this run. Never raises."""
        if not self._launched:
            return

        cmd = [*self._base_command(), "down", "--remove-orphans"]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                env=self.environment(),
                capture_output=True,
                text=True,
                timeout=120,
            )
            if result.returncode != 0:
                logger.warning("Failed to stop tool containers: %s", result.stderr.strip()[:200])
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Failed to stop tool containers: %s", e)
        finally:
            self._launched = False
