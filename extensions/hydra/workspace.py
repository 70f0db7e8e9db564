"""
Per-run workspace.

Layout under the workspace root:
    workspace{id}/
        input/
            contracts/           verbatim copy of the source contracts
            contracts_flatten/   flattened contracts (canonical listing)
            contracts_combine/   combined contracts
            specs/               project tests (project runs only)
            migrations/          project migrations (project runs only)
            package.json         dependency manifest (+ lockfile)
        output/
            {tool output dir}/   one directory per tool output channel
        cloned-repo/             remote checkout (removed after preparation)

The run-unique id in the directory name keeps concurrent runs apart.
"""

import logging
import os
import re
import shutil
import time
from pathlib import Path

from .errors import ConfigurationError, PreparationError
from .naming import ContractIdentity


logger = logging.getLogger(__name__)

# Also a valid compose project name once prefixed with "solhydra"
WORKSPACE_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def new_workspace_id() -> str:
    """Run-unique token from wall-clock milliseconds and the process id."""
    return f"{int(time.time() * 1000)}{os.getpid()}"


def is_valid_workspace_id(workspace_id: str) -> bool:
    return WORKSPACE_ID_PATTERN.fullmatch(workspace_id) is not None


class Workspace:
    """Owns one run's working directory tree.

    Use as a context manager so teardown runs on every exit path:

        with Workspace(root) as ws:
            ...
    """

    def __init__(self, root: Path, workspace_id: str | None = None):
        """Initialize workspace.

        Args:
            root: Directory holding all workspaces (created if missing)
            workspace_id: Run-unique token. Generated when not supplied

        Raises:
            ConfigurationError: If workspace_id is not a lowercase token
        """
        self.id = workspace_id or new_workspace_id()
        if not is_valid_workspace_id(self.id):
            raise ConfigurationError(
                f"Invalid workspace id '{self.id}': use lowercase letters, digits, '-' and '_'"
            )
        self.root = Path(root)
        self.path = self.root / f"workspace{self.id}"
        self._owned = False

    @property
    def input_dir(self) -> Path:
        return self.path / "input"

    @property
    def output_dir(self) -> Path:
        return self.path / "output"

    @property
    def contracts_dir(self) -> Path:
        return self.input_dir / "contracts"

    @property
    def flatten_dir(self) -> Path:
        return self.input_dir / "contracts_flatten"

    @property
    def combine_dir(self) -> Path:
        return self.input_dir / "contracts_combine"

    @property
    def specs_dir(self) -> Path:
        return self.input_dir / "specs"

    @property
    def migrations_dir(self) -> Path:
        return self.input_dir / "migrations"

    @property
    def repo_dir(self) -> Path:
        return self.path / "cloned-repo"

    def output_dir_for(self, channel_name: str) -> Path:
        return self.output_dir / channel_name

    def original_path(self, identity: ContractIdentity) -> Path:
        return self.contracts_dir.joinpath(*identity.nested_path)

    def flattened_path(self, identity: ContractIdentity) -> Path:
        return self.flatten_dir / identity.canonical_name

    def combined_path(self, identity: ContractIdentity) -> Path:
        return self.combine_dir / identity.canonical_name

    def canonical_names(self) -> list[str]:
        """Flattened filenames, sorted so listings are reproducible."""
        if not self.flatten_dir.is_dir():
            return []
        return sorted(p.name for p in self.flatten_dir.iterdir() if p.is_file())

    def create(self) -> "Workspace":
        """Create the run directory and its input and output trees.

        The workspace root is created if missing. The run directory itself
        must not exist yet; calling create() again on the same instance is a
        no-op.

        Raises:
            PreparationError: If another run already owns the run directory
        """
        if self._owned:
            return self

        self.root.mkdir(parents=True, exist_ok=True)
        try:
            self.path.mkdir()
        except FileExistsError:
            raise PreparationError(f"Workspace {self.path} already exists, is another run using this id?") from None
        self._owned = True

        self.input_dir.mkdir()
        self.output_dir.mkdir()
        logger.debug("Created workspace %s", self.path)
        return self

    def remove_repo(self) -> None:
        """Drop the remote checkout once its inputs are copied."""
        shutil.rmtree(self.repo_dir, ignore_errors=True)

    def teardown(self) -> None:
        """Remove the tree this instance created. Never raises."""
        if not self._owned or not self.path.exists():
            return
        try:
            shutil.rmtree(self.path)
            self._owned = False
            logger.debug("Removed workspace %s", self.path)
        except OSError as e:
            logger.warning("Failed to remove workspace %s: %s", self.path, e)

    def __enter__(self) -> "Workspace":
        try:
            return self.create()
        except OSError as e:
            self.teardown()
            raise PreparationError(f"Failed to create workspace {self.path}: {e}") from e

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()
