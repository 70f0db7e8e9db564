"""
Artifact preparation.

Populates a workspace's input area with the three content variants of
every contract (original, flattened, combined) and the auxiliary
project files some tools need (dependency manifest, specs, migrations).
The source tree is only ever read.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from .errors import PreparationError
from .soljitsu_runner import Transform
from .workspace import Workspace


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparationRequest:
    """Inputs to copy into a workspace."""

    contract_dir: Path
    dependency_dirs: tuple[Path, ...] = ()
    manifest_path: Path | None = None   # package.json
    specs_dir: Path | None = None
    migrations_dir: Path | None = None


def lockfile_for(manifest_path: Path) -> Path:
    """Lockfile companion of a manifest, e.g. package.json -> package-lock.json."""
    return manifest_path.with_name(f"{manifest_path.stem}-lock{manifest_path.suffix}")


class ArtifactPreparer:
    """Copies and transforms inputs into a workspace."""

    def __init__(self, workspace: Workspace, flatten: Transform, combine: Transform):
        """Initialize preparer.

        Args:
            workspace: Target workspace (must already be created)
            flatten: Flatten transform
            combine: Combine transform
        """
        self.workspace = workspace
        self.flatten = flatten
        self.combine = combine

    def prepare(self, request: PreparationRequest) -> None:
        """Populate the workspace input area.

        Raises:
            PreparationError: If a required copy or a transform fails, or a
                supplied optional input cannot be copied
        """
        if not request.contract_dir.is_dir():
            raise PreparationError(f"Contract directory not found: {request.contract_dir}")

        self.workspace.input_dir.mkdir(parents=True, exist_ok=True)

        self._copy_tree(request.contract_dir, self.workspace.contracts_dir)
        self._transform("flatten", self.flatten, request, self.workspace.flatten_dir)
        self._transform("combine", self.combine, request, self.workspace.combine_dir)

        if request.manifest_path is not None:
            self.add_manifest(request.manifest_path)
        if request.specs_dir is not None:
            self._copy_tree(request.specs_dir, self.workspace.specs_dir)
        if request.migrations_dir is not None:
            self._copy_tree(request.migrations_dir, self.workspace.migrations_dir)

        logger.info(
            "Prepared %d contracts in %s",
            len(self.workspace.canonical_names()),
            self.workspace.input_dir,
        )

    def add_manifest(self, manifest_path: Path) -> None:
        """Copy the dependency manifest and, when present, its lockfile."""
        self._copy_file(manifest_path, self.workspace.input_dir / manifest_path.name)

        lockfile = lockfile_for(manifest_path)
        try:
            shutil.copyfile(lockfile, self.workspace.input_dir / lockfile.name)
        except FileNotFoundError:
            logger.debug("No lockfile next to %s", manifest_path)
        except OSError as e:
            raise PreparationError(f"Failed to copy {lockfile}: {e}") from e

    def _transform(
        self,
        action: str,
        transform: Transform,
        request: PreparationRequest,
        dest_dir: Path,
    ) -> None:
        dest_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Running %s transform into %s", action, dest_dir)
        try:
            transform(request.contract_dir, dest_dir, request.dependency_dirs)
        except OSError as e:
            raise PreparationError(f"{action} transform failed: {e}") from e

    def _copy_tree(self, source: Path, dest: Path) -> None:
        try:
            shutil.copytree(source, dest, dirs_exist_ok=True)
        except OSError as e:
            raise PreparationError(f"Failed to copy {source}: {e}") from e

    def _copy_file(self, source: Path, dest: Path) -> None:
        try:
            shutil.copyfile(source, dest)
        except OSError as e:
            raise PreparationError(f"Failed to copy {source}: {e}") from e
