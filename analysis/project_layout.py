"""
Project layout conventions.

Maps a project root to the inputs the tools need (contracts, specs,
migrations, dependencies, manifest) so the rest of the pipeline never
hardcodes project structure.
"""

from dataclasses import dataclass
from pathlib import Path


# Files that mark a directory as a truffle project root
TRUFFLE_MARKERS = ["truffle-config.js", "truffle.js"]


@dataclass(frozen=True)
class ProjectLayout:
    """Input locations of a project. Optional entries are None when absent."""

    root: Path
    contract_dir: Path
    specs_dir: Path | None = None
    migrations_dir: Path | None = None
    dependency_dir: Path | None = None
    manifest_path: Path | None = None

    @property
    def dependency_dirs(self) -> tuple[Path, ...]:
        return (self.dependency_dir,) if self.dependency_dir else ()


def _existing_dir(path: Path) -> Path | None:
    return path if path.is_dir() else None


def _existing_file(path: Path) -> Path | None:
    return path if path.is_file() else None


def truffle_layout(project_root: str | Path) -> ProjectLayout:
    """Layout of a truffle project.

    Conventions:
        contracts/     Solidity sources (required)
        test/          specs
        migrations/    deployment scripts
        node_modules/  installed dependencies
        package.json   dependency manifest
    """
    root = Path(project_root).expanduser().resolve()
    return ProjectLayout(
        root=root,
        contract_dir=root / "contracts",
        specs_dir=_existing_dir(root / "test"),
        migrations_dir=_existing_dir(root / "migrations"),
        dependency_dir=_existing_dir(root / "node_modules"),
        manifest_path=_existing_file(root / "package.json"),
    )


def is_truffle_project(project_root: str | Path) -> bool:
    """Check for a truffle config, falling back to a contracts/ + migrations/ pair."""
    root = Path(project_root)
    if not root.is_dir():
        return False

    for marker in TRUFFLE_MARKERS:
        if (root / marker).exists():
            return True

    return (root / "contracts").is_dir() and (root / "migrations").is_dir()
