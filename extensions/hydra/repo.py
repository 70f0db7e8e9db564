"""
Remote repository fetch.

Clones a git repository into the workspace and installs its npm
dependencies so it can be analyzed as a truffle project.
"""

import logging
import subprocess
from pathlib import Path

from .errors import RepositoryFetchError


logger = logging.getLogger(__name__)


def clone_repository(repo_url: str, dest_path: Path, branch: str | None = None) -> Path:
    """Clone a repository into dest_path.

    Args:
        repo_url: Any URL git understands (https, ssh, local path)
        dest_path: Checkout directory; must not exist or be empty
        branch: Branch to check out. Defaults to the remote HEAD

    Raises:
        RepositoryFetchError: If git is missing or the clone fails
    """
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = ["git", "clone", "--depth", "1"]
    if branch:
        cmd.extend(["--branch", branch])
    cmd.extend([repo_url, str(dest_path)])

    logger.info("Cloning %s into %s", repo_url, dest_path)
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError:
        raise RepositoryFetchError("git not found in PATH") from None
    except subprocess.CalledProcessError as e:
        raise RepositoryFetchError(f"Cloning {repo_url} failed: {e.stderr.strip()}") from e

    return dest_path


def install_dependencies(project_dir: Path) -> None:
    """Run `npm install` in a project that ships a package.json.

    Raises:
        RepositoryFetchError: If npm is missing or the install fails
    """
    if not (project_dir / "package.json").is_file():
        logger.debug("No package.json in %s, skipping npm install", project_dir)
        return

    logger.info("Installing dependencies of %s", project_dir)
    try:
        # output stays attached, installs can take a while
        result = subprocess.run(["npm", "--prefix", str(project_dir), "install"])
    except FileNotFoundError:
        raise RepositoryFetchError("npm not found in PATH") from None

    if result.returncode != 0:
        raise RepositoryFetchError(f"npm install exited with error code: {result.returncode}")
