"""
Tests for the per-run workspace.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from extensions.hydra.errors import ConfigurationError, PreparationError
from extensions.hydra.naming import ContractIdentity
from extensions.hydra.workspace import Workspace, is_valid_workspace_id, new_workspace_id


class TestLayout:
    """Test sub-path accessors."""

    def test_paths(self, tmp_path):
        ws = Workspace(tmp_path, "42")
        assert ws.path == tmp_path / "workspace42"
        assert ws.input_dir == ws.path / "input"
        assert ws.output_dir == ws.path / "output"
        assert ws.contracts_dir == ws.path / "input" / "contracts"
        assert ws.flatten_dir == ws.path / "input" / "contracts_flatten"
        assert ws.combine_dir == ws.path / "input" / "contracts_combine"
        assert ws.output_dir_for("solhint") == ws.path / "output" / "solhint"

    def test_original_path_is_nested(self, tmp_path):
        ws = Workspace(tmp_path, "1")
        identity = ContractIdentity.from_canonical_name("Governance.Leader.LeaderGov.sol")
        assert ws.original_path(identity) == ws.contracts_dir / "Governance" / "Leader" / "LeaderGov.sol"

    def test_generated_ids_differ_per_instance(self, tmp_path):
        with patch("extensions.hydra.workspace.time.time", side_effect=[1.0, 2.0]):
            assert Workspace(tmp_path).id != Workspace(tmp_path).id

    def test_id_is_digits(self):
        assert new_workspace_id().isdigit()


class TestLifecycle:
    """Test creation and teardown."""

    def test_create_missing_root(self, tmp_path):
        ws = Workspace(tmp_path / "does" / "not" / "exist", "1")
        ws.create()
        assert ws.input_dir.is_dir()
        assert ws.output_dir.is_dir()

    def test_create_is_idempotent(self, tmp_path):
        ws = Workspace(tmp_path, "1")
        ws.create()
        (ws.input_dir / "keep.txt").write_text("x")
        ws.create()
        assert (ws.input_dir / "keep.txt").exists()

    def test_teardown_on_success(self, tmp_path):
        with Workspace(tmp_path, "1") as ws:
            (ws.output_dir / "solhint").mkdir()
        assert not ws.path.exists()

    def test_teardown_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with Workspace(tmp_path, "1") as ws:
                raise RuntimeError("stage failed")
        assert not ws.path.exists()

    def test_teardown_on_interrupt(self, tmp_path):
        with pytest.raises(KeyboardInterrupt):
            with Workspace(tmp_path, "1") as ws:
                raise KeyboardInterrupt
        assert not ws.path.exists()

    def test_teardown_twice_is_safe(self, tmp_path):
        ws = Workspace(tmp_path, "1").create()
        ws.teardown()
        ws.teardown()
        assert not ws.path.exists()

    def test_teardown_swallows_os_errors(self, tmp_path):
        ws = Workspace(tmp_path, "1").create()
        with patch("extensions.hydra.workspace.shutil.rmtree", side_effect=PermissionError("denied")):
            ws.teardown()

    def test_create_failure_raises_preparation_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(PreparationError):
            with Workspace(blocker, "1"):
                pass

    def test_concurrent_workspaces_do_not_collide(self, tmp_path):
        with Workspace(tmp_path, "1") as first, Workspace(tmp_path, "2") as second:
            assert first.path != second.path
            (first.input_dir / "a").write_text("a")
            assert not (second.input_dir / "a").exists()


class TestListing:
    """Test the canonical listing."""

    def test_sorted_listing(self, tmp_path):
        with Workspace(tmp_path, "1") as ws:
            ws.flatten_dir.mkdir(parents=True)
            for name in ["b.sol", "A.sol", "c.Vault.sol"]:
                (ws.flatten_dir / name).write_text("")
            assert ws.canonical_names() == ["A.sol", "b.sol", "c.Vault.sol"]

    def test_listing_without_flatten_dir(self, tmp_path):
        with Workspace(tmp_path, "1") as ws:
            assert ws.canonical_names() == []

    def test_remove_repo(self, tmp_path):
        with Workspace(tmp_path, "1") as ws:
            (ws.repo_dir / "contracts").mkdir(parents=True)
            ws.remove_repo()
            assert not ws.repo_dir.exists()
            ws.remove_repo()


class TestOwnership:
    """Test that a run only ever touches the tree it created."""

    @pytest.mark.parametrize("workspace_id", [
        "/../../victim", "../victim", "a/b", "Run1", "-x", "_x", "a b", "x\n", ".",
    ])
    def test_invalid_ids_rejected(self, tmp_path, workspace_id):
        assert not is_valid_workspace_id(workspace_id)
        with pytest.raises(ConfigurationError, match="Invalid workspace id"):
            Workspace(tmp_path, workspace_id)

    @pytest.mark.parametrize("workspace_id", ["42", "ci-run_7", "a", new_workspace_id()])
    def test_valid_ids(self, workspace_id):
        assert is_valid_workspace_id(workspace_id)

    def test_traversal_id_never_reaches_sibling(self, tmp_path):
        victim = tmp_path / "victim"
        victim.mkdir()
        (victim / "keep.txt").write_text("x")

        with pytest.raises(ConfigurationError):
            with Workspace(tmp_path / "root" / "nested", "/../../victim"):
                pass

        assert (victim / "keep.txt").exists()

    def test_existing_run_directory_not_adopted(self, tmp_path):
        first = Workspace(tmp_path, "42").create()
        first.flatten_dir.mkdir()
        (first.flatten_dir / "Token.sol").write_text("contract Token {}")

        with pytest.raises(PreparationError, match="already exists"):
            with Workspace(tmp_path, "42"):
                pass

        assert (first.flatten_dir / "Token.sol").exists()
        first.teardown()
        assert not first.path.exists()

    def test_teardown_without_create_is_noop(self, tmp_path):
        Workspace(tmp_path, "42").create()
        Workspace(tmp_path, "42").teardown()
        assert (tmp_path / "workspace42").is_dir()
