"""Shared fixtures: a small contract tree, a dependency tree and a truffle project."""

from pathlib import Path

import pytest


SOURCES = {
    "Token.sol": "pragma solidity ^0.4.24;\ncontract Token {}\n",
    "Governance/Leader/LeaderGov.sol": "pragma solidity ^0.4.24;\ncontract LeaderGov {}\n",
    "Migrations.sol": "pragma solidity ^0.4.24;\ncontract Migrations {}\n",
}


@pytest.fixture
def contract_dir(tmp_path) -> Path:
    root = tmp_path / "src" / "contracts"
    for relative, text in SOURCES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


@pytest.fixture
def dependency_dir(tmp_path) -> Path:
    root = tmp_path / "src" / "node_modules"
    path = root / "zeppelin-solidity" / "contracts" / "math" / "SafeMath.sol"
    path.parent.mkdir(parents=True)
    path.write_text("library SafeMath {}\n")
    return root


@pytest.fixture
def truffle_project(contract_dir, dependency_dir) -> Path:
    root = contract_dir.parent
    (root / "truffle-config.js").write_text("module.exports = {};\n")
    (root / "test").mkdir()
    (root / "test" / "token.js").write_text("contract('Token', () => {});\n")
    (root / "migrations").mkdir()
    (root / "migrations" / "1_initial_migration.js").write_text("module.exports = () => {};\n")
    (root / "package.json").write_text('{"name": "demo"}\n')
    return root
