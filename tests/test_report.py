"""
Tests for report assembly and rendering.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from fakes import fake_combine, fake_flatten
from extensions.hydra.config import DEFAULT_TEMPLATE
from extensions.hydra.correlator import ToolOutput
from extensions.hydra.errors import CorrelationError, RenderError
from extensions.hydra.naming import ContractIdentity, build_identities
from extensions.hydra.preparer import ArtifactPreparer, PreparationRequest
from extensions.hydra.report import (
    AggregatedReportModel,
    ContentVariants,
    ReportRenderer,
    assemble_report,
    load_variants,
    normalize_destination,
)
from extensions.hydra.tools import ContentType
from extensions.hydra.workspace import Workspace


def _identities():
    return build_identities(["Token.sol", "Governance.Leader.LeaderGov.sol"])


def _variants():
    return {
        "Token.sol": ContentVariants(flattened="flat token", original="orig token", combined="comb token"),
        "Governance.Leader.LeaderGov.sol": ContentVariants(flattened="flat gov"),
    }


def _outputs():
    return {
        "Token.sol": {
            "solhint": ToolOutput(tool="solhint", content_type=ContentType.TEXT, content="no issues"),
        },
    }


class TestAssemble:
    """Test merging identities, variants and outputs."""

    def test_every_contract_once(self):
        model = assemble_report(_identities(), _variants(), _outputs())
        assert list(model.contracts) == ["Token.sol", "Governance.Leader.LeaderGov.sol"]

    def test_contract_without_outputs_included(self):
        model = assemble_report(_identities(), _variants(), _outputs())
        entry = model.contracts["Governance.Leader.LeaderGov.sol"]
        assert entry.outputs == {}
        assert entry.variants.original is None
        assert entry.variants.combined is None

    def test_tool_output_kept(self):
        model = assemble_report(_identities(), _variants(), _outputs())
        output = model.contracts["Token.sol"].outputs["solhint"]
        assert output.content_type == ContentType.TEXT
        assert output.content == "no issues"

    def test_tools_listing(self):
        model = assemble_report(_identities(), _variants(), _outputs())
        assert model.tools == ["solhint"]

    def test_migrations_never_included(self):
        identities = [ContractIdentity.from_canonical_name("Migrations.sol"), *_identities()]
        variants = {**_variants(), "Migrations.sol": ContentVariants(flattened="m")}
        model = assemble_report(identities, variants, {})
        assert "Migrations.sol" not in model.contracts

    def test_deterministic(self):
        first = assemble_report(_identities(), _variants(), _outputs())
        second = assemble_report(_identities(), _variants(), _outputs())
        assert first == second
        assert list(first.contracts) == list(second.contracts)

    def test_empty(self):
        model = assemble_report([], {}, {})
        assert len(model) == 0
        assert model.tools == []


class TestLoadVariants:
    """Test reading variants from a prepared workspace."""

    def test_variants(self, tmp_path, contract_dir, dependency_dir):
        with Workspace(tmp_path / "ws", "1") as ws:
            ArtifactPreparer(ws, fake_flatten, fake_combine).prepare(
                PreparationRequest(contract_dir=contract_dir, dependency_dirs=(dependency_dir,))
            )
            gov = ContractIdentity.from_canonical_name("Governance.Leader.LeaderGov.sol")
            dep = ContractIdentity.from_canonical_name("zeppelin-solidity.contracts.math.SafeMath.sol")

            gov_variants = load_variants(ws, gov)
            dep_variants = load_variants(ws, dep)

        assert gov_variants.original == "pragma solidity ^0.4.24;\ncontract LeaderGov {}\n"
        assert gov_variants.flattened.startswith("// flattened")
        assert gov_variants.combined.startswith("// combined")

        assert dep_variants.flattened.startswith("// flattened dependency")
        assert dep_variants.original is None
        assert dep_variants.combined is None

    def test_unreadable_variant_raises(self, tmp_path):
        identity = ContractIdentity.from_canonical_name("Token.sol")
        with Workspace(tmp_path / "ws", "1") as ws:
            ws.flatten_dir.mkdir(parents=True)
            ws.flattened_path(identity).write_text("contract Token {}")

            with patch.object(Path, "read_text", side_effect=PermissionError(13, "Permission denied")):
                with pytest.raises(CorrelationError, match="Token.sol"):
                    load_variants(ws, identity)


class TestRender:
    """Test the HTML renderer."""

    def test_render_contains_contracts(self):
        model = assemble_report(_identities(), _variants(), _outputs())
        html = ReportRenderer(DEFAULT_TEMPLATE).render(model)

        assert 'id="token"' in html
        assert 'id="governance-leader-leadergov"' in html
        assert "no issues" in html
        assert "Governance/Leader/LeaderGov.sol" in html

    def test_text_is_escaped(self):
        identities = build_identities(["Token.sol"])
        variants = {"Token.sol": ContentVariants(flattened="a < b && c")}
        outputs = {"Token.sol": {"solhint": ToolOutput("solhint", ContentType.TEXT, "<script>x</script>")}}
        html = ReportRenderer(DEFAULT_TEMPLATE).render(assemble_report(identities, variants, outputs))

        assert "a &lt; b &amp;&amp; c" in html
        assert "&lt;script&gt;x&lt;/script&gt;" in html

    def test_markdown_html_not_escaped(self):
        identities = build_identities(["Token.sol"])
        variants = {"Token.sol": ContentVariants(flattened="x")}
        outputs = {"Token.sol": {"mythril": ToolOutput("mythril", ContentType.MARKDOWN, "<h1>Report</h1>")}}
        html = ReportRenderer(DEFAULT_TEMPLATE).render(assemble_report(identities, variants, outputs))
        assert "<h1>Report</h1>" in html

    def test_image_inlined(self):
        identities = build_identities(["Token.sol"])
        variants = {"Token.sol": ContentVariants(flattened="x")}
        outputs = {"Token.sol": {
            "surya_graph": ToolOutput("surya_graph", ContentType.IMAGE, "AAAA", media_type="image/png"),
        }}
        html = ReportRenderer(DEFAULT_TEMPLATE).render(assemble_report(identities, variants, outputs))
        assert 'src="data:image/png;base64,AAAA"' in html

    def test_missing_template(self, tmp_path):
        with pytest.raises(RenderError, match="not found"):
            ReportRenderer(tmp_path / "missing.html.j2").render(AggregatedReportModel())

    def test_broken_template(self, tmp_path):
        template = tmp_path / "broken.html.j2"
        template.write_text("{% for x in %}")
        with pytest.raises(RenderError, match="Failed to render"):
            ReportRenderer(template).render(AggregatedReportModel())

    def test_write_appends_extension(self, tmp_path):
        model = assemble_report(_identities(), _variants(), _outputs())
        path = ReportRenderer(DEFAULT_TEMPLATE).write(model, tmp_path / "out" / "report")
        assert path == (tmp_path / "out" / "report.html").resolve()
        assert path.read_text().startswith("<!DOCTYPE html>")


class TestDestination:

    @pytest.mark.parametrize("given,expected", [
        ("report", "report.html"),
        ("report.html", "report.html"),
        ("report.HTML", "report.HTML"),
        ("solhydra_report.v2", "solhydra_report.v2.html"),
    ])
    def test_normalize(self, tmp_path, given, expected):
        assert normalize_destination(tmp_path / given).name == expected
