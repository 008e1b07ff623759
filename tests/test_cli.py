"""
Tests for the command-line interface.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from gh_projects_analyzer.cli import app
from gh_projects_analyzer.models import Item, ProjectSnapshot
from gh_projects_analyzer.providers.base import BaseProjectProvider

runner = CliRunner()


class StaticProvider(BaseProjectProvider):
    """Provider serving a fixed item list."""

    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.dependency_updates = []

    def get_platform_name(self) -> str:
        return "static"

    async def fetch_item_snapshot(self, project_id):
        if self.error is not None:
            raise self.error
        return ProjectSnapshot(project_id=project_id, items=self.items)

    async def update_item_dependencies(
        self, project_id, item_id, blocks=None, blocked_by=None, related_to=None
    ):
        self.dependency_updates.append((item_id, blocks, blocked_by, related_to))

    async def update_item_priority(self, project_id, item_id, priority):
        return None


def test_priority_command_scores_locally():
    """Test priority scoring works without touching the network."""
    result = runner.invoke(
        app,
        [
            "priority",
            "--business-value",
            "high",
            "--technical-complexity",
            "low",
            "--client-priority",
            "urgent",
            "--json",
        ],
    )

    assert result.exit_code == 0
    assert json.loads(result.output) == {"success": True, "priority": "high"}


def test_priority_command_rejects_unknown_value():
    """Test an invalid criterion value is a usage error."""
    result = runner.invoke(
        app,
        [
            "priority",
            "--business-value",
            "huge",
            "--technical-complexity",
            "low",
            "--client-priority",
            "urgent",
        ],
    )
    assert result.exit_code == 2


def test_analyze_command_json():
    """Test analyze runs every check when none is selected."""
    provider = StaticProvider(items=[Item(id="A", blocks=("A",))])

    with patch("gh_projects_analyzer.cli.get_provider", return_value=provider):
        result = runner.invoke(app, ["analyze", "PVT_1", "--json"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert set(report) == {"cycles", "missing", "status"}
    assert report["cycles"]["cycles"] == [["A"]]


def test_analyze_command_upstream_error():
    """Test fetch failures exit with code 1."""
    provider = StaticProvider(error=RuntimeError("rate limited"))

    with patch("gh_projects_analyzer.cli.get_provider", return_value=provider):
        result = runner.invoke(app, ["analyze", "PVT_1", "--cycles"])

    assert result.exit_code == 1
    assert "rate limited" in result.output
    assert result.output.count("rate limited") == 1


def test_metrics_command_subset():
    """Test selected metrics are the only ones reported."""
    provider = StaticProvider(items=[Item(id="A")])

    with patch("gh_projects_analyzer.cli.get_provider", return_value=provider):
        result = runner.invoke(
            app, ["metrics", "PVT_1", "-m", "completion_rate", "--json"]
        )

    assert result.exit_code == 0
    output = json.loads(result.output)
    assert list(output) == ["completion_rate"]
    assert output["completion_rate"]["total"] == 1


def test_metrics_command_unknown_metric():
    """Test an unknown metric name is a usage error."""
    provider = StaticProvider()

    with patch("gh_projects_analyzer.cli.get_provider", return_value=provider):
        result = runner.invoke(app, ["metrics", "PVT_1", "-m", "velocity"])

    assert result.exit_code == 2


def test_missing_token_exits():
    """Test commands needing GitHub fail cleanly without a token."""
    with patch.dict("os.environ", {}, clear=True):
        result = runner.invoke(app, ["metrics", "PVT_1"])

    assert result.exit_code == 1
    assert "GITHUB_TOKEN is required" in result.output


def test_link_command():
    """Test link forwards relationships to the provider."""
    provider = StaticProvider()

    with patch("gh_projects_analyzer.cli.get_provider", return_value=provider):
        result = runner.invoke(
            app,
            ["link", "PVT_1", "PVTI_1", "--blocks", "PVTI_2", "--blocks", "PVTI_3"],
        )

    assert result.exit_code == 0
    assert provider.dependency_updates == [("PVTI_1", ["PVTI_2", "PVTI_3"], None, None)]


def test_unknown_metric_rejected_before_token_check():
    """Test a bad metric name is a usage error even without a token."""
    with patch.dict("os.environ", {}, clear=True):
        result = runner.invoke(app, ["metrics", "PVT_1", "-m", "velocity"])

    assert result.exit_code == 2
    assert "GITHUB_TOKEN" not in result.output
