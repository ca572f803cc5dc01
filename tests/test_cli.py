"""Tests for gridbench CLI commands."""

import json
import os

from typer.testing import CliRunner

from gridbench.cli.main import app

runner = CliRunner()

ROWS = (
    "nginx-logs,12,3,1,zstd,64,4096,42\n"
    "nginx-logs,11,3,1,zstd,160,3900,40\n"
)


class TestInitCommand:
    """Tests for gridbench init command."""

    def test_init_creates_directory(self, temp_dir):
        """Test that init creates .gridbench directory."""
        os.chdir(temp_dir)

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert (temp_dir / ".gridbench").exists()
        assert (temp_dir / ".gridbench" / "config.yaml").exists()
        assert (temp_dir / ".gridbench" / "grid.csv").read_text() == ""

    def test_init_config_lists_default_plan(self, temp_dir):
        """Test that the written config round-trips through load_config."""
        from gridbench.config import load_config
        from gridbench.sweep import SweepPlan

        result = runner.invoke(app, ["init", str(temp_dir)])

        assert result.exit_code == 0
        config = load_config(temp_dir / ".gridbench")
        assert config.plan == SweepPlan()

    def test_init_already_initialized(self, gridbench_project):
        """Test init when already initialized."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "Already initialized" in result.stdout


class TestPlanCommand:
    """Tests for gridbench plan command."""

    def test_plan_shows_pending_and_done(self, gridbench_project):
        """Test the plan table marks recorded points."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)

        result = runner.invoke(app, ["plan"])

        assert result.exit_code == 0
        assert "nginx-logs-zstd-64" in result.stdout
        assert "nginx-logs-zstd-128" in result.stdout
        assert "2 points" in result.stdout
        assert "1 pending" in result.stdout

    def test_plan_not_initialized(self, temp_dir):
        """Test plan outside a project."""
        os.chdir(temp_dir)

        result = runner.invoke(app, ["plan"])

        assert result.exit_code == 1
        assert "No .gridbench directory found" in result.stdout

    def test_plan_bad_config(self, gridbench_project):
        """Test that an unknown dataset in config is reported."""
        _ = (gridbench_project / ".gridbench" / "config.yaml").write_text(
            "datasets: [imagenet]\n"
        )

        result = runner.invoke(app, ["plan"])

        assert result.exit_code == 1
        assert "Unknown dataset" in result.stdout


class TestSweepCommand:
    """Tests for gridbench sweep command."""

    def test_sweep_reports_failures_without_failing(self, gridbench_project):
        """Test that per-point failures do not change the exit status."""
        result = runner.invoke(app, ["sweep"])

        assert result.exit_code == 0
        assert "nginx-logs-zstd-64" in result.stdout
        assert "service error" in result.stdout
        assert "2 failed" in result.stdout
        assert (gridbench_project / ".gridbench" / "grid.csv").read_text() == ""

    def test_sweep_skips_recorded_points(self, gridbench_project):
        """Test that completed points are not attempted again."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)

        result = runner.invoke(app, ["sweep"])

        assert result.exit_code == 0
        assert "Skipping nginx-logs-zstd-64" in result.stdout
        assert "1 skipped" in result.stdout
        assert "1 failed" in result.stdout

    def test_sweep_corrupt_ledger(self, gridbench_project):
        """Test that an unreadable ledger aborts with exit code 1."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text("x,y\n")

        result = runner.invoke(app, ["sweep"])

        assert result.exit_code == 1
        assert "malformed" in result.stdout


class TestResultsCommand:
    """Tests for gridbench results command."""

    def test_results_empty(self, gridbench_project):
        """Test results with an empty ledger."""
        result = runner.invoke(app, ["results"])

        assert result.exit_code == 0
        assert "No results recorded" in result.stdout

    def test_results_lists_rows(self, gridbench_project):
        """Test that ledger rows are shown."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)

        result = runner.invoke(app, ["results"])

        assert result.exit_code == 0
        assert "4096" in result.stdout
        assert "160" in result.stdout
        assert "2 row(s)" in result.stdout

    def test_results_filter_by_dataset(self, gridbench_project):
        """Test the dataset filter."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)

        result = runner.invoke(app, ["results", "--dataset", "hdfs-logs"])

        assert result.exit_code == 0
        assert "No results recorded" in result.stdout

    def test_results_unknown_dataset(self, gridbench_project):
        """Test an invalid dataset filter."""
        result = runner.invoke(app, ["results", "--dataset", "imagenet"])

        assert result.exit_code == 1


class TestExportCommand:
    """Tests for gridbench export command."""

    def test_export_json(self, gridbench_project):
        """Test JSON export."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)
        output = gridbench_project / "results.json"

        result = runner.invoke(app, ["export", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data[0]["algorithm"] == "zstd"
        assert data[1]["block_size_kb"] == 160

    def test_export_csv_has_header(self, gridbench_project):
        """Test CSV export."""
        _ = (gridbench_project / ".gridbench" / "grid.csv").write_text(ROWS)
        output = gridbench_project / "results.csv"

        result = runner.invoke(app, ["export", str(output)])

        assert result.exit_code == 0
        lines = output.read_text().splitlines()
        assert lines[0].startswith("dataset,total_size,num_docs")
        assert lines[1] == "nginx-logs,12,3,1,zstd,64,4096,42"

    def test_export_bad_suffix(self, gridbench_project):
        """Test that unsupported formats are rejected."""
        result = runner.invoke(app, ["export", "results.txt"])

        assert result.exit_code == 1


class TestDoctorCommand:
    """Tests for gridbench doctor command."""

    def test_doctor_initialized(self, gridbench_project):
        """Test doctor on initialized project."""
        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0
        assert "gridbench directory" in result.stdout
        assert "Ledger: 0 recorded, 2 pending" in result.stdout
        assert "quickwit binary not found" in result.stdout
        assert "Cached: nginx-logs" in result.stdout

    def test_doctor_not_initialized(self, temp_dir):
        """Test doctor when not initialized."""
        os.chdir(temp_dir)

        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0
        assert "No .gridbench directory found" in result.stdout
