# Copyright (c) Syntropy Systems
"""Tests for gradeline CLI commands."""

from unittest.mock import patch

from typer.testing import CliRunner

from gradeline.cli.main import app
from gradeline.db import StateDatabase
from gradeline.grading import GradingPolicy
from gradeline.models import GradeVerdict

runner = CliRunner()


def _load(project):
    return StateDatabase(project / ".gradeline" / "gradeline.db").load()


class TestInitCommand:
    """Tests for gradeline init command."""

    def test_init_creates_directory(self, temp_dir, monkeypatch):
        """Test that init creates .gradeline directory."""
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert (temp_dir / ".gradeline").exists()
        assert (temp_dir / ".gradeline" / "gradeline.db").exists()
        assert (temp_dir / ".gradeline" / "config.yaml").exists()

    def test_init_already_initialized(self, gradeline_project):
        """Test init when already initialized."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "Already initialized" in result.stdout

    def test_command_outside_project(self, temp_dir, monkeypatch):
        """Commands that need a project fail cleanly without one."""
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(app, ["dataset", "list"])

        assert result.exit_code == 1
        assert "gradeline init" in result.stdout


class TestDatasetCommands:
    """Tests for gradeline dataset commands."""

    def test_add_and_list(self, gradeline_project):
        result = runner.invoke(app, ["dataset", "add", "Geography"])
        assert result.exit_code == 0
        assert "Created dataset" in result.stdout

        result = runner.invoke(app, ["dataset", "list"])
        assert result.exit_code == 0
        assert "Geography" in result.stdout

    def test_list_empty(self, gradeline_project):
        result = runner.invoke(app, ["dataset", "list"])
        assert result.exit_code == 0
        assert "No datasets found" in result.stdout

    def test_add_duplicate_name(self, gradeline_project):
        _ = runner.invoke(app, ["dataset", "add", "Logic"])
        result = runner.invoke(app, ["dataset", "add", "logic"])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_add_show_edit_delete_case(self, gradeline_project):
        _ = runner.invoke(app, ["dataset", "add", "Math"])
        result = runner.invoke(app, ["dataset", "add-case", "Math", "-i", "What is 2 + 2?", "-e", "5"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["dataset", "edit-case", "Math", "1", "--expected", "4"])
        assert result.exit_code == 0
        assert _load(gradeline_project).datasets[0].test_cases[0].expected_output == "4"

        result = runner.invoke(app, ["dataset", "show", "Math"])
        assert result.exit_code == 0
        assert "What is 2 + 2?" in result.stdout

        result = runner.invoke(app, ["dataset", "delete-case", "Math", "1"])
        assert result.exit_code == 0
        assert _load(gradeline_project).datasets[0].test_cases == []

    def test_unknown_case(self, gradeline_project):
        _ = runner.invoke(app, ["dataset", "add", "Math"])
        result = runner.invoke(app, ["dataset", "delete-case", "Math", "3"])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_rename_and_delete(self, gradeline_project):
        _ = runner.invoke(app, ["dataset", "add", "Old"])

        result = runner.invoke(app, ["dataset", "rename", "Old", "New"])
        assert result.exit_code == 0
        assert [d.name for d in _load(gradeline_project).datasets] == ["New"]

        result = runner.invoke(app, ["dataset", "delete", "New", "--yes"])
        assert result.exit_code == 0
        assert _load(gradeline_project).datasets == []

    def test_unknown_dataset(self, gradeline_project):
        result = runner.invoke(app, ["dataset", "show", "Nope"])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestGraderCommands:
    """Tests for gradeline grader commands."""

    def test_add_list_edit_delete(self, gradeline_project):
        result = runner.invoke(app, ["grader", "add", "Strict", "-r", "Be precise."])
        assert result.exit_code == 0

        result = runner.invoke(app, ["grader", "list"])
        assert result.exit_code == 0
        assert "Strict" in result.stdout

        result = runner.invoke(app, ["grader", "edit", "strict", "--rubric", "Be very precise."])
        assert result.exit_code == 0
        assert _load(gradeline_project).graders[0].rubric == "Be very precise."

        result = runner.invoke(app, ["grader", "delete", "Strict", "-y"])
        assert result.exit_code == 0
        assert _load(gradeline_project).graders == []

    def test_edit_nothing(self, gradeline_project):
        _ = runner.invoke(app, ["grader", "add", "Format"])
        result = runner.invoke(app, ["grader", "edit", "Format"])
        assert result.exit_code == 0
        assert "Nothing to change" in result.stdout


class TestGradeCommand:
    """Tests for gradeline grade command."""

    def test_mock_pass(self, gradeline_project):
        result = runner.invoke(app, ["grade", "-i", "What is 2 + 2?", "-e", "4"])
        assert result.exit_code == 0
        assert "PASS" in result.stdout
        assert "mock grading" in result.stdout

    def test_mock_fail(self, gradeline_project):
        result = runner.invoke(app, ["grade", "-i", "What is 2 + 2?", "-e", " "])
        assert result.exit_code == 0
        assert "FAIL" in result.stdout
        assert "Missing or empty expected output." in result.stdout

    def test_policy_closed(self, gradeline_project):
        with patch.object(GradingPolicy, "close") as mock_close:
            result = runner.invoke(app, ["grade", "-i", "q", "-e", "a"])
        assert result.exit_code == 0
        mock_close.assert_called_once()


class TestSeedRunResultsExport:
    """Seeding, running an experiment, and reading the results back."""

    def test_seed_is_idempotent(self, gradeline_project):
        result = runner.invoke(app, ["seed"])
        assert result.exit_code == 0
        assert "7 dataset(s)" in result.stdout

        result = runner.invoke(app, ["seed"])
        assert result.exit_code == 0
        assert "nothing added" in result.stdout

        state = _load(gradeline_project)
        assert len(state.datasets) == 7
        assert len(state.graders) == 5

    def test_run_with_mock_grading(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["run", "Math facts", "-g", "Correctness"])

        assert result.exit_code == 0
        assert "8 passed" in result.stdout
        assert len(_load(gradeline_project).results) == 8

    def test_run_closes_local_policy(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])
        with patch.object(GradingPolicy, "close") as mock_close:
            result = runner.invoke(app, ["run", "Math facts", "-g", "Correctness"])
        assert result.exit_code == 0
        mock_close.assert_called_once()

    def test_run_all_graders(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["run", "Logic"])

        assert result.exit_code == 0
        assert "40 passed" in result.stdout

    def test_run_without_graders(self, gradeline_project):
        _ = runner.invoke(app, ["dataset", "add", "Empty graders"])
        result = runner.invoke(app, ["run", "Empty graders"])
        assert result.exit_code == 1
        assert "No graders" in result.stdout

    def test_run_through_server(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])

        with patch("gradeline.cli.run.GradelineClient") as mock_client_class:
            mock_client = mock_client_class.return_value
            mock_client.server_url = "http://grader:8080"
            mock_client.grade.return_value = GradeVerdict(pass_=False, reason="Remote says no.")

            result = runner.invoke(
                app, ["run", "History", "-g", "Strict", "--server", "http://grader:8080"]
            )

        assert result.exit_code == 0
        assert "8 failed" in result.stdout
        mock_client_class.assert_called_once_with("http://grader:8080")
        mock_client.close.assert_called_once()

    def test_run_reports_errors(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])

        with patch("gradeline.cli.run.GradelineClient") as mock_client_class:
            mock_client = mock_client_class.return_value
            mock_client.server_url = "http://grader:8080"
            mock_client.grade.return_value = GradeVerdict(
                pass_=False, reason="Connection error: refused", error=True
            )

            result = runner.invoke(app, ["run", "History", "-g", "Strict", "-s", "http://grader:8080"])

        assert result.exit_code == 1
        assert "8 errors" in result.stdout
        assert _load(gradeline_project).results == []

    def test_results(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])
        _ = runner.invoke(app, ["run", "Science", "-g", "Lenient"])

        result = runner.invoke(app, ["results", "Science", "-g", "Lenient"])

        assert result.exit_code == 0
        assert "8/8 passed" in result.stdout

    def test_export_csv(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])
        _ = runner.invoke(app, ["run", "Geography", "-g", "Format"])
        output = gradeline_project / "geography.csv"

        result = runner.invoke(app, ["export", "Geography", str(output), "-g", "Format"])

        assert result.exit_code == 0
        data = output.read_bytes().decode("utf-8")
        lines = data.split("\r\n")
        assert lines[0] == "input,expected_output,Format_pass,Format_reason,Format_generated"
        assert len(lines) == 9
        assert lines[1].startswith("Capital of France?,Paris,pass,")

    def test_export_json(self, gradeline_project):
        _ = runner.invoke(app, ["seed"])
        output = gradeline_project / "logic.json"

        result = runner.invoke(app, ["export", "Logic", str(output)])

        assert result.exit_code == 0
        assert '"graders"' in output.read_text()

    def test_export_bad_extension(self, gradeline_project):
        result = runner.invoke(app, ["export", "Logic", "out.txt"])
        assert result.exit_code == 1
        assert "must be .csv or .json" in result.stdout
