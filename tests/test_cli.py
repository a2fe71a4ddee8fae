from __future__ import annotations

from typer.testing import CliRunner

from strictify.cli import EXIT_OK, EXIT_PRECONDITION, EXIT_STALLED, app

runner = CliRunner()


def test_upgrade_annotates_and_exits_zero(write_tree) -> None:
    root = write_tree(
        {
            "strictify.toml": "",
            "app.py": "def f(bar):\n    pass\n\n\nf(5)\n",
        }
    )
    result = runner.invoke(app, ["upgrade", "--project", str(root), "--no-format"])
    assert result.exit_code == EXIT_OK, result.output
    assert "def f(bar: int):" in (root / "app.py").read_text()
    assert "converged after 1 iteration(s)" in result.output


def test_upgrade_writes_log_file(write_tree) -> None:
    root = write_tree({"strictify.toml": "", "app.py": "def f(bar):\n    pass\n"})
    log_path = root / "logs" / "session.log"
    result = runner.invoke(app, ["upgrade", "-p", str(root), "--log", str(log_path)])
    assert result.exit_code == EXIT_STALLED
    text = log_path.read_text()
    assert "[error]" in text
    assert text.count("Unable to automatically calculate type of 'bar'") == 1
    assert "unresolved:" not in text


def test_check_reports_diagnostics(write_tree) -> None:
    root = write_tree({"strictify.toml": "", "app.py": "def f(bar):\n    return bar\n"})
    result = runner.invoke(app, ["check", "-p", str(root)])
    assert result.exit_code == EXIT_STALLED
    assert "SF7006" in result.output
    assert "1 diagnostic(s)" in result.output


def test_check_clean_project(write_tree) -> None:
    root = write_tree({"strictify.toml": "", "app.py": "def f(bar: int) -> int:\n    return bar\n"})
    result = runner.invoke(app, ["check", "-p", str(root), "-c", "no-implicit-any"])
    assert result.exit_code == EXIT_OK
    assert "0 diagnostic(s)" in result.output


def test_syntax_error_is_a_precondition_failure(write_tree) -> None:
    source = "def f(bar:\n    pass\n"
    root = write_tree({"strictify.toml": "", "app.py": source})
    result = runner.invoke(app, ["upgrade", "-p", str(root)])
    assert result.exit_code == EXIT_PRECONDITION
    assert (root / "app.py").read_text() == source


def test_invalid_config_is_a_precondition_failure(write_tree) -> None:
    root = write_tree({"strictify.toml": 'mode = "sometimes"\n'})
    result = runner.invoke(app, ["upgrade", "-p", str(root)])
    assert result.exit_code == EXIT_PRECONDITION


def test_comment_mode_exits_zero(write_tree) -> None:
    root = write_tree({"strictify.toml": "", "app.py": "def f(bar):\n    pass\n\n\nf('x')\n"})
    result = runner.invoke(app, ["upgrade", "-p", str(root), "--mode", "comment", "--no-format"])
    assert result.exit_code == EXIT_OK
    text = (root / "app.py").read_text()
    assert text.startswith("# strictify automated fix: --no-implicit-any (bar: str)\n")
    assert "def f(bar):" in text
