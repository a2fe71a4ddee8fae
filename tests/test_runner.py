from __future__ import annotations

import json
from pathlib import Path

import pytest

from strictify.config import load_project_config
from strictify.exceptions import ProjectNotCompilingError
from strictify.runner import Runner

MARKER = "# strictify automated fix: --no-implicit-any"


def test_upgrade_writes_formatted_sources_and_report(write_tree) -> None:
    root = write_tree(
        {
            "strictify.toml": 'checks = ["no-implicit-any"]\n',
            "app.py": "def f( bar ):\n    pass\n\n\nf(5)\n",
            "other.py": "y = 1\n",
        }
    )
    report_path = root / "reports" / "strictify.json"
    runner = Runner(load_project_config(root), report_path=report_path)
    outcome = runner.upgrade()

    assert outcome.exit_code == 0
    assert outcome.written == [root / "app.py"]
    assert (root / "app.py").read_text() == f"{MARKER}\ndef f(bar: int):\n  pass\n\n\nf(5)\n"
    assert (root / "other.py").read_text() == "y = 1\n"

    payload = json.loads(report_path.read_text())
    assert payload["stop_reason"] == "converged"
    assert payload["stalled"] is False
    assert payload["iterations"] == 1
    assert payload["checks"] == ["no-implicit-any"]
    assert payload["written_files"] == [str(root / "app.py")]
    assert payload["diagnostics"] == []


def test_stalled_upgrade_reports_remaining_diagnostics(write_tree) -> None:
    root = write_tree(
        {
            "strictify.toml": 'checks = ["no-implicit-any"]\nformat = false\n',
            "app.py": "def f(bar):\n    pass\n",
        }
    )
    outcome = Runner(load_project_config(root)).upgrade()
    assert outcome.result.stalled
    assert outcome.exit_code == 1
    assert [item.name for item in outcome.result.unresolved] == ["bar"]
    assert [item.code for item in outcome.report.diagnostics] == [7006]
    assert outcome.written == []


def test_comment_mode_exit_code_is_zero(write_tree) -> None:
    root = write_tree(
        {
            "strictify.toml": 'mode = "comment"\nformat = false\n',
            "app.py": "def f(bar):\n    pass\n\n\nf(1)\n",
        }
    )
    outcome = Runner(load_project_config(root)).upgrade()
    assert outcome.result.stalled
    assert outcome.exit_code == 0
    assert (root / "app.py").read_text().startswith(f"{MARKER} (bar: int)\n")


def test_precondition_failure_leaves_files_untouched(write_tree) -> None:
    broken = "def f(bar:\n    pass\n"
    root = write_tree(
        {
            "strictify.toml": "",
            "app.py": broken,
            "ok.py": "def g(x):\n    return x\n\n\ng(1)\n",
        }
    )
    with pytest.raises(ProjectNotCompilingError) as excinfo:
        Runner(load_project_config(root)).upgrade()
    assert [item.path.name for item in excinfo.value.diagnostics] == ["app.py"]
    assert (root / "app.py").read_text() == broken
    assert (root / "ok.py").read_text() == "def g(x):\n    return x\n\n\ng(1)\n"


def test_out_of_place_output_is_excluded_from_input(write_tree) -> None:
    root = write_tree(
        {
            "strictify.toml": "format = false\n",
            "app.py": "x = None\nx = 'a'\n",
        }
    )
    runner = Runner(load_project_config(root), out_of_place=Path("build_out"))
    runner.upgrade()
    assert (root / "app.py").read_text() == "x = None\nx = 'a'\n"
    assert (root / "build_out" / "app.py").read_text() == f"{MARKER}\nx: None | str = None\nx = 'a'\n"

    again = runner.upgrade()
    assert [path.name for path in again.written] == ["app.py"]
    assert again.result.iterations == 1


def test_check_lists_diagnostics(write_tree) -> None:
    root = write_tree({"strictify.toml": "", "app.py": "def f(bar):\n    return bar\n"})
    diagnostics = Runner(load_project_config(root)).check()
    assert [item.code for item in diagnostics] == [7006]
    assert (root / "app.py").read_text() == "def f(bar):\n    return bar\n"
