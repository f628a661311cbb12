import json
import logging
from pathlib import Path

from click.testing import CliRunner

from headlink import core

DOC = "# Hello World\n\nSome text.\n\n## Rust: Ownership Model.\n####### Too many hashes\n"
LINKED = (
    "# Hello World [chain](#hello-world-)\n"
    "\n"
    "Some text.\n"
    "\n"
    "## Rust: Ownership Model. [chain](#rust-ownership-model-)\n"
    "####### Too many hashes"
)


def write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def last_json(output: str):
    return json.loads(output.strip().splitlines()[-1])


def test_run_writes_default_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "posts" / "post.md", DOC)

    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--input", "posts/post.md"])
    assert result.exit_code == 0, result.output
    payload = last_json(result.output)
    assert payload == {
        "ok": True,
        "input": "posts/post.md",
        "output": "output.md",
        "lines": 6,
        "headings": 2,
        "skipped": 0,
    }
    assert (tmp_path / "output.md").read_text(encoding="utf-8") == LINKED


def test_run_overwrites_existing_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "in.md", "# Title\n")
    write_file(tmp_path / "out.md", "stale contents\n")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--input", "in.md", "--output", "out.md"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "out.md").read_text(encoding="utf-8") == "# Title [chain](#title-)"


def test_run_no_write_echo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "in.md", "# Foo!!Bar\ntext\n")

    runner = CliRunner()
    result = runner.invoke(
        core.cli,
        ["run", "--input", "in.md", "--no-write", "--echo", "--style", "html", "--slug-policy", "strict"],
    )
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0] == '# Foo!!Bar <a href="#foobar-" class="header-link">\U0001F517</a>'
    assert lines[1] == "text"
    payload = json.loads(lines[-1])
    assert payload["output"] is None
    assert payload["headings"] == 1
    assert not (tmp_path / "output.md").exists()


def test_run_reads_stdin(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--input", "-", "--no-write", "--echo"], input="## Hi there\n")
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[0] == "## Hi there [chain](#hi-there-)"


def test_run_skip_linked(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "in.md", LINKED + "\n### New\n")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--input", "in.md", "--skip-linked"])
    assert result.exit_code == 0, result.output
    payload = last_json(result.output)
    assert payload["headings"] == 1
    assert payload["skipped"] == 2
    assert (tmp_path / "output.md").read_text(encoding="utf-8") == LINKED + "\n### New [chain](#new-)"


def test_run_with_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "in.md", "# Hello World\n")
    write_file(
        tmp_path / "headlink.json",
        json.dumps({"input_path": "in.md", "output_path": "linked.md", "suffix_style": "html"}),
    )

    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--config", "headlink.json"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "linked.md").read_text(encoding="utf-8") == (
        '# Hello World <a href="#hello-world-" class="header-link">\U0001F517</a>'
    )

    result = runner.invoke(core.cli, ["run", "--config", "headlink.json", "--style", "markdown"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "linked.md").read_text(encoding="utf-8") == "# Hello World [chain](#hello-world-)"


def test_slug_command():
    runner = CliRunner()
    result = runner.invoke(core.cli, ["slug", "Rust: Ownership Model."])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "rust-ownership-model"

    result = runner.invoke(core.cli, ["slug", "Foo!!Bar", "--slug-policy", "strict"])
    assert result.output.strip() == "foobar"


def test_process_file(tmp_path):
    write_file(tmp_path / "in.md", DOC)
    config = core.LinkifyConfig(input_path=str(tmp_path / "in.md"), output_path=str(tmp_path / "out.md"))
    result = core.process_file(config)
    assert result.headings == 2
    assert (tmp_path / "out.md").read_text(encoding="utf-8") == LINKED


def test_verbose_logs_to_stderr_only(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    monkeypatch.setattr(root, "level", root.level)
    write_file(tmp_path / "in.md", "# Title\n")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["--verbose", "run", "--input", "in.md"])
    assert result.exit_code == 0, result.output
    stdout_lines = result.stdout.strip().splitlines()
    assert len(stdout_lines) == 1
    assert json.loads(stdout_lines[0])["headings"] == 1
    assert "Reading document from in.md" in result.stderr
    assert "DEBUG" in result.stderr


def test_quiet_run_logs_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    monkeypatch.setattr(root, "level", root.level)
    write_file(tmp_path / "in.md", "# Title\n")

    runner = CliRunner()
    result = runner.invoke(core.cli, ["run", "--input", "in.md"])
    assert result.exit_code == 0, result.output
    assert result.stderr == ""
    assert root.level == logging.WARNING
