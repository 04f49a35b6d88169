"""Tests for the roster CLI."""

import json
import tempfile
from pathlib import Path

import yaml
from click.testing import CliRunner

from roster.cli import main
from roster.registry.service import RegistryService


def _run(reg_dir, *args, caller=None):
    runner = CliRunner()
    base = ["--registry-dir", str(reg_dir)]
    if caller:
        base += ["--as", caller]
    return runner.invoke(main, base + list(args), env={"ROSTER_IDENTITY": "", "ROSTER_ADMIN": ""})


def test_init_and_admin():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "init", "owner")
        assert result.exit_code == 0
        assert "Initialized" in result.output

        result = _run(tmpdir, "admin")
        assert result.exit_code == 0
        assert "owner" in result.output


def test_uninitialized_registry_errors():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "show", "alice")
        assert result.exit_code == 1
        assert "InvalidInput" in result.output


def test_join_tag_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        assert _run(tmpdir, "join", "Alice", caller="alice").exit_code == 0
        assert _run(tmpdir, "tag", "add", "alice", "Chess").exit_code == 0
        assert _run(tmpdir, "mark", "alice", "present").exit_code == 0

        result = _run(tmpdir, "show", "alice")
        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "Present" in result.output
        assert "Chess" in result.output


def test_join_requires_caller():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        result = _run(tmpdir, "join", "Alice")
        assert result.exit_code != 0
        assert "caller identity" in result.output


def test_join_twice_reports_error_code():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        _run(tmpdir, "join", "Alice", caller="alice")
        result = _run(tmpdir, "join", "Alice", caller="alice")
        assert result.exit_code == 1
        assert "AlreadyExists" in result.output


def test_register_and_remove_tag():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        result = _run(
            tmpdir, "register", "Bob", "--status", "Present",
            "-t", "Chess", "-t", "Art", "-t", "Go", caller="bob",
        )
        assert result.exit_code == 0

        assert _run(tmpdir, "tag", "remove", "bob", "Chess").exit_code == 0
        svc = RegistryService.open(tmpdir)
        assert svc.get_tags("bob") == ("Go", "Art")

        result = _run(tmpdir, "tag", "remove", "bob", "Chess")
        assert result.exit_code == 1
        assert "TagNotFound" in result.output


def test_transfer():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        result = _run(tmpdir, "transfer", "alice", caller="mallory")
        assert result.exit_code == 1
        assert "Unauthorized" in result.output

        assert _run(tmpdir, "transfer", "alice", caller="owner").exit_code == 0
        assert RegistryService.open(tmpdir).administrator == "alice"


def test_list_and_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        result = _run(tmpdir, "list")
        assert "Registry is empty" in result.output

        _run(tmpdir, "join", "Alice", caller="alice")
        result = _run(tmpdir, "list")
        assert result.exit_code == 0
        assert "alice" in result.output

        result = _run(tmpdir, "events", "--format", "json")
        assert result.exit_code == 0
        events = json.loads(result.output)
        assert events[0]["kind"] == "ProfileCreated"
        assert events[0]["identity"] == "alice"


def test_import_seed_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        seed = Path(tmpdir) / "seed.yaml"
        seed.write_text(
            yaml.safe_dump(
                {
                    "profiles": [
                        {"identity": "bob", "name": "Bob", "status": "Present", "tags": ["Chess", "Art"]},
                        {"identity": "carol", "name": "Carol"},
                    ]
                }
            )
        )
        result = _run(tmpdir, "import", str(seed))
        assert result.exit_code == 0
        assert "Imported 2 profiles" in result.output

        svc = RegistryService.open(tmpdir)
        assert svc.get_tags("bob") == ("Chess", "Art")
        assert svc.get_name("carol") == "Carol"


def _import(tmpdir, document):
    seed = Path(tmpdir) / "seed.yaml"
    seed.write_text(yaml.safe_dump(document))
    return _run(tmpdir, "import", str(seed))


def test_import_rejects_malformed_entries():
    cases = [
        ({"profiles": [{"name": "Nameless"}]}, "entry 0 has no identity"),
        ({"profiles": ["alice"]}, "entry 0 must be a mapping"),
        ({"profiles": {"identity": "alice"}}, "'profiles' must be a list"),
        ({"profiles": [{"identity": "alice", "status": "Sometimes"}]}, "entry 0 (alice)"),
        ({"profiles": [{"identity": "alice", "tags": "Chess"}]}, "tags must be a list"),
    ]
    for document, message in cases:
        with tempfile.TemporaryDirectory() as tmpdir:
            _run(tmpdir, "init", "owner")
            result = _import(tmpdir, document)
            assert result.exit_code != 0
            assert message in result.output
            assert RegistryService.open(tmpdir).profiles() == {}


def test_import_checks_whole_file_before_writing():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        result = _import(
            tmpdir,
            {
                "profiles": [
                    {"identity": "bob", "name": "Bob"},
                    {"identity": "carol", "name": "Carol", "status": "Sometimes"},
                ]
            },
        )
        assert result.exit_code != 0
        assert "entry 1 (carol)" in result.output
        assert not RegistryService.open(tmpdir).is_registered("bob")


def test_import_rejects_invalid_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "init", "owner")
        seed = Path(tmpdir) / "seed.yaml"
        seed.write_text("profiles: [unclosed\n")
        result = _run(tmpdir, "import", str(seed))
        assert result.exit_code != 0
        assert "not valid YAML" in result.output
