"""Tests for main module."""

import json
from pathlib import Path

import pytest

from markdown_db import main as main_module
from markdown_db.config import Config, reset_config
from markdown_db.main import build_parser, main, resolve_collections
from markdown_db.markdown import Obsidian, Vault


@pytest.fixture(autouse=True)
def environment(tmp_path: Path, monkeypatch):
    """Point every configurable location into tmp_path."""
    monkeypatch.setenv("MARKDOWN_DB_PATH", str(tmp_path / "cache" / "index.sqlite"))
    monkeypatch.setenv("MARKDOWN_DB_OBSIDIAN_CONFIG", str(tmp_path / "obsidian.json"))
    monkeypatch.delenv("MARKDOWN_DB_IN_MEMORY", raising=False)
    monkeypatch.delenv("MARKDOWN_DB_VAULTS", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "hello.md").write_text("---\ntype: Greeting\n---\nHello [[World]]\n")
    (vault / "other.md").write_text("Something else\n")
    return vault


def run_main(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParser:
    def test_search_query_words(self):
        args = build_parser().parse_args(["search", "very", "simple"])
        assert args.command == "search"
        assert args.query == ["very", "simple"]

    def test_global_options(self):
        args = build_parser().parse_args(["--in-memory", "-v", "--vault", "/a", "info"])
        assert args.in_memory is True
        assert args.verbose is True
        assert args.vault == [Path("/a")]

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestResolveCollections:
    def test_explicit_directories(self, tmp_path: Path):
        config = Config.from_env()
        collections = resolve_collections(config, Obsidian(), [tmp_path])
        assert len(collections) == 1
        assert isinstance(collections[0], Vault)

    def test_directories_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MARKDOWN_DB_VAULTS", str(tmp_path))
        collections = resolve_collections(Config.from_env(), Obsidian())
        assert [c.path for c in collections] == [tmp_path]

    def test_obsidian_vaults(self, tmp_path: Path, vault_dir: Path):
        (tmp_path / "obsidian.json").write_text(
            json.dumps({"vaults": {"id": {"path": str(vault_dir)}}})
        )
        collections = resolve_collections(Config.from_env(), Obsidian())
        assert [c.path for c in collections] == [vault_dir]


class TestSearchCommand:
    def test_search_prints_json(self, vault_dir: Path, capsys):
        assert run_main(["--vault", str(vault_dir), "search", "hello"]) == 0

        results = json.loads(capsys.readouterr().out)
        assert len(results) == 1
        assert results[0]["title"] == "hello"
        assert results[0]["type"] == "Greeting"
        assert results[0]["url"].startswith("obsidian://open?path=")
        assert results[0]["markdown"] == "Hello [World](obsidian://open?path=World)\n"

    def test_search_without_query_prints_count(self, vault_dir: Path, capsys):
        assert run_main(["--vault", str(vault_dir), "search"]) == 0
        assert capsys.readouterr().out.strip() == "Index contains 2 documents"

    def test_search_no_results(self, vault_dir: Path, capsys):
        assert run_main(["--vault", str(vault_dir), "search", "missing"]) == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_search_uses_obsidian_config(self, tmp_path: Path, vault_dir: Path, capsys):
        (tmp_path / "obsidian.json").write_text(
            json.dumps({"vaults": {"id": {"path": str(vault_dir)}}})
        )
        assert run_main(["search", "something"]) == 0
        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_search_persists_index(self, tmp_path: Path, vault_dir: Path):
        assert run_main(["--vault", str(vault_dir), "search"]) == 0
        assert (tmp_path / "cache" / "index.sqlite").exists()

    def test_in_memory_does_not_create_file(self, tmp_path: Path, vault_dir: Path):
        assert run_main(["--in-memory", "--vault", str(vault_dir), "search", "hello"]) == 0
        assert not (tmp_path / "cache" / "index.sqlite").exists()

    def test_serialization_failure(self, vault_dir: Path, monkeypatch):
        def fail(*args, **kwargs):
            raise TypeError("not serializable")

        monkeypatch.setattr(main_module.json, "dumps", fail)
        assert run_main(["--vault", str(vault_dir), "search", "hello"]) == 2

    def test_storage_failure(self, tmp_path: Path, vault_dir: Path):
        db_path = tmp_path / "cache" / "index.sqlite"
        db_path.parent.mkdir()
        db_path.write_bytes(b"this is not a database" * 100)
        assert run_main(["--vault", str(vault_dir), "search", "hello"]) == 1

    def test_invalid_vault_config(self, tmp_path: Path):
        (tmp_path / "obsidian.json").write_text("{not json")
        assert run_main(["search", "hello"]) == 1


class TestOtherCommands:
    def test_info(self, tmp_path: Path, vault_dir: Path, capsys):
        run_main(["--vault", str(vault_dir), "search"])
        capsys.readouterr()

        assert run_main(["info"]) == 0
        out = capsys.readouterr().out
        assert "Index contains 2 documents" in out
        assert str(tmp_path / "cache" / "index.sqlite") in out

    def test_reset(self, vault_dir: Path, capsys):
        run_main(["--vault", str(vault_dir), "search"])
        assert run_main(["reset"]) == 0
        assert "Index reset at" in capsys.readouterr().out

        assert run_main(["info"]) == 0
        assert "Index contains 0 documents" in capsys.readouterr().out
