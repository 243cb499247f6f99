from __future__ import annotations

import os
from pathlib import Path

import pytest

from runbook.core.result import Err, Ok
from runbook.release.errors import MetadataIOError
from runbook.release.gateways import PackageMetadata
from runbook.release.metadata import JsonMetadataStore


def test_read_returns_whole_document(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text('{"name": "demo", "version": "1.0.0", "private": true}', encoding="utf-8")

    result = JsonMetadataStore(path).read()

    assert isinstance(result, Ok)
    assert result.value.version == "1.0.0"
    assert result.value.data["private"] is True


def test_read_missing_file(tmp_path: Path) -> None:
    result = JsonMetadataStore(tmp_path / "package.json").read()
    assert isinstance(result, Err)
    assert result.error.message == "file not found"


def test_read_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text("{nope", encoding="utf-8")

    result = JsonMetadataStore(path).read()

    assert isinstance(result, Err)
    assert "invalid JSON" in result.error.message


def test_read_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text('["1.0.0"]', encoding="utf-8")
    assert isinstance(JsonMetadataStore(path).read(), Err)


def test_write_keeps_key_order_and_trailing_newline(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text(
        '{"name": "démo", "version": "1.0.0-prerelease", "scripts": {}}\n', encoding="utf-8"
    )
    store = JsonMetadataStore(path)

    read = store.read()
    assert isinstance(read, Ok)
    assert store.write(read.value.with_version("1.0.0")) == Ok(None)

    assert path.read_text(encoding="utf-8") == (
        '{\n  "name": "démo",\n  "version": "1.0.0",\n  "scripts": {}\n}\n'
    )


def test_write_into_missing_directory_fails(tmp_path: Path) -> None:
    store = JsonMetadataStore(tmp_path / "missing" / "package.json")
    result = store.write(PackageMetadata(data={"version": "1.0.0"}))
    assert isinstance(result, Err)


def test_write_keeps_original_when_swap_fails(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "package.json"
    path.write_text('{"version": "1.0.0-prerelease"}\n', encoding="utf-8")
    store = JsonMetadataStore(path)

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    result = store.write(PackageMetadata(data={"version": "1.0.0"}))

    assert result == Err(MetadataIOError(path=path, message="replace failed"))
    assert path.read_text(encoding="utf-8") == '{"version": "1.0.0-prerelease"}\n'
    assert not store.staging_path.exists()
    assert list(tmp_path.iterdir()) == [path]


def test_write_leaves_no_staging_file(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    store = JsonMetadataStore(path)

    assert store.write(PackageMetadata(data={"version": "1.0.0"})) == Ok(None)

    assert path.read_bytes() == b'{\n  "version": "1.0.0"\n}\n'
    assert list(tmp_path.iterdir()) == [path]
