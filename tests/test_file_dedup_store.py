from __future__ import annotations

import pytest

from adapters.file_dedup_store import FileDedupStore
from core.errors import ConfigError


def test_missing_file_loads_empty(tmp_path) -> None:
    store = FileDedupStore(str(tmp_path / "alerted_bids.txt"))
    assert store.load() == set()
    assert not store.contains("1:1")


def test_recorded_keys_survive_reload(tmp_path) -> None:
    path = str(tmp_path / "alerted_bids.txt")
    store = FileDedupStore(path)
    store.load()
    keys = [f"1:{n}" for n in range(25)]
    for key in keys:
        store.record(key)

    reloaded = FileDedupStore(path)
    assert reloaded.load() == set(keys)
    assert len(reloaded) == 25
    assert reloaded.contains("1:7")


def test_file_is_one_key_per_line(tmp_path) -> None:
    path = tmp_path / "alerted_bids.txt"
    store = FileDedupStore(str(path))
    store.record("1:12345")
    store.record("137:9")
    assert path.read_text(encoding="utf-8") == "1:12345\n137:9\n"


def test_recording_known_key_does_not_append(tmp_path) -> None:
    path = tmp_path / "alerted_bids.txt"
    store = FileDedupStore(str(path))
    store.record("1:1")
    store.record("1:1")
    assert path.read_text(encoding="utf-8").splitlines() == ["1:1"]


def test_load_ignores_blank_lines_and_whitespace(tmp_path) -> None:
    path = tmp_path / "alerted_bids.txt"
    path.write_text("1:1\n\n  1:2  \n\n", encoding="utf-8")
    assert FileDedupStore(str(path)).load() == {"1:1", "1:2"}


def test_record_creates_parent_directories(tmp_path) -> None:
    path = tmp_path / "state" / "nested" / "alerted_bids.txt"
    FileDedupStore(str(path)).record("1:1")
    assert path.exists()


def test_compact_drops_duplicates_without_changing_membership(tmp_path) -> None:
    path = tmp_path / "alerted_bids.txt"
    path.write_text("1:1\n1:2\n1:1\n\n1:2\n1:3\n", encoding="utf-8")
    store = FileDedupStore(str(path))

    removed = store.compact()

    assert removed == 3
    assert path.read_text(encoding="utf-8") == "1:1\n1:2\n1:3\n"
    assert store.load() == {"1:1", "1:2", "1:3"}


def test_compact_without_file_is_noop(tmp_path) -> None:
    store = FileDedupStore(str(tmp_path / "missing.txt"))
    assert store.compact() == 0


def test_undecodable_file_is_a_startup_error(tmp_path) -> None:
    path = tmp_path / "alerted_bids.txt"
    path.write_bytes(b"1:1\n\xff\xfe\x00garbage\n")
    store = FileDedupStore(str(path))

    with pytest.raises(ConfigError):
        store.load()
    with pytest.raises(ConfigError):
        store.compact()
