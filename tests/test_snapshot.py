"""Tests for snapshot persistence."""

import json

import pytest

from sqlshift.assets.hasher import hash_sql
from sqlshift.assets.models import DbAsset, DbAssetKind
from sqlshift.assets.providers import StaticAssetProvider
from sqlshift.snapshot import (
    JsonSnapshotStore,
    ProgrammableSnapshot,
    ProgrammableSnapshotItem,
    snapshot_key,
)


@pytest.fixture
def store():
    return JsonSnapshotStore()


class TestJsonSnapshotStore:
    def test_missing_file_is_empty(self, store, tmp_path):
        """A snapshot that was never written loads as empty."""
        snapshot = store.load(tmp_path / "missing.json")
        assert snapshot.items == []

    def test_empty_document_is_empty(self, store, tmp_path):
        """An empty JSON object loads as empty."""
        path = tmp_path / "snap.json"
        path.write_text("{}", encoding="utf-8")
        assert store.load(path).items == []

    def test_save_then_load(self, store, tmp_path):
        """Saved items load back unchanged."""
        path = tmp_path / "nested" / "snap.json"
        snapshot = ProgrammableSnapshot(
            items=[ProgrammableSnapshotItem("dbo", "sp_A", 1, "ABC")]
        )

        store.save(path, snapshot)

        assert store.load(path) == snapshot
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "items": [{"schema": "dbo", "name": "sp_A", "kind": 1, "hash": "ABC"}]
        }

    def test_save_overwrites(self, store, tmp_path):
        """Saving replaces the previous content, no merge."""
        path = tmp_path / "snap.json"
        store.save(path, ProgrammableSnapshot(items=[ProgrammableSnapshotItem("dbo", "a", 0, "1")]))
        store.save(path, ProgrammableSnapshot(items=[ProgrammableSnapshotItem("dbo", "b", 0, "2")]))

        assert [i.name for i in store.load(path).items] == ["b"]

    def test_leaves_no_temp_files(self, store, tmp_path):
        """Atomic write cleans up after itself."""
        store.save(tmp_path / "snap.json", ProgrammableSnapshot())
        assert [p.name for p in tmp_path.iterdir()] == ["snap.json"]

    def test_invalid_json_raises(self, store, tmp_path):
        """Corrupt snapshots are reported, not silently reset."""
        path = tmp_path / "snap.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            store.load(path)

    def test_build_from_providers(self, store):
        """Assets of every provider end up in the snapshot."""
        a = DbAsset("dbo", "vw_A", DbAssetKind.VIEW, "A")
        b = DbAsset("dbo", "sp_B", DbAssetKind.PROCEDURE, "B")

        snapshot = store.build_from_providers([StaticAssetProvider([a]), StaticAssetProvider([b])])

        assert [(i.name, i.kind, i.hash) for i in snapshot.items] == [
            ("vw_A", 0, hash_sql("A")),
            ("sp_B", 1, hash_sql("B")),
        ]


class TestProgrammableSnapshot:
    def test_key_is_case_insensitive(self):
        """Keys ignore case of schema and name."""
        assert snapshot_key("DBO", "Sp_A", 1) == snapshot_key("dbo", "sp_a", 1)
        assert snapshot_key("dbo", "sp_a", 1) != snapshot_key("dbo", "sp_a", 2)

    def test_lookup_last_duplicate_wins(self, caplog):
        """Duplicate keys resolve to the later item and log a warning."""
        snapshot = ProgrammableSnapshot(
            items=[
                ProgrammableSnapshotItem("dbo", "sp_A", 1, "OLD"),
                ProgrammableSnapshotItem("DBO", "SP_A", 1, "NEW"),
            ]
        )

        with caplog.at_level("WARNING"):
            lookup = snapshot.to_lookup()

        assert len(lookup) == 1
        assert next(iter(lookup.values())).hash == "NEW"
        assert "Duplicate snapshot entry" in caplog.text

    def test_from_assets_keeps_one_item_per_key(self, caplog):
        """Assets differing only in case collapse to the last one."""
        first = DbAsset("dbo", "sp_X", DbAssetKind.PROCEDURE, "SELECT 1")
        second = DbAsset("DBO", "SP_X", DbAssetKind.PROCEDURE, "SELECT 2")
        other = DbAsset("dbo", "vw_Y", DbAssetKind.VIEW, "SELECT 3")

        with caplog.at_level("WARNING"):
            snapshot = ProgrammableSnapshot.from_assets([first, other, second])

        assert [(i.name, i.hash) for i in snapshot.items] == [
            ("SP_X", hash_sql("SELECT 2")),
            ("vw_Y", hash_sql("SELECT 3")),
        ]
        assert len({i.key for i in snapshot.items}) == 2
        assert "map to the same object" in caplog.text

    def test_from_dict_coerces_kind(self):
        """String kinds from hand-edited files become ints."""
        item = ProgrammableSnapshotItem.from_dict(
            {"schema": "dbo", "name": "x", "kind": "3", "hash": "H"}
        )
        assert item.kind == 3
