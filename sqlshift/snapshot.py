"""Programmables snapshot persistence.

The snapshot records the content hash of every asset as of the last
scaffold, so drift can be computed offline. File format:

    {"items": [{"schema": "dbo", "name": "sp_X", "kind": 1, "hash": "AB12..."}]}
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .assets.hasher import hash_sql
from .assets.models import DbAsset
from .assets.providers import AssetProvider
from .tooling.fileio import atomic_write_json

logger = logging.getLogger(__name__)


def snapshot_key(schema: str, name: str, kind: int) -> str:
    """Case-insensitive composite key for (schema, name, kind)."""
    return f"{schema}.{name}::{int(kind)}".casefold()


def unique_assets(assets: Iterable[DbAsset]) -> list[DbAsset]:
    """One asset per snapshot key. A later asset replaces an earlier one in place."""
    by_key: dict[str, DbAsset] = {}
    for asset in assets:
        key = snapshot_key(asset.schema, asset.name, asset.kind)
        previous = by_key.get(key)
        if previous is not None:
            logger.warning(
                f"Assets {previous.qualified_name} and {asset.qualified_name} "
                f"map to the same object (kind {int(asset.kind)}); keeping the last one"
            )
        by_key[key] = asset
    return list(by_key.values())


@dataclass(frozen=True)
class ProgrammableSnapshotItem:
    """Last known hash of one asset. ``kind`` is the ``DbAssetKind`` value."""

    schema: str
    name: str
    kind: int
    hash: str

    @property
    def key(self) -> str:
        return snapshot_key(self.schema, self.name, self.kind)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProgrammableSnapshotItem":
        """Create from dictionary."""
        return cls(
            schema=data["schema"],
            name=data["name"],
            kind=int(data["kind"]),
            hash=data["hash"],
        )


@dataclass
class ProgrammableSnapshot:
    """All snapshot items, at most one per key."""

    items: list[ProgrammableSnapshotItem] = field(default_factory=list)

    def to_lookup(self) -> dict[str, ProgrammableSnapshotItem]:
        """Items keyed case-insensitively. Later duplicates win."""
        lookup: dict[str, ProgrammableSnapshotItem] = {}
        for item in self.items:
            if item.key in lookup:
                logger.warning(
                    f"Duplicate snapshot entry for {item.schema}.{item.name} "
                    f"(kind {item.kind}); keeping the last one"
                )
            lookup[item.key] = item
        return lookup

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: dict) -> "ProgrammableSnapshot":
        """Create from dictionary."""
        return cls(items=[ProgrammableSnapshotItem.from_dict(i) for i in data.get("items", [])])

    @classmethod
    def from_assets(cls, assets: Iterable[DbAsset]) -> "ProgrammableSnapshot":
        """Build a snapshot describing exactly ``assets``, one item per key."""
        return cls(
            items=[
                ProgrammableSnapshotItem(
                    schema=a.schema, name=a.name, kind=int(a.kind), hash=hash_sql(a.sql)
                )
                for a in unique_assets(assets)
            ]
        )


class JsonSnapshotStore:
    """Loads and saves a ``ProgrammableSnapshot`` as a JSON file."""

    def load(self, path: Path) -> ProgrammableSnapshot:
        """Load a snapshot. A missing file gives an empty snapshot.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"No snapshot at {path}, starting empty")
            return ProgrammableSnapshot()

        data = json.loads(path.read_text(encoding="utf-8"))
        if not data:
            return ProgrammableSnapshot()
        return ProgrammableSnapshot.from_dict(data)

    def save(self, path: Path, snapshot: ProgrammableSnapshot) -> None:
        """Overwrite the snapshot file with ``snapshot``."""
        atomic_write_json(Path(path), snapshot.to_dict())
        logger.debug(f"Saved snapshot with {len(snapshot.items)} item(s) to {path}")

    def build_from_providers(self, providers: Iterable[AssetProvider]) -> ProgrammableSnapshot:
        """Snapshot of every asset from ``providers``."""
        collected: list[DbAsset] = []
        for provider in providers:
            collected.extend(provider.get_assets())
        return ProgrammableSnapshot.from_assets(collected)
