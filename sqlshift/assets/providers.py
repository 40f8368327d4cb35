"""Asset providers.

A provider yields the current definition of every programmable object it
knows about. The filesystem provider follows a folder convention:

    db_assets/
        procedures/dbo.sp_ListUsers.sql      -> PROCEDURE dbo.sp_ListUsers
        views/dbo.vw_ActiveUsers.sql         -> VIEW dbo.vw_ActiveUsers
        functions_scalar/dbo.fn_X.sql        -> SCALAR_FUNCTION
        functions_table/dbo.tvf_Y.sql        -> TABLE_FUNCTION
        triggers/dbo.trg_Audit.sql           -> TRIGGER
        misc/sp_Z.sql                        -> default kind, default schema
"""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .models import DbAsset, DbAssetKind

logger = logging.getLogger(__name__)

# Directory names after lowercasing and removing "_" and "-"
KIND_BY_DIRECTORY: dict[str, DbAssetKind] = {
    "views": DbAssetKind.VIEW,
    "procedures": DbAssetKind.PROCEDURE,
    "functionsscalar": DbAssetKind.SCALAR_FUNCTION,
    "functionstable": DbAssetKind.TABLE_FUNCTION,
    "triggers": DbAssetKind.TRIGGER,
}


@runtime_checkable
class AssetProvider(Protocol):
    """Source of programmable object definitions."""

    def get_assets(self) -> Iterable[DbAsset]:
        """Yield the current assets. Order must be stable between calls."""
        ...


def _normalize_dir_name(name: str) -> str:
    return name.lower().replace("_", "").replace("-", "")


class FileSystemAssetProvider:
    """Reads ``*.sql`` files below a root directory.

    Args:
        root_dir: Directory holding the asset tree
        default_kind: Kind used when no folder matches the convention
        default_schema: Schema used when the file name has no ``schema.`` prefix
    """

    def __init__(
        self,
        root_dir: Path,
        default_kind: DbAssetKind = DbAssetKind.PROCEDURE,
        default_schema: str = "dbo",
    ):
        self.root_dir = Path(root_dir)
        self.default_kind = default_kind
        self.default_schema = default_schema

    def get_assets(self) -> Iterator[DbAsset]:
        """Yield one asset per ``.sql`` file, sorted by relative path.

        A missing root directory yields nothing.
        """
        if not self.root_dir.is_dir():
            logger.debug(f"Asset directory not found: {self.root_dir}")
            return

        files = sorted(
            (p for p in self.root_dir.rglob("*") if p.is_file() and p.suffix.lower() == ".sql"),
            key=lambda p: p.relative_to(self.root_dir).as_posix(),
        )
        for path in files:
            kind = self.infer_kind(path)
            schema, name = self.infer_schema_and_name(path.stem)
            sql = path.read_text(encoding="utf-8-sig")
            yield DbAsset(schema=schema, name=name, kind=kind, sql=sql)

    def infer_kind(self, path: Path) -> DbAssetKind:
        """Infer the kind from the nearest directory that matches a known name."""
        try:
            relative = Path(path).relative_to(self.root_dir)
        except ValueError:
            relative = Path(path)

        for part in reversed(relative.parts[:-1]):
            kind = KIND_BY_DIRECTORY.get(_normalize_dir_name(part))
            if kind is not None:
                return kind

        return self.default_kind

    def infer_schema_and_name(self, stem: str) -> tuple[str, str]:
        """Split ``dbo.sp_X`` into (``dbo``, ``sp_X``) on the first dot."""
        schema, sep, name = stem.partition(".")
        if sep and schema and name:
            return schema, name
        return self.default_schema, stem


class StaticAssetProvider:
    """Provider over a fixed list of assets (embedded or generated SQL)."""

    def __init__(self, assets: Optional[Iterable[DbAsset]] = None):
        self._assets = list(assets or [])

    def add(self, asset: DbAsset) -> None:
        self._assets.append(asset)

    def get_assets(self) -> list[DbAsset]:
        return list(self._assets)
