"""Programmable database assets (views, procedures, functions, triggers)."""

from .hasher import hash_sql, normalize_sql
from .models import DbAsset, DbAssetKind
from .providers import AssetProvider, FileSystemAssetProvider, StaticAssetProvider

__all__ = [
    "hash_sql",
    "normalize_sql",
    "DbAsset",
    "DbAssetKind",
    "AssetProvider",
    "FileSystemAssetProvider",
    "StaticAssetProvider",
]
