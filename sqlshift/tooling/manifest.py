"""Append-only manifest of scaffolded migrations.

The manifest is a local log; the database history is the source of truth
for what has been applied.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .fileio import atomic_write_json
from .layout import DEFAULT_SCOPE

logger = logging.getLogger(__name__)


def append_manifest(
    manifest_path: Path,
    migration_id: str,
    migration_name: str,
    ops_count: int,
    file_path: Path,
    now: Optional[datetime] = None,
) -> dict:
    """Append one migration entry and rewrite the manifest.

    Existing entries are kept as-is. A missing manifest is started fresh.

    Args:
        manifest_path: Manifest JSON file
        migration_id: Id of the scaffolded migration
        migration_name: Name of the scaffolded migration
        ops_count: Number of operations in the migration
        file_path: Path of the migration file (stored with forward slashes)
        now: Timestamp to record (defaults to current UTC time)

    Returns:
        The manifest document that was written
    """
    manifest_path = Path(manifest_path)
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    data: dict = {}
    if manifest_path.exists():
        data = json.loads(manifest_path.read_text(encoding="utf-8")) or {}

    migrations = list(data.get("migrations") or [])
    migrations.append(
        {
            "id": migration_id,
            "name": migration_name,
            "ops": ops_count,
            "file": str(file_path).replace("\\", "/"),
            "createdAtUtc": timestamp,
        }
    )

    output = {
        "scope": data.get("scope") or DEFAULT_SCOPE,
        "updatedAtUtc": timestamp,
        "migrations": migrations,
    }
    atomic_write_json(manifest_path, output)
    logger.debug(f"Manifest {manifest_path.name} now lists {len(migrations)} migration(s)")
    return output
