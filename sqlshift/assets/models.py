"""Programmable database objects managed as versioned SQL text."""

from dataclasses import dataclass
from enum import IntEnum


class DbAssetKind(IntEnum):
    """Kind of programmable object.

    The integer values are persisted in the snapshot file.
    """

    VIEW = 0
    PROCEDURE = 1
    SCALAR_FUNCTION = 2
    TABLE_FUNCTION = 3
    TRIGGER = 4


@dataclass(frozen=True)
class DbAsset:
    """Current full definition of one programmable object.

    Attributes:
        schema: Owning schema (e.g. ``dbo``)
        name: Object name (e.g. ``vw_ActiveUsers``)
        kind: Object kind
        sql: Complete definition script
    """

    schema: str
    name: str
    kind: DbAssetKind
    sql: str

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"
