"""Content hashing for SQL assets.

Normalization is intentionally cheap: it only removes line-ending and
trailing-whitespace noise. Comments and internal spacing still count as
changes.
"""

import hashlib


def normalize_sql(sql: str) -> str:
    """Normalize SQL text for comparison.

    Steps:
    1. Trim the whole text
    2. Convert CRLF and CR line endings to LF
    3. Strip trailing whitespace from every line
    4. Trim the result again
    """
    sql = sql.strip()
    sql = sql.replace("\r\n", "\n").replace("\r", "\n")
    lines = (line.rstrip() for line in sql.split("\n"))
    return "\n".join(lines).strip()


def hash_sql(sql: str) -> str:
    """SHA-256 of the normalized SQL as uppercase hex."""
    normalized = normalize_sql(sql)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest().upper()
