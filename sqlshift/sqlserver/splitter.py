"""Split T-SQL scripts into batches on ``GO`` separator lines."""

import re

_GO_LINE = re.compile(r"^\s*GO\s*$", re.IGNORECASE)


def split_batches(sql: str) -> list[str]:
    """Split ``sql`` on lines that hold only ``GO`` (any case).

    Line endings are normalized to LF, each batch is trimmed and empty
    batches are dropped. ``GO <count>`` is not supported and stays in
    the batch text.
    """
    sql = sql.replace("\r\n", "\n").replace("\r", "\n")

    batches: list[str] = []
    current: list[str] = []

    def flush() -> None:
        text = "\n".join(current).strip()
        current.clear()
        if text:
            batches.append(text)

    for line in sql.split("\n"):
        if _GO_LINE.match(line):
            flush()
            continue
        current.append(line)
    flush()

    return batches
