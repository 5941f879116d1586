from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Sequence

from rowsearch.logging_utils import log_event

logger = logging.getLogger(__name__)

KEY_INDENT = " " * 4
ROW_INDENT = " " * 8


class ResultSinkError(RuntimeError):
    pass


def format_rows_document(result_key: str, rows: Iterable[Sequence[int]]) -> str:
    lines = [f"{ROW_INDENT}[{', '.join(str(symbol) for symbol in row)}]" for row in rows]
    body = ",\n".join(lines)
    if body:
        body += "\n"
    return f"{{\n{KEY_INDENT}{json.dumps(result_key)}: [\n{body}{KEY_INDENT}]\n}}\n"


def write_rows_document(path: Path | str, result_key: str, rows: Sequence[Sequence[int]]) -> Path:
    target = Path(path)
    content = format_rows_document(result_key, rows)
    try:
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        log_event(logger, "rows_write_failed", level=logging.ERROR, path=str(target), reason=str(exc))
        raise ResultSinkError(f"Could not write {len(rows)} rows to {target}: {exc}") from exc
    log_event(logger, "rows_written", path=str(target), result_key=result_key, rows_written=len(rows), output_size_bytes=len(content.encode("utf-8")))
    return target
