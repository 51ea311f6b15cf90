"""Report serialization for --report-out.

Two checks of the same log must produce byte-identical reports, so a report
is the CheckResult dump with sorted keys, compact separators, raw UTF-8 and a
single trailing newline.
"""

import json
from pathlib import Path
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """Serialize a JSON-compatible report without insertion-order or locale effects."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def write_report(path: Path, report: dict) -> Path:
    """Write ``report`` to ``path``, creating parent directories.

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(canonical_dumps(report) + "\n", encoding="utf-8")
    return path
