from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from ..config.loader import Settings
from ..models.schema import RunReport, UsageReport


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")


def build_json_report(report: RunReport, usage: UsageReport, settings: Settings) -> Dict[str, Any]:
    return {
        "summary": {
            "total_files": report.counters.get("files_processed", 0),
            "files_errored": report.counters.get("files_errored", 0),
            "total_components": usage.total_components,
            "total_usages": usage.total_usages,
            "packages": list(usage.packages),
            "generated_at": report.started_at,
            "source_folder": settings.src_folder,
        },
        "components": [c.to_dict() for c in usage.components],
        "files": [f.to_dict() for f in usage.files],
        "imports": usage.package_imports,
        "errors": [{"path": e.path, "message": e.message} for e in report.errors],
    }
