from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config.loader import Settings
from ..models.schema import RunReport, UsageReport

PRIORITY_COLORS = {
    "high": "#dc3545",
    "medium": "#ffc107",
    "low": "#28a745",
}

MIGRATION_TIPS = {
    "high": "High usage - prioritize custom component development",
    "medium": "Medium usage - plan for next development cycle",
    "low": "Low usage - can be migrated later",
}


def priority_color(priority: str) -> str:
    return PRIORITY_COLORS.get(priority, "#6c757d")


def github_url(settings: Settings, relative_path: str, line: Optional[int] = None) -> Optional[str]:
    if not settings.github_repository:
        return None
    url = f"https://github.com/{settings.github_repository}/blob/{settings.github_branch}/{relative_path}"
    if line:
        url += f"#L{line}"
    return url


def build_report_context(report: RunReport, usage: UsageReport, settings: Settings) -> Dict[str, Any]:
    components: List[Dict[str, Any]] = []
    for comp in usage.components:
        components.append({
            "name": comp.name,
            "total_usages": comp.total_usages,
            "priority": comp.priority,
            "color": priority_color(comp.priority),
            "tip": MIGRATION_TIPS.get(comp.priority, ""),
            "packages": sorted(comp.source_modules),
            "files": [
                {"path": p, "count": n, "url": github_url(settings, p)}
                for p, n in comp.per_file.items()
            ],
        })
    files = [
        {"path": f.path, "total_usages": f.total_usages, "url": github_url(settings, f.path)}
        for f in usage.files
    ]
    return {
        "summary": {
            "generated_at": report.started_at,
            "source_folder": settings.src_folder,
            "total_files": report.counters.get("files_processed", 0),
            "total_components": usage.total_components,
            "total_usages": usage.total_usages,
            "packages_tracked": len(usage.packages),
            "files_errored": report.counters.get("files_errored", 0),
        },
        "components": components,
        "files": files,
        "package_imports": usage.package_imports,
        "errors": [{"path": e.path, "message": e.message} for e in report.errors],
    }


def render_html_report(out_path: Path, report: RunReport, usage: UsageReport, settings: Settings) -> None:
    """
    Render the component migration report.

    Args:
        out_path: Path where the HTML report will be written
        report: Finished analysis run
        usage: Finalized usage statistics of the run
        settings: Settings the run used (source folder, GitHub links)
    """
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    tpl = env.get_template("report.html.j2")
    html = tpl.render(**build_report_context(report, usage, settings))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(html, encoding="utf-8")
