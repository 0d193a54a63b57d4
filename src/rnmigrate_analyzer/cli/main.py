import argparse
from pathlib import Path
from datetime import datetime
from typing import List, Optional

from ..runtime.paths import compute_default_output_dir, resolve_source_root
from ..utils.logging import setup_logger
from ..config.loader import find_config, load_settings, require_mutation_settings
from ..core.discovery.repo_scanner import scan_sources
from ..core.pipeline.run import MODE_ADD_PROPS, MODE_ANALYZE, run_add_props, run_analysis
from ..models.errors import ConfigurationInvalid, SourceRootUnreadable
from ..reporting.console import log_add_props_summary, log_analysis_summary
from ..reporting.csv_export import export_all
from ..reporting.json_export import build_json_report, write_json
from ..reporting.render import render_html_report


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--src", "-s", default=None, help="Source folder to process (overrides src_folder in the config)")
    p.add_argument(
        "--config",
        "-c",
        default=None,
        help="Configuration file (YAML or JSON). Defaults to ./rnmigrate.yml, then ./config.json",
    )
    p.add_argument("--jobs", "-j", type=int, default=None, help="Parse files with N worker threads")
    p.add_argument(
        "--output",
        help="Output directory (defaults to <parent_of_src>/output_files)",
        default=None,
    )
    p.add_argument(
        "--run-name",
        help="Run folder name under output root (defaults to timestamp)",
        default=None,
    )
    p.add_argument("--log-level", default="INFO", help="Log level (INFO/DEBUG/WARN/ERROR)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rnmigrate",
        description="Add props to, or report usage of, React Native components in JSX/TSX sources.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser(MODE_ADD_PROPS, help="Merge configured props into matching component elements")
    _add_common(add)
    add.add_argument("--dry-run", action="store_true", help="Report what would change without writing files")

    ana = sub.add_parser(MODE_ANALYZE, help="Build a component usage / migration priority report")
    _add_common(ana)
    ana.add_argument("--no-json", action="store_true", help="Do not write the JSON report")
    ana.add_argument("--no-csv", action="store_true", help="Do not write CSV exports")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cwd = Path.cwd()
    pkg_root = Path(__file__).resolve().parents[1]  # rnmigrate_analyzer/

    config_path = Path(args.config) if args.config else find_config(cwd)
    overrides = {"src_folder": args.src, "jobs": args.jobs}
    try:
        settings = load_settings(config_path, pkg_root, overrides)
        if args.command == MODE_ADD_PROPS:
            require_mutation_settings(settings)
        src_root = resolve_source_root(settings.src_folder, cwd=cwd)
        files = scan_sources(src_root, settings.file_extensions, settings.include_globs, settings.exclude_globs)
    except (ConfigurationInvalid, SourceRootUnreadable) as e:
        raise SystemExit(f"Error: {e}")

    output_root = args.output or compute_default_output_dir(str(src_root), "output_files")
    run_name = args.run_name or datetime.now().strftime("run_%Y%m%d_%H%M%S")
    run_dir = Path(output_root) / run_name
    run_dir.mkdir(parents=True, exist_ok=True)

    log_name = "add_props.log" if args.command == MODE_ADD_PROPS else "analyzer.log"
    logger = setup_logger(run_dir / "logs" / log_name, level=args.log_level)
    logger.info("Source: %s", str(src_root))
    logger.info("Config: %s", str(config_path) if config_path else "<defaults>")
    logger.info("Output: %s", str(run_dir))

    if not files:
        logger.warning("No files found matching the pattern.")
        return 0
    logger.info("Found %d files to process.", len(files))

    if args.command == MODE_ADD_PROPS:
        report = run_add_props(
            files,
            settings,
            write=not args.dry_run,
            jobs=settings.jobs,
            base=cwd,
            log=logger,
        )
        write_json(run_dir / "artifacts" / "add_props_report.json", report.to_dict())
        log_add_props_summary(report, logger)
        if args.dry_run:
            logger.info("Dry run: no files were written.")
        logger.info("Done.")
        return 1 if report.files_errored else 0

    report, usage = run_analysis(files, settings, jobs=settings.jobs, base=cwd, log=logger)
    out_html = run_dir / "report.html"
    render_html_report(out_html, report, usage, settings)
    logger.info("HTML Report: %s", str(out_html))
    if not args.no_json:
        out_json = run_dir / "artifacts" / "component_usage.json"
        write_json(out_json, build_json_report(report, usage, settings))
        logger.info("JSON Report: %s", str(out_json))
    if not args.no_csv:
        export_all(report, usage, run_dir / "csv")
        logger.info("CSV exports: %s", str(run_dir / "csv"))
    log_analysis_summary(report, usage, logger)
    logger.info("Done.")
    return 0
