from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

from ...config.loader import Settings
from ...models.errors import ParseFailure
from ...models.schema import (
    ClassificationResult,
    ErrorRecord,
    FileOutcome,
    ImportTable,
    RunReport,
    UsageReport,
)
from ...runtime.paths import relative_display_path
from ..classification.classifier import classify
from ..discovery.content_loader import load_source, write_source
from ..imports.table import build_import_table
from ..metrics.usage import UsageAggregator
from ..mutation.merge import merge_attributes
from ..parsing.jsx_parser import dialect_for_path, parse_source
from ..parsing.printer import AttributeEdit, apply_edits

MODE_ADD_PROPS = "add-props"
MODE_ANALYZE = "analyze"


@dataclass
class FileResult:
    path: str
    outcome: FileOutcome
    new_source: Optional[bytes] = None
    import_table: ImportTable = field(default_factory=dict)
    sightings: List[Tuple[str, ClassificationResult]] = field(default_factory=list)


def _analyze_tree(path: str, tree, settings: Settings, warnings: Tuple[str, ...]) -> FileResult:
    table = build_import_table(tree.imports, tracked_modules=settings.packages)
    cfg = settings.classifier
    sightings = []
    for element in tree.elements:
        result = classify(element.tag_name, table, cfg)
        if result.in_scope:
            sightings.append((element.tag_name, result))
    outcome = FileOutcome(
        path=path,
        status="analyzed",
        warnings=warnings,
        components_found=len(sightings),
        usages=len(sightings),
    )
    return FileResult(path=path, outcome=outcome, import_table=table, sightings=sightings)


def _mutate_tree(path: str, tree, settings: Settings, warnings: Tuple[str, ...]) -> FileResult:
    table = build_import_table(tree.imports)
    cfg = settings.classifier
    edits: List[AttributeEdit] = []
    found = added = updated = skipped = 0

    for element in tree.elements:
        result = classify(element.tag_name, table, cfg)
        if not result.in_scope:
            continue
        found += 1
        attributes, merge = merge_attributes(element.attributes, settings.props, settings.update_existing)
        added += len(merge.added)
        updated += len(merge.updated)
        skipped += len(merge.skipped)
        if merge.changed:
            edits.append(AttributeEdit(element=element, attributes=attributes))

    new_source = apply_edits(tree.source, edits) if edits else None
    modified = new_source is not None and new_source != tree.source
    outcome = FileOutcome(
        path=path,
        status="modified" if modified else "unmodified",
        warnings=warnings,
        components_found=found,
        props_added=added,
        props_updated=updated,
        props_skipped=skipped,
    )
    return FileResult(
        path=path,
        outcome=outcome,
        new_source=new_source if modified else None,
        import_table=table,
    )


def process_source(path: str, source: bytes, mode: str, settings: Settings) -> FileResult:
    """
    Pure per-file step: parse, build the import table, classify every element
    and either merge directives or collect usage sightings.

    Raises ParseFailure for unparsable input.
    """
    tree = parse_source(source, dialect=dialect_for_path(path), path=path)
    warnings = tuple(f"line {a.line}: {a.message}" for a in tree.anomalies)
    if mode == MODE_ANALYZE:
        return _analyze_tree(path, tree, settings, warnings)
    if mode == MODE_ADD_PROPS:
        return _mutate_tree(path, tree, settings, warnings)
    raise ValueError(f"Unknown mode: {mode}")


def _errored(path: str, message: str) -> FileResult:
    return FileResult(path=path, outcome=FileOutcome(path=path, status="errored", message=message))


def process_file(file_path: Path, mode: str, settings: Settings, base: Optional[Path] = None) -> FileResult:
    display = relative_display_path(file_path, base)
    try:
        source = load_source(file_path)
        return process_source(display, source, mode, settings)
    except ParseFailure as e:
        return _errored(display, f"Parse error: {e.describe()}")
    except OSError as e:
        return _errored(display, f"Read error: {e}")
    except Exception as e:  # one bad file never aborts the run
        return _errored(display, f"{type(e).__name__}: {e}")


def _iter_results(
    paths: Sequence[Path],
    mode: str,
    settings: Settings,
    jobs: int,
    base: Optional[Path],
) -> Iterator[FileResult]:
    work = partial(process_file, mode=mode, settings=settings, base=base)
    if jobs <= 1 or len(paths) < 2:
        yield from map(work, paths)
        return
    # map() hands results back in input order, so folding stays deterministic
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        yield from executor.map(work, paths)


def run_add_props(
    paths: Iterable[Path],
    settings: Settings,
    write: bool = True,
    jobs: int = 1,
    base: Optional[Path] = None,
    log: Any | None = None,
) -> RunReport:
    t0 = time.time()
    started = datetime.now().isoformat(timespec="seconds")
    paths = list(paths)
    outcomes: List[FileOutcome] = []
    errors: List[ErrorRecord] = []
    counters = {
        "files_processed": 0,
        "files_modified": 0,
        "components_found": 0,
        "props_added": 0,
        "props_updated": 0,
        "props_skipped": 0,
        "files_errored": 0,
    }

    by_display = {relative_display_path(p, base): p for p in paths}
    for res in _iter_results(paths, MODE_ADD_PROPS, settings, jobs, base):
        outcome = res.outcome
        if log:
            log.info("Processing: %s", res.path)

        if outcome.status == "modified" and write:
            try:
                write_source(by_display[res.path], res.new_source)
            except OSError as e:
                outcome = FileOutcome(path=res.path, status="errored", message=f"Write error: {e}")

        if outcome.status == "errored":
            counters["files_errored"] += 1
            errors.append(ErrorRecord(path=res.path, message=outcome.message or "error"))
            if log:
                log.error("Error processing %s: %s", res.path, outcome.message)
            outcomes.append(outcome)
            continue

        counters["files_processed"] += 1
        counters["components_found"] += outcome.components_found
        counters["props_added"] += outcome.props_added
        counters["props_updated"] += outcome.props_updated
        counters["props_skipped"] += outcome.props_skipped
        if outcome.status == "modified":
            counters["files_modified"] += 1
        for w in outcome.warnings:
            errors.append(ErrorRecord(path=res.path, message=f"Import skipped, {w}"))
            if log:
                log.warning("Import skipped in %s: %s", res.path, w)
        if log:
            if outcome.status == "modified":
                log.info("%s: %s", "Modified" if write else "Would modify", res.path)
            else:
                log.info("No changes needed: %s", res.path)
        outcomes.append(outcome)

    return RunReport(
        mode=MODE_ADD_PROPS,
        files=tuple(outcomes),
        errors=tuple(errors),
        counters=counters,
        started_at=started,
        elapsed_seconds=round(time.time() - t0, 2),
    )


def run_analysis(
    paths: Iterable[Path],
    settings: Settings,
    jobs: int = 1,
    base: Optional[Path] = None,
    log: Any | None = None,
) -> Tuple[RunReport, UsageReport]:
    t0 = time.time()
    started = datetime.now().isoformat(timespec="seconds")
    paths = list(paths)
    aggregator = UsageAggregator()
    outcomes: List[FileOutcome] = []
    errors: List[ErrorRecord] = []
    processed = errored = 0

    for res in _iter_results(paths, MODE_ANALYZE, settings, jobs, base):
        if log:
            log.info("Analyzing: %s", res.path)
        outcomes.append(res.outcome)
        if res.outcome.status == "errored":
            errored += 1
            errors.append(ErrorRecord(path=res.path, message=res.outcome.message or "error"))
            if log:
                log.error("Error analyzing %s: %s", res.path, res.outcome.message)
            continue
        processed += 1
        for w in res.outcome.warnings:
            errors.append(ErrorRecord(path=res.path, message=f"Import skipped, {w}"))
            if log:
                log.warning("Import skipped in %s: %s", res.path, w)
        aggregator.fold(res.path, res.import_table, res.sightings)

    usage = aggregator.finalize(settings.high_threshold, settings.medium_threshold)
    counters = {
        "files_processed": processed,
        "files_errored": errored,
        "total_components": usage.total_components,
        "total_usages": usage.total_usages,
        "packages_tracked": len(usage.packages),
    }
    report = RunReport(
        mode=MODE_ANALYZE,
        files=tuple(outcomes),
        errors=tuple(errors),
        counters=counters,
        started_at=started,
        elapsed_seconds=round(time.time() - t0, 2),
    )
    return report, usage
