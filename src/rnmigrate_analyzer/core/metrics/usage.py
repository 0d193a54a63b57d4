from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ...models.schema import (
    ClassificationResult,
    ComponentUsageRecord,
    FileUsage,
    ImportTable,
    UsageReport,
)
from ..imports.table import import_records, tracked_imports


def priority_for(total_usages: int, high_threshold: int, medium_threshold: int) -> str:
    if total_usages >= high_threshold:
        return "high"
    if total_usages >= medium_threshold:
        return "medium"
    return "low"


class UsageAggregator:
    """
    Run-wide usage statistics.

    One instance per run, owned by whoever drives the file loop. Per-file
    steps stay pure and hand their sightings over through ``fold``.
    """

    def __init__(self) -> None:
        self._components: Dict[str, ComponentUsageRecord] = {}
        self._files: Dict[str, Dict[str, int]] = {}
        self._file_imports: Dict[str, ImportTable] = {}
        self._package_imports: Dict[str, List[str]] = {}

    def record_imports(self, path: str, table: ImportTable) -> None:
        self._file_imports[path] = table
        self._files.setdefault(path, {})
        for module_path, names in tracked_imports(table).items():
            known = self._package_imports.setdefault(module_path, [])
            for name in names:
                if name not in known:
                    known.append(name)

    def record(self, path: str, tag_name: str, result: ClassificationResult) -> None:
        usage = self._files.setdefault(path, {})
        if not result.in_scope:
            return
        comp = self._components.get(tag_name)
        if comp is None:
            comp = ComponentUsageRecord(name=tag_name)
            self._components[tag_name] = comp
        comp.total_usages += 1
        comp.per_file[path] = comp.per_file.get(path, 0) + 1
        if result.source_module:
            comp.source_modules.add(result.source_module)

        usage[tag_name] = usage.get(tag_name, 0) + 1

    def fold(
        self,
        path: str,
        table: ImportTable,
        sightings: Iterable[Tuple[str, ClassificationResult]],
    ) -> None:
        self.record_imports(path, table)
        for tag_name, result in sightings:
            self.record(path, tag_name, result)

    def finalize(self, high_threshold: int, medium_threshold: int) -> UsageReport:
        for comp in self._components.values():
            comp.priority = priority_for(comp.total_usages, high_threshold, medium_threshold)

        components = sorted(self._components.values(), key=lambda c: (-c.total_usages, c.name))
        files = [
            FileUsage(
                path=path,
                component_usage=dict(usage),
                total_usages=sum(usage.values()),
                imports=tuple(import_records(self._file_imports.get(path, {}))),
            )
            for path, usage in self._files.items()
        ]
        # stable sort keeps discovery order among equally impacted files
        files.sort(key=lambda f: -f.total_usages)
        packages = sorted(
            set(self._package_imports)
            | {m for c in components for m in c.source_modules}
        )
        return UsageReport(
            components=tuple(components),
            files=tuple(files),
            package_imports={k: list(v) for k, v in sorted(self._package_imports.items())},
            packages=tuple(packages),
        )
