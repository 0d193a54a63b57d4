from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ...models.schema import ImportRecord, ImportTable
from ..parsing.jsx_parser import ImportDeclaration


def build_import_table(
    declarations: Iterable[ImportDeclaration],
    tracked_modules: Optional[Iterable[str]] = None,
) -> ImportTable:
    """
    Map each locally bound name to the import records that bind it.

    Only named bindings take part; default and namespace imports cannot be
    matched against a package's members. With ``tracked_modules`` (analysis
    mode) declarations from other modules are dropped.
    """
    tracked = set(tracked_modules) if tracked_modules is not None else None
    table: ImportTable = {}
    for decl in declarations:
        if decl.type_only or not decl.named:
            continue
        if tracked is not None and decl.module_path not in tracked:
            continue
        rec = ImportRecord(module_path=decl.module_path, bound_names=frozenset(decl.named), line=decl.line)
        for name in decl.named:
            table.setdefault(name, []).append(rec)
    return table


def import_records(table: ImportTable) -> List[ImportRecord]:
    seen: List[ImportRecord] = []
    for records in table.values():
        for rec in records:
            if rec not in seen:
                seen.append(rec)
    return sorted(seen, key=lambda r: (r.line, r.module_path))


def tracked_imports(table: ImportTable) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for name, records in table.items():
        for rec in records:
            names = out.setdefault(rec.module_path, [])
            if name not in names:
                names.append(name)
    return {k: sorted(v) for k, v in sorted(out.items())}
