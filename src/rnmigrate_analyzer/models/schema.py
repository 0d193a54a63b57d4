from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

IGNORED = "ignored"
IN_SCOPE = "in_scope"
OUT_OF_SCOPE = "out_of_scope"

DIRECT_NAME = "direct-name"
IMPORT_PROVENANCE = "import-provenance"


@dataclass(frozen=True)
class ImportRecord:
    module_path: str
    bound_names: FrozenSet[str]
    line: int = 0


ImportTable = Dict[str, List[ImportRecord]]


@dataclass(frozen=True)
class ClassificationResult:
    kind: str
    match_kind: Optional[str] = None
    source_module: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def ignored(cls) -> "ClassificationResult":
        return cls(kind=IGNORED, reason="built-in")

    @classmethod
    def direct(cls) -> "ClassificationResult":
        return cls(kind=IN_SCOPE, match_kind=DIRECT_NAME)

    @classmethod
    def provenance(cls, module_path: str) -> "ClassificationResult":
        return cls(kind=IN_SCOPE, match_kind=IMPORT_PROVENANCE, source_module=module_path)

    @classmethod
    def out_of_scope(cls) -> "ClassificationResult":
        return cls(kind=OUT_OF_SCOPE)

    @property
    def in_scope(self) -> bool:
        return self.kind == IN_SCOPE


@dataclass(frozen=True)
class AttributeDirective:
    name: str
    value: str
    kind: str = "string"  # string|expression


@dataclass(frozen=True)
class AttributeValue:
    kind: str  # string|expression|element
    text: str  # source text, quotes/braces included

    @property
    def literal(self) -> Optional[str]:
        if self.kind != "string" or len(self.text) < 2:
            return None
        return self.text[1:-1]


@dataclass(frozen=True)
class Attribute:
    name: Optional[str]  # None for {...spread}
    value: Optional[AttributeValue] = None  # None for boolean shorthand
    span: Optional[Tuple[int, int]] = None  # byte range in the original source

    @property
    def is_spread(self) -> bool:
        return self.name is None

    @property
    def sort_key(self) -> str:
        return self.name or ""

    def render(self) -> str:
        if self.name is None:
            return self.value.text if self.value else ""
        if self.value is None:
            return self.name
        return f"{self.name}={self.value.text}"


@dataclass(frozen=True)
class MergeOutcome:
    added: FrozenSet[str] = frozenset()
    updated: FrozenSet[str] = frozenset()
    skipped: FrozenSet[str] = frozenset()
    unchanged: FrozenSet[str] = frozenset()
    changed: bool = False


@dataclass
class ComponentUsageRecord:
    name: str
    total_usages: int = 0
    per_file: Dict[str, int] = field(default_factory=dict)
    source_modules: Set[str] = field(default_factory=set)
    priority: str = "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total_usages": self.total_usages,
            "priority": self.priority,
            "packages": sorted(self.source_modules),
            "files": dict(self.per_file),
        }


@dataclass(frozen=True)
class FileUsage:
    path: str
    component_usage: Dict[str, int]
    total_usages: int
    imports: Tuple[ImportRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "total_usages": self.total_usages,
            "component_usage": dict(self.component_usage),
            "imports": [
                {"source": rec.module_path, "components": sorted(rec.bound_names)}
                for rec in self.imports
            ],
        }


@dataclass(frozen=True)
class UsageReport:
    components: Tuple[ComponentUsageRecord, ...]
    files: Tuple[FileUsage, ...]
    package_imports: Dict[str, List[str]]
    packages: Tuple[str, ...]

    @property
    def total_components(self) -> int:
        return len(self.components)

    @property
    def total_usages(self) -> int:
        return sum(c.total_usages for c in self.components)


@dataclass(frozen=True)
class ErrorRecord:
    path: str
    message: str


@dataclass(frozen=True)
class FileOutcome:
    path: str
    status: str  # modified|unmodified|analyzed|errored
    message: Optional[str] = None
    warnings: Tuple[str, ...] = ()
    components_found: int = 0
    props_added: int = 0
    props_updated: int = 0
    props_skipped: int = 0
    usages: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "status": self.status,
            "message": self.message,
            "warnings": list(self.warnings),
            "components_found": self.components_found,
            "props_added": self.props_added,
            "props_updated": self.props_updated,
            "props_skipped": self.props_skipped,
            "usages": self.usages,
        }


@dataclass(frozen=True)
class RunReport:
    mode: str  # add-props|analyze
    files: Tuple[FileOutcome, ...]
    errors: Tuple[ErrorRecord, ...]
    counters: Mapping[str, int]
    started_at: str
    elapsed_seconds: float = 0.0

    @property
    def files_processed(self) -> int:
        return sum(1 for f in self.files if f.status != "errored")

    @property
    def files_modified(self) -> int:
        return sum(1 for f in self.files if f.status == "modified")

    @property
    def files_errored(self) -> int:
        return sum(1 for f in self.files if f.status == "errored")

    def outcome_for(self, path: str) -> Optional[FileOutcome]:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "started_at": self.started_at,
            "elapsed_seconds": self.elapsed_seconds,
            "counters": dict(self.counters),
            "files": [f.to_dict() for f in self.files],
            "errors": [{"path": e.path, "message": e.message} for e in self.errors],
        }
