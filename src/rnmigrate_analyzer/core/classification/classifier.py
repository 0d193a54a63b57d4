from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from ...models.schema import ClassificationResult, ImportTable

BUILTIN_TAGS: FrozenSet[str] = frozenset({
    "div", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "a", "img", "ul", "ol", "li", "table", "tr", "td", "th",
    "form", "input", "button", "label", "select", "option",
    "textarea", "section", "article", "header", "footer", "nav",
    "main", "aside", "figure", "figcaption", "blockquote", "code",
    "pre", "em", "strong", "small", "mark", "del", "ins", "sub", "sup",
})


@dataclass(frozen=True)
class ClassifierConfig:
    target_components: FrozenSet[str] = frozenset()
    tracked_modules: FrozenSet[str] = frozenset()
    include_filter: FrozenSet[str] = frozenset()
    exclude_filter: FrozenSet[str] = frozenset()

    @classmethod
    def build(
        cls,
        target_components: Iterable[str] = (),
        tracked_modules: Iterable[str] = (),
        include_filter: Optional[Iterable[str]] = None,
        exclude_filter: Optional[Iterable[str]] = None,
    ) -> "ClassifierConfig":
        return cls(
            target_components=frozenset(target_components),
            tracked_modules=frozenset(tracked_modules),
            include_filter=frozenset(include_filter or ()),
            exclude_filter=frozenset(exclude_filter or ()),
        )


def is_builtin(tag_name: str) -> bool:
    # intrinsic elements are lower-case; `Input` is a component, `input` is not
    return tag_name in BUILTIN_TAGS


def classify(tag_name: str, import_table: ImportTable, config: ClassifierConfig) -> ClassificationResult:
    if not tag_name:
        return ClassificationResult.out_of_scope()
    if is_builtin(tag_name):
        return ClassificationResult.ignored()
    # a non-empty include list is exclusive
    if config.include_filter and tag_name not in config.include_filter:
        return ClassificationResult.out_of_scope()
    if tag_name in config.exclude_filter:
        return ClassificationResult.out_of_scope()
    if tag_name in config.target_components:
        return ClassificationResult.direct()
    for rec in import_table.get(tag_name, ()):
        if rec.module_path in config.tracked_modules:
            return ClassificationResult.provenance(rec.module_path)
    return ClassificationResult.out_of_scope()
