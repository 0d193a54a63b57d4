from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ...models.schema import Attribute
from .jsx_parser import JsxElement


@dataclass(frozen=True)
class AttributeEdit:
    element: JsxElement
    attributes: Tuple[Attribute, ...]

    @property
    def start(self) -> int:
        if self.element.attrs_span is None:
            return self.element.insert_at
        return self.element.attrs_span[0]

    @property
    def end(self) -> int:
        if self.element.attrs_span is None:
            return self.element.insert_at
        return self.element.attrs_span[1]


def _within(edits: Sequence[AttributeEdit], start: int, end: int) -> List[AttributeEdit]:
    return [e for e in edits if start <= e.start and e.end <= end]


def _render_attribute(source: bytes, attr: Attribute, edits: Sequence[AttributeEdit]) -> bytes:
    if attr.span is None:
        return attr.render().encode("utf-8")
    start, end = attr.span
    return _splice(source, start, end, _within(edits, start, end))


def _render_edit(source: bytes, edit: AttributeEdit, nested: Sequence[AttributeEdit]) -> bytes:
    sep = edit.element.separator.encode("utf-8")
    body = sep.join(_render_attribute(source, a, nested) for a in edit.attributes)
    if edit.element.attrs_span is None and body:
        return b" " + body
    return body


def _splice(source: bytes, start: int, end: int, edits: Sequence[AttributeEdit]) -> bytes:
    out: List[bytes] = []
    cursor = start
    i = 0
    while i < len(edits):
        edit = edits[i]
        # edits nest inside an outer edit's attribute values, they never straddle
        nested = []
        j = i + 1
        while j < len(edits) and edits[j].start < edit.end:
            nested.append(edits[j])
            j += 1
        out.append(source[cursor:edit.start])
        out.append(_render_edit(source, edit, nested))
        cursor = edit.end
        i = j
    out.append(source[cursor:end])
    return b"".join(out)


def apply_edits(source: bytes, edits: Sequence[AttributeEdit]) -> bytes:
    """Rewrite the attribute region of every edited opening tag, leaving all other bytes as they were."""
    if not edits:
        return source
    ordered = sorted(edits, key=lambda e: (e.start, -e.end))
    return _splice(source, 0, len(source), ordered)
