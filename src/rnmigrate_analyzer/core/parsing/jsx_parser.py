from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser

from ...models.errors import ParseFailure
from ...models.schema import Attribute, AttributeValue

_GRAMMARS = {
    "tsx": tstypescript.language_tsx,
    "typescript": tstypescript.language_typescript,
}

_OPENING_TAGS = ("jsx_opening_element", "jsx_self_closing_element")
_VALUE_KINDS = {
    "string": "string",
    "jsx_expression": "expression",
    "jsx_element": "element",
    "jsx_self_closing_element": "element",
    "jsx_fragment": "element",
}


@dataclass(frozen=True)
class ImportDeclaration:
    module_path: str
    named: Tuple[str, ...] = ()
    default: Optional[str] = None
    namespace: Optional[str] = None
    type_only: bool = False
    line: int = 0


@dataclass(frozen=True)
class ImportAnomaly:
    line: int
    message: str


@dataclass(frozen=True)
class JsxElement:
    tag_name: str
    line: int
    attributes: Tuple[Attribute, ...]
    insert_at: int  # byte offset right after the tag name (or its type arguments)
    attrs_span: Optional[Tuple[int, int]]  # byte range covering every attribute, None if there are none
    separator: str = " "


@dataclass
class SourceTree:
    source: bytes
    imports: List[ImportDeclaration] = field(default_factory=list)
    elements: List[JsxElement] = field(default_factory=list)
    anomalies: List[ImportAnomaly] = field(default_factory=list)


def dialect_for_path(path) -> str:
    if Path(str(path)).suffix.lower() == ".ts":
        return "typescript"
    return "tsx"


def _parser_for(dialect: str) -> Parser:
    factory = _GRAMMARS.get(dialect)
    if factory is None:
        raise ValueError(f"Unknown dialect: {dialect}")
    return Parser(Language(factory()))


def _text(source: bytes, node: Node) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _walk(root: Node) -> Iterator[Node]:
    # pre-order, so elements come out in document order
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _first_error(root: Node) -> Optional[Node]:
    for node in _walk(root):
        if (node.type == "ERROR" or node.is_missing) and not _inside_import(node):
            return node
    return None


def _unquote(raw: str) -> Optional[str]:
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        return raw[1:-1]
    return None


def _read_import(node: Node, source: bytes) -> Tuple[Optional[ImportDeclaration], Optional[str]]:
    if node.has_error:
        return None, "malformed import declaration"

    src_node = node.child_by_field_name("source")
    if src_node is None:
        if any(c.type == "import_require_clause" for c in node.children):
            # import x = require("y"); binds a namespace, never a named member
            return None, None
        return None, "import declaration without a module path"

    module_path = _unquote(_text(source, src_node))
    if module_path is None:
        return None, "import module path is not a string literal"

    type_only = any(c.type in ("type", "typeof") for c in node.children)
    named: List[str] = []
    default = None
    namespace = None

    for clause in node.children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                default = _text(source, part)
            elif part.type == "namespace_import":
                ident = [c for c in part.named_children if c.type == "identifier"]
                if ident:
                    namespace = _text(source, ident[-1])
            elif part.type == "named_imports":
                for specifier in part.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    if any(c.type in ("type", "typeof") for c in specifier.children):
                        continue
                    local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                    if local is None:
                        continue
                    name = _text(source, local)
                    if local.type == "string":
                        name = _unquote(name) or name
                    named.append(name)

    return ImportDeclaration(
        module_path=module_path,
        named=tuple(named),
        default=default,
        namespace=namespace,
        type_only=type_only,
        line=_line(node),
    ), None


def _read_attribute(node: Node, source: bytes, start: int) -> Attribute:
    span = (start, node.end_byte)
    if node.type == "jsx_expression":
        return Attribute(name=None, value=AttributeValue("expression", _text(source, node)), span=span)

    parts = [c for c in node.named_children if c.type != "comment"]
    name = _text(source, parts[0])
    value = None
    if len(parts) > 1:
        value_node = parts[-1]
        value = AttributeValue(_VALUE_KINDS.get(value_node.type, "expression"), _text(source, value_node))
    return Attribute(name=name, value=value, span=span)


def _gap_separator(gaps: List[str]) -> str:
    for gap in gaps:
        if "\n" in gap:
            return "\n" + gap.rsplit("\n", 1)[-1]
    return " "


def _read_element(node: Node, source: bytes) -> Optional[JsxElement]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None  # fragment <>...</>

    insert_at = name_node.end_byte
    attributes: List[Attribute] = []
    gaps: List[str] = []
    pending_comment: Optional[int] = None
    prev_end = insert_at

    for child in node.children:
        if child.start_byte < name_node.end_byte:
            continue
        if child.type == "type_arguments":
            insert_at = prev_end = child.end_byte
        elif child.type == "comment":
            if pending_comment is None:
                pending_comment = child.start_byte
        elif child.type in ("jsx_attribute", "jsx_expression"):
            start = pending_comment if pending_comment is not None else child.start_byte
            pending_comment = None
            gaps.append(source[prev_end:start].decode("utf-8", errors="replace"))
            attributes.append(_read_attribute(child, source, start))
            prev_end = child.end_byte

    attrs_span = None
    if attributes:
        attrs_span = (attributes[0].span[0], attributes[-1].span[1])

    # gaps between attributes describe the list's layout better than the first one
    separator = _gap_separator(gaps[1:] + gaps[:1])
    return JsxElement(
        tag_name=_text(source, name_node),
        line=_line(node),
        attributes=tuple(attributes),
        insert_at=insert_at,
        attrs_span=attrs_span,
        separator=separator,
    )


def parse_source(source: bytes, dialect: str = "tsx", path: Optional[str] = None) -> SourceTree:
    """
    Parse one JSX/TSX source file into the tree abstraction used by the core.

    Raises ParseFailure when the grammar reports any error or missing node;
    malformed import declarations alone are recorded as anomalies instead.
    """
    tree = _parser_for(dialect).parse(source)
    root = tree.root_node

    out = SourceTree(source=source)
    for child in root.children:
        if child.type != "import_statement":
            continue
        decl, problem = _read_import(child, source)
        if decl is not None:
            out.imports.append(decl)
        elif problem:
            out.anomalies.append(ImportAnomaly(line=_line(child), message=problem))

    if root.has_error:
        err = _first_error(root)
        if err is not None:
            kind = f"missing {err.type}" if err.is_missing else "syntax error"
            raise ParseFailure(path, kind, line=_line(err), column=err.start_point[1] + 1)

    for node in _walk(root):
        if node.type in _OPENING_TAGS:
            element = _read_element(node, source)
            if element is not None:
                out.elements.append(element)
    return out


def _inside_import(node: Node) -> bool:
    cur = node
    while cur is not None:
        if cur.type == "import_statement":
            return True
        cur = cur.parent
    return False
