from __future__ import annotations

import json
from typing import Iterable, List, Optional, Sequence, Tuple

from ...models.schema import Attribute, AttributeDirective, AttributeValue, MergeOutcome


def _string_literal(value: str, quote: str = '"') -> Optional[str]:
    # JSX string attributes have no escapes
    if "\n" in value:
        return None
    if quote not in value:
        return f"{quote}{value}{quote}"
    other = "'" if quote == '"' else '"'
    if other not in value:
        return f"{other}{value}{other}"
    return None


def render_directive_value(directive: AttributeDirective, existing: Optional[AttributeValue] = None) -> AttributeValue:
    if directive.kind == "expression":
        return AttributeValue("expression", "{" + directive.value + "}")

    if existing is not None and existing.kind == "expression":
        return AttributeValue("expression", "{" + json.dumps(directive.value) + "}")

    quote = '"'
    if existing is not None and existing.kind == "string" and existing.text.startswith("'"):
        quote = "'"
    literal = _string_literal(directive.value, quote)
    if literal is None:
        return AttributeValue("expression", "{" + json.dumps(directive.value) + "}")
    return AttributeValue("string", literal)


def _inner(value: AttributeValue) -> str:
    return value.text[1:-1].strip()


def _same_value(existing: Optional[AttributeValue], new: AttributeValue, directive: AttributeDirective) -> bool:
    if existing is None:
        return False
    if directive.kind == "string" and existing.kind == "string":
        return existing.literal == directive.value
    if existing.kind == "expression" and new.kind == "expression":
        return _inner(existing) == _inner(new)
    return existing.text == new.text


def _find(attributes: Sequence[Attribute], name: str) -> int:
    # last occurrence wins in JSX
    for i in range(len(attributes) - 1, -1, -1):
        if attributes[i].name == name:
            return i
    return -1


def _collapse_duplicates(attributes: Sequence[Attribute]) -> List[Attribute]:
    last = {a.name: i for i, a in enumerate(attributes) if a.name is not None}
    return [a for i, a in enumerate(attributes) if a.name is None or last[a.name] == i]


def sort_attributes(attributes: Iterable[Attribute]) -> Tuple[Attribute, ...]:
    return tuple(sorted(attributes, key=lambda a: a.sort_key))


def attribute_names(attributes: Iterable[Attribute]) -> List[str]:
    return [a.name for a in attributes if a.name is not None]


def is_canonical(attributes: Sequence[Attribute]) -> bool:
    names = attribute_names(attributes)
    return all(a < b for a, b in zip(names, names[1:]))


def merge_attributes(
    attributes: Sequence[Attribute],
    directives: Iterable[AttributeDirective],
    update_existing: bool,
) -> Tuple[Tuple[Attribute, ...], MergeOutcome]:
    """
    Merge configured directives into one element's attribute list.

    Missing attributes are appended, present ones are replaced only when
    ``update_existing`` is set. Whenever something was added or updated the
    whole list comes back sorted by name with duplicate names collapsed to
    their last occurrence; otherwise the input order is kept.
    The input sequence is never modified.
    """
    current: List[Attribute] = list(attributes)
    added, updated, skipped, unchanged = set(), set(), set(), set()

    for directive in directives:
        idx = _find(current, directive.name)
        if idx < 0:
            value = render_directive_value(directive)
            current.append(Attribute(name=directive.name, value=value))
            added.add(directive.name)
            continue

        if not update_existing:
            skipped.add(directive.name)
            continue

        existing = current[idx].value
        value = render_directive_value(directive, existing)
        if _same_value(existing, value, directive):
            unchanged.add(directive.name)
            continue
        current[idx] = Attribute(name=directive.name, value=value)
        updated.add(directive.name)

    changed = bool(added or updated)
    result = sort_attributes(_collapse_duplicates(current)) if changed else tuple(attributes)
    return result, MergeOutcome(
        added=frozenset(added),
        updated=frozenset(updated),
        skipped=frozenset(skipped),
        unchanged=frozenset(unchanged),
        changed=changed,
    )
