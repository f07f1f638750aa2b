"""Locating and reading translation dictionaries."""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict, Iterable, List, Optional, Sequence

from tree_sitter import Node, Parser

from .errors import DictionaryLoadError
from .script import first_error, language_for
from .text import decode_escapes

DEFAULT_DICTIONARY_NAMES = ("zh.js",)
SCRIPT_SUFFIXES = {".js": "js", ".mjs": "js", ".cjs": "js", ".ts": "ts", ".mts": "ts", ".cts": "ts"}
DICTIONARY_SUFFIXES = frozenset(SCRIPT_SUFFIXES) | {".json"}

TRANSPARENT_TYPES = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
    }
)
EXPORT_TARGETS = frozenset({"module.exports", "exports.default", "module.exports.default"})


def find_dictionary(
    vue_path: pathlib.Path,
    cwd: Optional[pathlib.Path] = None,
    names: Sequence[str] = DEFAULT_DICTIONARY_NAMES,
) -> Optional[pathlib.Path]:
    """Probe the usual places for a dictionary next to a component.

    The component's directory is tried first, then its parent and
    grandparent, then the working directory.
    """

    directory = vue_path.expanduser().resolve().parent
    base = (cwd or pathlib.Path.cwd()).resolve()
    candidates: List[pathlib.Path] = []
    for name in names:
        candidates.extend(
            [
                directory / name,
                directory.parent / name,
                directory.parent.parent / name,
                base / name,
            ]
        )
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_dictionary(path: pathlib.Path) -> Dict[str, Any]:
    """Read a dictionary file into nested mappings of strings."""

    suffix = path.suffix.lower()
    if suffix not in DICTIONARY_SUFFIXES:
        raise DictionaryLoadError(
            f"Unsupported dictionary type '{suffix or path.name}'. "
            "Use a .js, .mjs, .cjs, .ts or .json file."
        )
    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DictionaryLoadError(f"Could not read dictionary {path}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise DictionaryLoadError(f"Invalid JSON in dictionary {path}: {exc}") from exc
    else:
        data = StaticModuleReader(content, lang=SCRIPT_SUFFIXES[suffix]).read_export()

    return _unwrap_default(data, path)


def _unwrap_default(data: Any, path: pathlib.Path) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DictionaryLoadError(f"Dictionary {path} does not contain an object at its root.")
    inner = data.get("default")
    if isinstance(inner, dict):
        return inner
    return data


class StaticModuleReader:
    """Evaluates the exported object literal of a module without running it.

    Only literal data is understood: objects, strings, expression-free
    templates, string concatenation, and names bound at the top level to
    such values. Everything else evaluates to None and is skipped.
    """

    def __init__(self, code: str, lang: Optional[str] = None) -> None:
        self._source = code.encode("utf-8")
        tree = Parser(language_for(lang)).parse(self._source)
        self.root = tree.root_node
        if self.root.has_error:
            error = first_error(self.root) or self.root
            row, column = error.start_point
            raise DictionaryLoadError(
                f"Dictionary module has a syntax error at line {row + 1}, column {column + 1}."
            )
        self._bindings: Dict[str, Node] = {}
        self._resolving: set = set()
        for declarator in self._top_level_declarators():
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is not None and value is not None and name.type == "identifier":
                self._bindings[self._text(name)] = value

    def read_export(self) -> Any:
        exported = self._export_node()
        if exported is None:
            raise DictionaryLoadError(
                "No exported object found. Use `export default {...}` or `module.exports = {...}`."
            )
        return self.evaluate(exported)

    # --- Module structure -------------------------------------------------

    def _top_level_declarators(self) -> Iterable[Node]:
        for statement in self.root.named_children:
            if statement.type == "export_statement":
                declaration = statement.child_by_field_name("declaration")
                if declaration is None:
                    continue
                statement = declaration
            if statement.type in {"lexical_declaration", "variable_declaration"}:
                for child in statement.named_children:
                    if child.type == "variable_declarator":
                        yield child

    def _export_node(self) -> Optional[Node]:
        exported: Optional[Node] = None
        for statement in self.root.named_children:
            if statement.type == "export_statement":
                value = statement.child_by_field_name("value")
                if value is not None:
                    exported = value
            elif statement.type == "expression_statement":
                for child in statement.named_children:
                    if child.type != "assignment_expression":
                        continue
                    left = child.child_by_field_name("left")
                    if left is not None and self._text(left).replace(" ", "") in EXPORT_TARGETS:
                        exported = child.child_by_field_name("right")
        return exported

    # --- Evaluation -------------------------------------------------------

    def evaluate(self, node: Node) -> Any:
        while node.type in TRANSPARENT_TYPES:
            inner = [child for child in node.named_children if child.type != "comment"]
            if not inner:
                return None
            node = inner[0]

        kind = node.type
        if kind == "object":
            return self._evaluate_object(node)
        if kind == "string":
            return decode_escapes(self._text(node)[1:-1])
        if kind == "template_string":
            if any(child.type == "template_substitution" for child in node.named_children):
                return None
            return decode_escapes(self._text(node)[1:-1])
        if kind == "identifier":
            return self._evaluate_binding(self._text(node))
        if kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is None or operator.type != "+":
                return None
            left = self.evaluate(node.child_by_field_name("left"))
            right = self.evaluate(node.child_by_field_name("right"))
            if isinstance(left, str) and isinstance(right, str):
                return left + right
        return None

    def _evaluate_binding(self, name: str) -> Any:
        value = self._bindings.get(name)
        if value is None or name in self._resolving:
            return None
        self._resolving.add(name)
        try:
            return self.evaluate(value)
        finally:
            self._resolving.discard(name)

    def _evaluate_object(self, node: Node) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for child in node.named_children:
            if child.type == "pair":
                key = self._property_name(child.child_by_field_name("key"))
                value_node = child.child_by_field_name("value")
                if key is None or value_node is None:
                    continue
                value = self.evaluate(value_node)
                if value is not None:
                    result[key] = value
            elif child.type == "shorthand_property_identifier":
                value = self._evaluate_binding(self._text(child))
                if value is not None:
                    result[self._text(child)] = value
            elif child.type == "spread_element":
                expressions = [item for item in child.named_children if item.type != "comment"]
                spread = self.evaluate(expressions[0]) if expressions else None
                if isinstance(spread, dict):
                    result.update(spread)
        return result

    def _property_name(self, node: Optional[Node]) -> Optional[str]:
        if node is None:
            return None
        if node.type in {"property_identifier", "number"}:
            return self._text(node)
        if node.type == "string":
            return decode_escapes(self._text(node)[1:-1])
        if node.type == "computed_property_name":
            inner = [child for child in node.named_children if child.type != "comment"]
            if inner:
                value = self.evaluate(inner[0])
                if isinstance(value, str):
                    return value
        return None

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte:node.end_byte].decode("utf-8")
