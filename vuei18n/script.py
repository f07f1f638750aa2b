"""Syntax-tree rewriting of script code with tree-sitter."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .dictionary import ConversionContext
from .errors import ErrorCategory, SourceParseError
from .structures import Resolution
from .text import decode_escapes, is_convertible, param_name, placeholder, render_call

DEFAULT_SCRIPT_FUNCTION = "$i18n.t"
DEFAULT_SCRIPT_QUOTE = '"'

Edit = Tuple[int, int, str]

TRANSLATION_FUNCTIONS = frozenset({"t", "$t", "i18n.t", "$i18n.t"})
TRANSLATION_RECEIVERS = frozenset({"i18n", "$i18n", "global"})

# Subtrees that never hold user-facing runtime text.
PRUNED_TYPES = frozenset(
    {
        "comment",
        "regex",
        "type_annotation",
        "type_alias_declaration",
        "interface_declaration",
        "enum_declaration",
        "ambient_declaration",
        "literal_type",
        "type_arguments",
        "type_parameters",
        "jsx_attribute",
    }
)
SOURCE_PARENTS = frozenset({"import_statement", "export_statement"})
# Parents whose string children are syntax rather than text.
SYNTAX_PARENTS = frozenset(
    {
        "expression_statement",
        "computed_property_name",
    }
)
KEY_FIELDS = {
    "pair": ("key",),
    "pair_pattern": ("key",),
    "method_definition": ("name",),
    "field_definition": ("property",),
    "public_field_definition": ("name",),
    "property_signature": ("name",),
    "method_signature": ("name",),
}
# Parents that bind tighter than `+` around the rewritten node.
TIGHT_PARENTS = frozenset(
    {
        "unary_expression",
        "update_expression",
        "await_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
    }
)
MULTIPLICATIVE_OPERATORS = frozenset({"*", "/", "%", "**"})


@dataclass
class ChainPart:
    """One operand of a `+` chain: literal text, or a hole when `text` is None."""

    node: Node
    parent: Node
    text: Optional[str] = None


@lru_cache(maxsize=None)
def _language(grammar: str) -> Language:
    if grammar == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if grammar == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_javascript.language())


def grammar_for(lang: Optional[str]) -> str:
    """Map a `<script lang>` value onto one of the bundled grammars."""

    value = (lang or "js").strip().lower()
    if value in {"ts", "typescript", "mts", "cts"}:
        return "typescript"
    if value == "tsx":
        return "tsx"
    return "javascript"


def language_for(lang: Optional[str]) -> Language:
    return _language(grammar_for(lang))


def unwrap(node: Node) -> Node:
    while node.type == "parenthesized_expression":
        inner = [child for child in node.named_children if child.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = first_error(child)
            if found is not None:
                return found
    return None


class ScriptRewriter:
    """Replaces Chinese literals in code with translation calls.

    Replacements are spliced into the original source at node byte ranges;
    every byte outside a rewritten node is copied through unchanged.
    """

    def __init__(
        self,
        context: ConversionContext,
        function: str = DEFAULT_SCRIPT_FUNCTION,
        quote: str = DEFAULT_SCRIPT_QUOTE,
        lang: Optional[str] = None,
    ) -> None:
        self.context = context
        self.function = function
        self.quote = quote
        self.grammar = grammar_for(lang)
        self.translation_functions = TRANSLATION_FUNCTIONS | {function}
        self._source = b""

    def rewrite(self, code: str) -> str:
        self._source = code.encode("utf-8")
        root = self._parse(self._source)
        edits = self._visit(root, None)
        if not edits:
            return code
        return self._splice(0, len(self._source), edits)

    def _parse(self, source: bytes) -> Node:
        parser = Parser(_language(self.grammar))
        tree = parser.parse(source)
        root = tree.root_node
        if root.has_error:
            error = first_error(root) or root
            row, column = error.start_point
            raise SourceParseError(
                f"Could not parse the {self.grammar} code: syntax error at "
                f"line {row + 1}, column {column + 1}."
            )
        return root

    # --- Traversal --------------------------------------------------------

    def _visit(self, node: Node, parent: Optional[Node]) -> List[Edit]:
        kind = node.type
        if kind in PRUNED_TYPES:
            return []
        if kind == "call_expression" and self._is_console_call(node):
            return []
        if kind == "string":
            return self._visit_string(node, parent)
        if kind == "template_string":
            return self._visit_template(node, parent)
        if kind == "binary_expression" and self._operator(node) == "+":
            return self._visit_concatenation(node, parent)
        return self._visit_children(node)

    def _visit_children(self, node: Node) -> List[Edit]:
        edits: List[Edit] = []
        for child in node.named_children:
            edits.extend(self._visit(child, node))
        return edits

    def _visit_string(self, node: Node, parent: Optional[Node]) -> List[Edit]:
        if self._is_protected(node, parent):
            return []
        resolution = self.context.convert(self._string_value(node))
        if resolution is None:
            return []
        return [self._replace(node, parent, resolution)]

    def _visit_template(self, node: Node, parent: Optional[Node]) -> List[Edit]:
        # A template directly under a call expression is a tagged template.
        if parent is not None and parent.type == "call_expression":
            return self._visit_children(node)
        if self._is_protected(node, parent):
            return self._visit_children(node)

        statics, holes = self._template_parts(node)
        static_text = "".join(statics)
        if not is_convertible(static_text):
            return self._visit_children(node)

        body = statics[0] + "".join(
            placeholder(index) + static for index, static in enumerate(statics[1:], start=1)
        )
        resolution = self.context.convert_template(body, static_text)
        if resolution is None:
            return self._visit_children(node)

        params = [
            (param_name(index), self._render(hole, hole_parent))
            for index, (hole, hole_parent) in enumerate(holes, start=1)
        ]
        return [self._replace(node, parent, resolution, params)]

    def _visit_concatenation(self, node: Node, parent: Optional[Node]) -> List[Edit]:
        parts = self._decompose(node)
        holes = [part for part in parts if part.text is None]
        if len(holes) == len(parts):
            return self._visit_children(node)
        if self._is_protected(node, parent):
            return self._visit_holes(holes)

        pieces: List[str] = []
        statics: List[str] = []
        params: List[Tuple[str, str]] = []
        for part in parts:
            if part.text is not None:
                pieces.append(part.text)
                statics.append(part.text)
                continue
            index = len(params) + 1
            pieces.append(placeholder(index))
            params.append((param_name(index), self._render(part.node, part.parent)))

        resolution = self.context.convert_template("".join(pieces), "".join(statics))
        if resolution is None:
            return self._visit_holes(holes)
        return [self._replace(node, parent, resolution, params)]

    def _visit_holes(self, holes: Sequence[ChainPart]) -> List[Edit]:
        edits: List[Edit] = []
        for part in holes:
            edits.extend(self._visit(part.node, part.parent))
        return edits

    # --- Concatenation chains ---------------------------------------------

    def _decompose(self, node: Node) -> List[ChainPart]:
        """Split a `+` chain into literal parts and holes, left to right.

        Nested chains are split only while they still contain a string
        literal, so `a + 1` stays one hole in `'共' + (a + 1)`.
        """

        parts: List[ChainPart] = []
        for side in ("left", "right"):
            child = node.child_by_field_name(side)
            if child is None:
                continue
            inner = unwrap(child)
            if inner.type == "string":
                parts.append(ChainPart(node=inner, parent=node, text=self._string_value(inner)))
            elif self._is_concatenation(inner) and self._contains_string(inner):
                parts.extend(self._decompose(inner))
            else:
                parts.append(ChainPart(node=child, parent=node))
        return parts

    def _contains_string(self, node: Node) -> bool:
        node = unwrap(node)
        if node.type == "string":
            return True
        if self._is_concatenation(node):
            return any(
                self._contains_string(child)
                for child in (node.child_by_field_name("left"), node.child_by_field_name("right"))
                if child is not None
            )
        return False

    def _is_concatenation(self, node: Node) -> bool:
        return node.type == "binary_expression" and self._operator(node) == "+"

    @staticmethod
    def _operator(node: Node) -> Optional[str]:
        operator = node.child_by_field_name("operator")
        return operator.type if operator is not None else None

    # --- Skip rules -------------------------------------------------------

    def _is_protected(self, node: Node, parent: Optional[Node]) -> bool:
        if parent is None:
            return False
        kind = parent.type
        if kind == "arguments":
            call = parent.parent
            if call is None or call.type != "call_expression":
                return False
            return self._is_module_load(call) or self._is_translation_call(call)
        if kind in SOURCE_PARENTS:
            return parent.child_by_field_name("source") == node
        if kind in SYNTAX_PARENTS:
            return True
        for field in KEY_FIELDS.get(kind, ()):
            if parent.child_by_field_name(field) == node:
                return True
        return False

    def _is_console_call(self, node: Node) -> bool:
        callee = node.child_by_field_name("function")
        if callee is None:
            return False
        callee = unwrap(callee)
        if callee.type != "member_expression":
            return False
        receiver = callee.child_by_field_name("object")
        if receiver is None:
            return False
        receiver = unwrap(receiver)
        return receiver.type == "identifier" and self._text(receiver) == "console"

    def _is_module_load(self, node: Node) -> bool:
        """`require(...)` and dynamic `import(...)` take module paths, not text."""

        callee = node.child_by_field_name("function")
        if callee is None:
            return False
        if callee.type == "import":
            return True
        callee = unwrap(callee)
        return callee.type == "identifier" and self._text(callee) == "require"

    def _is_translation_call(self, node: Node) -> bool:
        callee = node.child_by_field_name("function")
        name = self._dotted_name(callee) if callee is not None else None
        if name is None:
            return False
        if name in self.translation_functions:
            return True
        receiver, _, member = name.rpartition(".")
        if member == "$t":
            return True
        return member == "t" and receiver.rpartition(".")[2] in TRANSLATION_RECEIVERS

    def _dotted_name(self, node: Node) -> Optional[str]:
        node = unwrap(node)
        if node.type in {"identifier", "this", "property_identifier"}:
            return self._text(node)
        if node.type == "member_expression":
            receiver = node.child_by_field_name("object")
            member = node.child_by_field_name("property")
            if receiver is None or member is None:
                return None
            prefix = self._dotted_name(receiver)
            if prefix is None:
                return None
            return f"{prefix}.{self._text(member)}"
        return None

    # --- Output -----------------------------------------------------------

    def _replace(
        self,
        node: Node,
        parent: Optional[Node],
        resolution: Resolution,
        params: Sequence[Tuple[str, str]] = (),
    ) -> Edit:
        call = render_call(self.function, resolution.key, params, resolution.mark, quote=self.quote)
        if resolution.mark and self._binds_tighter(node, parent):
            call = f"({call})"
        return node.start_byte, node.end_byte, call

    def _binds_tighter(self, node: Node, parent: Optional[Node]) -> bool:
        """Whether `call + mark` needs parentheses in the parent expression."""

        if parent is None:
            return False
        kind = parent.type
        if kind in TIGHT_PARENTS:
            return True
        if kind in {"member_expression", "subscript_expression"}:
            return parent.child_by_field_name("object") == node
        if kind == "call_expression":
            return parent.child_by_field_name("function") == node
        if kind == "new_expression":
            return parent.child_by_field_name("constructor") == node
        if kind == "binary_expression":
            operator = self._operator(parent)
            if operator in MULTIPLICATIVE_OPERATORS:
                return True
            if operator in {"+", "-"}:
                return parent.child_by_field_name("right") == node
        return False

    def _render(self, node: Node, parent: Optional[Node]) -> str:
        """Source text of a node with its own convertible text rewritten."""

        return self._splice(node.start_byte, node.end_byte, self._visit(node, parent))

    def _splice(self, start: int, end: int, edits: Sequence[Edit]) -> str:
        pieces: List[str] = []
        cursor = start
        for edit_start, edit_end, replacement in sorted(edits):
            pieces.append(self._source[cursor:edit_start].decode("utf-8"))
            pieces.append(replacement)
            cursor = edit_end
        pieces.append(self._source[cursor:end].decode("utf-8"))
        return "".join(pieces)

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte:node.end_byte].decode("utf-8")

    def _string_value(self, node: Node) -> str:
        raw = self._source[node.start_byte + 1:node.end_byte - 1].decode("utf-8")
        return decode_escapes(raw)

    def _template_parts(self, node: Node) -> Tuple[List[str], List[Tuple[Node, Node]]]:
        """Unescaped static segments and the embedded expressions of a template."""

        statics: List[str] = []
        holes: List[Tuple[Node, Node]] = []
        cursor = node.start_byte + 1
        for child in node.named_children:
            if child.type != "template_substitution":
                continue
            statics.append(decode_escapes(self._source[cursor:child.start_byte].decode("utf-8")))
            expressions = [item for item in child.named_children if item.type != "comment"]
            if len(expressions) != 1:
                raise SourceParseError("Template substitution without a single expression.")
            holes.append((expressions[0], child))
            cursor = child.end_byte
        statics.append(decode_escapes(self._source[cursor:node.end_byte - 1].decode("utf-8")))
        return statics, holes


def convert_code_region(
    code: str,
    context: ConversionContext,
    lang: Optional[str] = None,
    function: str = DEFAULT_SCRIPT_FUNCTION,
    quote: str = DEFAULT_SCRIPT_QUOTE,
) -> str:
    """Rewrite the convertible literals of a code region.

    Any failure leaves the region exactly as it was and is recorded on the
    context instead of being raised.
    """

    if not code:
        return code
    try:
        return ScriptRewriter(context, function=function, quote=quote, lang=lang).rewrite(code)
    except SourceParseError as exc:
        context.record_error(ErrorCategory.SOURCE_PARSE, str(exc))
    except Exception as exc:  # pragma: no cover
        context.record_error(
            ErrorCategory.SOURCE_PARSE,
            f"Script conversion failed and the code was left unchanged: {exc}",
            details=repr(exc),
        )
    return code
