"""Pattern-driven rewriting of Vue template markup."""

from __future__ import annotations

import re
from typing import List, Optional

from .dictionary import ConversionContext
from .structures import Resolution
from .text import extract_interpolation, render_call

DEFAULT_TEMPLATE_FUNCTION = "$t"

COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")
COMMENT_PLACEHOLDER = "___COMMENT_PLACEHOLDER_{index}___"
COMMENT_PLACEHOLDER_PATTERN = re.compile(r"___COMMENT_PLACEHOLDER_(\d+)___")

QUOTED_INTERPOLATION_PATTERN = re.compile(r"\{\{\s*([\"'])([^\"']+)\1\s*\}\}")
TEMPLATE_INTERPOLATION_PATTERN = re.compile(r"\{\{\s*`([^`]*)`\s*\}\}")

# Attribute values are consumed whole so that `>` inside them never ends a tag.
TAG_PATTERN = re.compile(
    r"<(?P<closing>/)?(?P<name>[A-Za-z][\w:.-]*)(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>"
)
ATTRIBUTE_PATTERN = re.compile(
    r"(?P<lead>\s+)(?P<name>[^\s\"'>/=]+)"
    r"(?:(?P<eq>\s*=\s*)(?:\"(?P<double>[^\"]*)\"|'(?P<single>[^']*)'|(?P<bare>[^\s\"'=<>`]+)))?"
)
TEXT_SPAN_PATTERN = re.compile(r"\{\{[\s\S]*?\}\}|___COMMENT_PLACEHOLDER_\d+___")
QUOTED_VALUE_PATTERN = re.compile(r"^\s*([\"'])([^\"']+)\1\s*$")
TEMPLATE_VALUE_PATTERN = re.compile(r"^\s*`([^`]*)`\s*$")

BOUND_PREFIXES = (":", "v-bind:")
DIRECTIVE_PREFIXES = ("v-", "@", "#", ".")


class MarkupRewriter:
    """Rewrites Chinese text in a template without building a markup tree.

    The passes run in a fixed order over the whole template. Each one leaves
    the output of earlier passes alone, so running the rewriter on its own
    output changes nothing.
    """

    def __init__(self, context: ConversionContext, function: str = DEFAULT_TEMPLATE_FUNCTION) -> None:
        self.context = context
        self.function = function

    def rewrite(self, template: str) -> str:
        if not template:
            return ""

        comments: List[str] = []
        result = self._protect_comments(template, comments)
        result = QUOTED_INTERPOLATION_PATTERN.sub(self._rewrite_quoted_interpolation, result)
        result = TEMPLATE_INTERPOLATION_PATTERN.sub(self._rewrite_template_interpolation, result)
        result = self._rewrite_text_nodes(result)
        result = TAG_PATTERN.sub(self._rewrite_tag, result)
        return self._restore_comments(result, comments)

    # --- Comments ---------------------------------------------------------

    def _protect_comments(self, template: str, comments: List[str]) -> str:
        def _stash(match: re.Match[str]) -> str:
            comments.append(match.group(0))
            return COMMENT_PLACEHOLDER.format(index=len(comments) - 1)

        return COMMENT_PATTERN.sub(_stash, template)

    def _restore_comments(self, template: str, comments: List[str]) -> str:
        return COMMENT_PLACEHOLDER_PATTERN.sub(lambda match: comments[int(match.group(1))], template)

    # --- Interpolations ---------------------------------------------------

    def _rewrite_quoted_interpolation(self, match: re.Match[str]) -> str:
        resolution = self.context.convert(match.group(2))
        if resolution is None:
            return match.group(0)
        return self._wrap(self._call(resolution))

    def _rewrite_template_interpolation(self, match: re.Match[str]) -> str:
        call = self._template_call(match.group(1), quote="'")
        if call is None:
            return match.group(0)
        return self._wrap(call)

    # --- Text nodes -------------------------------------------------------

    def _rewrite_text_nodes(self, template: str) -> str:
        pieces: List[str] = []
        cursor = 0
        previous_end: Optional[int] = None
        for match in TAG_PATTERN.finditer(template):
            if previous_end is not None:
                pieces.append(template[cursor:previous_end])
                pieces.append(self._rewrite_text(template[previous_end:match.start()]))
                cursor = match.start()
            previous_end = match.end()
        pieces.append(template[cursor:])
        return "".join(pieces)

    def _rewrite_text(self, text: str) -> str:
        """Convert the literal stretches of a text node, keeping `{{ }}` as is."""

        pieces: List[str] = []
        cursor = 0
        for match in TEXT_SPAN_PATTERN.finditer(text):
            pieces.append(self._rewrite_literal(text[cursor:match.start()]))
            pieces.append(match.group(0))
            cursor = match.end()
        pieces.append(self._rewrite_literal(text[cursor:]))
        return "".join(pieces)

    def _rewrite_literal(self, text: str) -> str:
        if not text.strip():
            return text
        resolution = self.context.convert(text)
        if resolution is None:
            return text
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]
        return f"{leading}{self._wrap(self._call(resolution))}{trailing}"

    # --- Attributes -------------------------------------------------------

    def _rewrite_tag(self, match: re.Match[str]) -> str:
        if match.group("closing"):
            return match.group(0)
        attrs = ATTRIBUTE_PATTERN.sub(self._rewrite_attribute, match.group("attrs"))
        return f"<{match.group('name')}{attrs}>"

    def _rewrite_attribute(self, match: re.Match[str]) -> str:
        name = match.group("name")
        if match.group("double") is not None:
            outer, value = '"', match.group("double")
        elif match.group("single") is not None:
            outer, value = "'", match.group("single")
        else:
            return match.group(0)

        inner = "'" if outer == '"' else '"'
        if name.startswith(BOUND_PREFIXES):
            call = self._rewrite_bound_string(value, inner)
            if call is None:
                call = self._rewrite_bound_template(value, inner)
        elif name.startswith(DIRECTIVE_PREFIXES):
            return match.group(0)
        else:
            call = self._rewrite_static_value(value, inner)
            if call is not None:
                name = f":{name}"

        if call is None:
            return match.group(0)
        return f"{match.group('lead')}{name}{match.group('eq')}{outer}{call}{outer}"

    def _rewrite_static_value(self, value: str, quote: str) -> Optional[str]:
        resolution = self.context.convert(value)
        if resolution is None:
            return None
        return self._call(resolution, quote=quote)

    def _rewrite_bound_string(self, value: str, quote: str) -> Optional[str]:
        literal = QUOTED_VALUE_PATTERN.match(value)
        if not literal:
            return None
        resolution = self.context.convert(literal.group(2))
        if resolution is None:
            return None
        return self._call(resolution, quote=quote)

    def _rewrite_bound_template(self, value: str, quote: str) -> Optional[str]:
        literal = TEMPLATE_VALUE_PATTERN.match(value)
        if not literal:
            return None
        return self._template_call(literal.group(1), quote=quote)

    # --- Rendering --------------------------------------------------------

    def _template_call(self, template: str, quote: str) -> Optional[str]:
        interpolation = extract_interpolation(template)
        if not interpolation.convertible:
            return None
        resolution = self.context.convert_template(interpolation.body, interpolation.static_text)
        if resolution is None:
            return None
        params = [(param.name, param.expression) for param in interpolation.params]
        return render_call(self.function, resolution.key, params, resolution.mark, quote=quote)

    def _call(self, resolution: Resolution, quote: str = "'") -> str:
        return render_call(self.function, resolution.key, mark=resolution.mark, quote=quote)

    @staticmethod
    def _wrap(call: str) -> str:
        return "{{ " + call + " }}"


def convert_markup_region(
    template: str,
    context: ConversionContext,
    function: str = DEFAULT_TEMPLATE_FUNCTION,
) -> str:
    """Rewrite the convertible text of a template region."""

    return MarkupRewriter(context, function=function).rewrite(template)
