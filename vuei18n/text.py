"""Text classification, normalisation and call rendering helpers."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from .structures import Interpolation, TemplateParam, TrailingPunctuation

DIGITS_PATTERN = re.compile(r"^\d+$", re.ASCII)
QUOTES = frozenset("\"'`")
OPENING_BRACKETS = frozenset("([{")
CLOSING_BRACKETS = frozenset(")]}")

TRAILING_MARKS = ("：", ":")

JS_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

ESCAPE_SEQUENCE_PATTERN = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])"
)
SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}
LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}


def contains_ideograph(text: str) -> bool:
    """Detect whether the text contains a CJK unified ideograph."""

    for char in text:
        if 0x4E00 <= ord(char) <= 0x9FA5:
            return True
    return False


def normalize(text: str) -> str:
    """Trim the edges of a candidate, keeping interior whitespace verbatim."""

    if not text:
        return ""
    return text.strip()


def is_convertible(text: str) -> bool:
    """Return True when the text contains Chinese and is not a bare number.

    Mixed Chinese and Latin text counts as convertible; the whole string,
    English included, becomes the lookup text.
    """

    if not text or not isinstance(text, str):
        return False
    trimmed = normalize(text)
    if not trimmed:
        return False
    if DIGITS_PATTERN.match(trimmed):
        return False
    return contains_ideograph(trimmed)


def detect_trailing_punctuation(text: str) -> TrailingPunctuation:
    """Split a single trailing full-width or ASCII colon off the text."""

    if text:
        for mark in TRAILING_MARKS:
            if text.endswith(mark):
                return TrailingPunctuation(present=True, mark=mark, body=text[:-1])
    return TrailingPunctuation(present=False, mark="", body=text)


def param_name(index: int) -> str:
    return f"param{index}"


def placeholder(index: int) -> str:
    return "{" + param_name(index) + "}"


def _skip_string(text: str, index: int) -> int:
    """Index just past the quoted literal opening at `index`, or -1."""

    quote = text[index]
    index += 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
        elif char == quote:
            return index + 1
        elif quote == "`" and text.startswith("${", index):
            index = _skip_expression(text, index + 2)
            if index < 0:
                return -1
        else:
            index += 1
    return -1


def _skip_expression(text: str, index: int) -> int:
    """Index just past the `}` closing the expression starting at `index`, or -1."""

    depth = 0
    while index < len(text):
        char = text[index]
        if char in QUOTES:
            index = _skip_string(text, index)
            if index < 0:
                return -1
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                return index + 1
            depth -= 1
        index += 1
    return -1


def split_interpolations(template: str) -> Tuple[List[str], List[str]]:
    """Split template text into its static segments and `${}` expressions.

    Braces and string literals inside an expression are balanced, so
    `${fmt({ n: total })}` is one expression. An unterminated `${` is kept
    as static text.
    """

    statics: List[str] = []
    expressions: List[str] = []
    cursor = 0
    index = 0
    while index < len(template):
        if template[index] == "\\":
            index += 2
            continue
        if template.startswith("${", index):
            end = _skip_expression(template, index + 2)
            if end < 0:
                break
            statics.append(template[cursor:index])
            expressions.append(template[index + 2:end - 1])
            cursor = index = end
            continue
        index += 1
    statics.append(template[cursor:])
    return statics, expressions


def extract_interpolation(template: str) -> Interpolation:
    """Replace each `${expr}` with `{paramN}` and record the expressions.

    Convertibility is judged on the text that remains once the expressions
    are removed, so `${a}-${b}` never qualifies.
    """

    statics, expressions = split_interpolations(template)
    params = tuple(
        TemplateParam(name=param_name(index), expression=expression.strip())
        for index, expression in enumerate(expressions, start=1)
    )
    body = statics[0] + "".join(
        placeholder(index) + static for index, static in enumerate(statics[1:], start=1)
    )
    static_text = "".join(statics)
    return Interpolation(
        body=body,
        params=params,
        convertible=is_convertible(static_text),
        static_text=static_text,
    )


def decode_escapes(raw: str) -> str:
    """Turn the escape sequences of a JavaScript string body into characters."""

    def _decode(match: re.Match[str]) -> str:
        sequence = match.group(1)
        if sequence in SIMPLE_ESCAPES:
            return SIMPLE_ESCAPES[sequence]
        if sequence in LINE_CONTINUATIONS:
            return ""
        if sequence.startswith("u{"):
            return chr(int(sequence[2:-1], 16))
        if len(sequence) == 5 and sequence[0] == "u":
            return chr(int(sequence[1:], 16))
        if len(sequence) == 3 and sequence[0] == "x":
            return chr(int(sequence[1:], 16))
        if sequence[0] in "01234567":
            return chr(int(sequence, 8))
        return sequence

    decoded = ESCAPE_SEQUENCE_PATTERN.sub(_decode, raw)
    # Join escaped surrogate pairs into one code point.
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def js_string(value: str, quote: str = "'") -> str:
    """Render a JavaScript string literal using the requested quote."""

    escaped = "".join(JS_ESCAPES.get(char, char) for char in value)
    escaped = escaped.replace(quote, "\\" + quote)
    return f"{quote}{escaped}{quote}"


def has_top_level_comma(expression: str) -> bool:
    """Whether the expression is a comma sequence outside any bracket or string."""

    depth = 0
    index = 0
    while index < len(expression):
        char = expression[index]
        if char in QUOTES:
            index = _skip_string(expression, index)
            if index < 0:
                return False
            continue
        if char in OPENING_BRACKETS:
            depth += 1
        elif char in CLOSING_BRACKETS:
            depth -= 1
        elif char == "," and depth == 0:
            return True
        index += 1
    return False


def param_value(expression: str) -> str:
    # `a, b` would split into two properties inside an object literal.
    if has_top_level_comma(expression):
        return f"({expression})"
    return expression


def render_params(params: Sequence[Tuple[str, str]]) -> str:
    return "{ " + ", ".join(f"{name}: {param_value(expression)}" for name, expression in params) + " }"


def render_call(
    function: str,
    key: str,
    params: Sequence[Tuple[str, str]] = (),
    mark: str = "",
    quote: str = "'",
) -> str:
    """Render `fn('key')`, optionally with a parameter object and `+ 'mark'`."""

    arguments = [js_string(key, quote)]
    if params:
        arguments.append(render_params(params))
    call = f"{function}({', '.join(arguments)})"
    if mark:
        call = f"{call} + {js_string(mark, quote)}"
    return call
