"""tree-sitter helpers shared by the export scanner and the context extractor."""

from __future__ import annotations

import logging
import string
from collections.abc import Iterator

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

TS_LANGUAGE = Language(tsts.language_typescript())
_parser: Parser | None = None

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def get_parser() -> Parser:
    global _parser
    if _parser is None:
        _parser = Parser(TS_LANGUAGE)
    return _parser


def parse_source(source: bytes) -> Tree:
    """Parse TypeScript source. Syntax errors are kept as ERROR nodes in the tree."""
    tree = get_parser().parse(source)
    if tree.root_node.has_error:
        logger.debug("Source contains syntax errors, continuing with partial tree")
    return tree


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield every node below ``root`` (inclusive) in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def named_children(node: Node) -> list[Node]:
    """Named children without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def call_arguments(node: Node) -> list[Node]:
    """Argument expressions of a call or new expression (empty if there are none)."""
    args = node.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return named_children(args)


def has_keyword(node: Node, keyword: str) -> bool:
    """True if ``node`` has an anonymous child token equal to ``keyword``."""
    return any(not child.is_named and child.type == keyword for child in node.children)


def member_property_name(node: Node, source: bytes) -> str | None:
    """``foo.bar`` -> ``"bar"``; None for anything that is not a member expression."""
    if node.type != "member_expression":
        return None
    prop = node.child_by_field_name("property")
    if prop is None or prop.type != "property_identifier":
        return None
    return node_text(prop, source)


def callee_method_name(node: Node, source: bytes) -> str | None:
    """Name of the method invoked by ``<expr>.name(...)`` calls."""
    if node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None:
        return None
    return member_property_name(function, source)


def property_chain(node: Node, source: bytes) -> list[str] | None:
    """Flatten ``a.b.c`` into ``["a", "b", "c"]``.

    Returns None when the chain is not made of plain identifiers.
    """
    parts: list[str] = []
    current = node
    while current.type == "member_expression":
        name = member_property_name(current, source)
        if name is None:
            return None
        parts.append(name)
        obj = current.child_by_field_name("object")
        if obj is None:
            return None
        current = obj
    if current.type != "identifier":
        return None
    parts.append(node_text(current, source))
    parts.reverse()
    return parts


def find_property(obj: Node, name: str, source: bytes) -> Node | None:
    """Find the ``name: value`` pair of an object literal.

    Only plain identifier keys count; quoted or computed keys are ignored.
    """
    if obj.type != "object":
        return None
    for child in named_children(obj):
        if child.type != "pair":
            continue
        key = child.child_by_field_name("key")
        if key is not None and key.type == "property_identifier" and node_text(key, source) == name:
            return child
    return None


def is_string_like(node: Node | None) -> bool:
    return node is not None and node.type in ("string", "template_string")


def string_literal_value(node: Node, source: bytes) -> str:
    """Cooked value of a ``string`` node."""
    raw = node_text(node, source)
    return decode_escapes(raw[1:-1])


def template_parts(node: Node, source: bytes) -> tuple[list[str], list[Node]]:
    """Split a ``template_string`` into cooked literal chunks and substitution expressions.

    There is always one more literal chunk than there are expressions.
    """
    literals: list[str] = []
    expressions: list[Node] = []
    cursor = node.start_byte + 1  # skip opening backtick
    for child in node.named_children:
        if child.type != "template_substitution":
            continue
        literals.append(decode_escapes(source[cursor : child.start_byte].decode("utf-8", errors="replace")))
        inner = named_children(child)
        # `${}` is a syntax error; the empty substitution node itself resolves to nothing
        expressions.append(inner[0] if inner else child)
        cursor = child.end_byte
    literals.append(decode_escapes(source[cursor : node.end_byte - 1].decode("utf-8", errors="replace")))
    return literals, expressions


def decode_escapes(raw: str) -> str:
    """Decode JavaScript string escape sequences."""
    if "\\" not in raw:
        return raw

    out: list[str] = []
    i = 0
    length = len(raw)
    while i < length:
        ch = raw[i]
        if ch != "\\" or i + 1 >= length:
            out.append(ch)
            i += 1
            continue

        nxt = raw[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt == "x" and i + 4 <= length:
            out.append(_decode_code_point(raw[i + 2 : i + 4], raw[i : i + 4]))
            i += 4
        elif nxt == "u" and i + 2 < length and raw[i + 2] == "{":
            close = raw.find("}", i + 3)
            if close == -1:
                out.append(raw[i:])
                break
            out.append(_decode_code_point(raw[i + 3 : close], raw[i : close + 1]))
            i = close + 1
        elif nxt == "u" and i + 6 <= length:
            out.append(_decode_code_point(raw[i + 2 : i + 6], raw[i : i + 6]))
            i += 6
        elif nxt == "\r":
            # line continuation, optionally \r\n
            i += 3 if raw[i + 2 : i + 3] == "\n" else 2
        elif nxt in ("\n", "\u2028", "\u2029"):
            i += 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def _decode_code_point(digits: str, fallback: str) -> str:
    # hex digits only, no sign, underscore or whitespace
    if not digits or any(ch not in string.hexdigits for ch in digits):
        return fallback
    try:
        return chr(int(digits, 16))
    except ValueError:
        return fallback


def line_and_column(source: bytes, byte_offset: int) -> tuple[int, int]:
    """1-based line and character column for a byte offset."""
    before = source[:byte_offset]
    line = before.count(b"\n") + 1
    line_start = before.rfind(b"\n") + 1
    column = len(before[line_start:].decode("utf-8", errors="replace")) + 1
    return line, column
