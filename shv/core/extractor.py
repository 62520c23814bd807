"""Find handler path references in infrastructure code.

Five construct shapes are recognised:

1. ``new sst.aws.Function(name, { handler: <path> })``
2. ``new sst.aws.Cron(name, { function: <path> })``
3. ``<any>.subscribe(<path>, ...)``
4. ``<any>.notify(<path>)`` or ``<any>.notify({ notifications: [{ function: <path> }, ...] })``
5. ``<any>.route(<method>, <path>)``

Handler paths may be string literals or template literals. Interpolated identifiers
are resolved against string-valued ``const``/``let`` declarations anywhere in the
same file (first declaration wins, no scoping).
"""

from __future__ import annotations

import logging
import re

from tree_sitter import Node

from shv.core.ast_utils import (
    call_arguments,
    callee_method_name,
    find_property,
    is_string_like,
    iter_nodes,
    line_and_column,
    named_children,
    node_text,
    parse_source,
    property_chain,
    string_literal_value,
    template_parts,
)
from shv.core.enums import HandlerType
from shv.core.models import HandlerContext

logger = logging.getLogger(__name__)

CONSTRUCT_NAMESPACE = ("sst", "aws")

_CONSTRUCT_PROPERTIES = {
    "Function": (HandlerType.FUNCTION, "handler"),
    "Cron": (HandlerType.CRON, "function"),
}

_FUNCTION_NAME_RE = re.compile(r"new\s+sst\.aws\.Function\s*\(\s*[\"']([^\"']+)[\"']")
_CRON_NAME_RE = re.compile(r"new\s+sst\.aws\.Cron\s*\(\s*[\"']([^\"']+)[\"']")
_ROUTE_RE = re.compile(r"\.route\s*\(\s*[\"']([^\"']+)[\"']")


def describe_context(handler_type: HandlerType, line: int, lines: list[str]) -> str:
    """Best-effort label such as ``Function: GenCsv`` or ``Route: GET /``.

    Looks at the source lines around the reference for the construct name.
    """
    if handler_type == HandlerType.FUNCTION:
        found = _search_window(lines, line, 2, _FUNCTION_NAME_RE)
        return f"Function: {found}" if found else handler_type.label
    if handler_type == HandlerType.CRON:
        found = _search_window(lines, line, 2, _CRON_NAME_RE)
        return f"Cron: {found}" if found else handler_type.label
    if handler_type == HandlerType.APIGATEWAYV1:
        found = _search_window(lines, line, 1, _ROUTE_RE)
        return f"Route: {found}" if found else handler_type.label
    return handler_type.label


def _search_window(lines: list[str], line: int, radius: int, pattern: re.Pattern[str]) -> str | None:
    index = line - 1
    for i in range(max(0, index - radius), min(len(lines) - 1, index + radius) + 1):
        match = pattern.search(lines[i])
        if match:
            return match.group(1)
    return None


class HandlerContextExtractor:
    """Extracts ``HandlerContext`` records from TypeScript source text."""

    def extract_contexts(self, source_text: str, file_name: str = "<source>") -> list[HandlerContext]:
        """Return every handler reference in ``source_text`` in document order."""
        return _Extraction(source_text.encode("utf-8"), file_name).run()

    @staticmethod
    def context_at(offset: int, contexts: list[HandlerContext]) -> HandlerContext | None:
        """First context whose span contains ``offset`` (both ends inclusive)."""
        for context in contexts:
            if context.position <= offset <= context.end:
                return context
        return None


class _Extraction:
    """State for a single pass over one file."""

    def __init__(self, source: bytes, file_name: str) -> None:
        self.source = source
        self.file_name = file_name
        self.root = parse_source(source).root_node
        self._constants: dict[str, str] | None = None
        self._lines: list[str] | None = None

    def run(self) -> list[HandlerContext]:
        contexts: list[HandlerContext] = []
        for node in iter_nodes(self.root):
            if node.type == "new_expression":
                context = self._construct_context(node)
                if context is not None:
                    contexts.append(context)
            elif node.type == "call_expression":
                contexts.extend(self._method_call_contexts(node))

        contexts.sort(key=lambda c: c.position)
        logger.debug(f"Found {len(contexts)} handler contexts in {self.file_name}")
        return contexts

    # -- construct shapes ------------------------------------------------

    def _construct_context(self, node: Node) -> HandlerContext | None:
        constructor = node.child_by_field_name("constructor")
        if constructor is None:
            return None
        chain = property_chain(constructor, self.source)
        if chain is None or len(chain) != 3 or tuple(chain[:2]) != CONSTRUCT_NAMESPACE:
            return None
        if chain[2] not in _CONSTRUCT_PROPERTIES:
            return None

        handler_type, property_name = _CONSTRUCT_PROPERTIES[chain[2]]
        args = call_arguments(node)
        if len(args) < 2 or args[1].type != "object":
            return None

        prop = find_property(args[1], property_name, self.source)
        if prop is None:
            return None
        return self._make_context(handler_type, prop, prop.child_by_field_name("value"))

    def _method_call_contexts(self, node: Node) -> list[HandlerContext]:
        method = callee_method_name(node, self.source)
        if method == "subscribe":
            args = call_arguments(node)
            if not args:
                return []
            return [self._make_context(HandlerType.QUEUE, args[0], args[0])]

        if method == "notify":
            return self._notify_contexts(node)

        if method == "route":
            args = call_arguments(node)
            if len(args) < 2:
                return []
            return [self._make_context(HandlerType.APIGATEWAYV1, args[1], args[1])]

        return []

    def _notify_contexts(self, node: Node) -> list[HandlerContext]:
        args = call_arguments(node)
        if not args:
            return []

        first = args[0]
        if is_string_like(first):
            return [self._make_context(HandlerType.BUCKET, first, first)]

        notifications = find_property(first, "notifications", self.source)
        if notifications is None:
            return []
        array = notifications.child_by_field_name("value")
        if array is None or array.type != "array":
            return []

        contexts = []
        for element in named_children(array):
            prop = find_property(element, "function", self.source)
            if prop is not None:
                contexts.append(self._make_context(HandlerType.BUCKET, prop, prop.child_by_field_name("value")))
        return contexts

    def _make_context(self, handler_type: HandlerType, span: Node, value: Node | None) -> HandlerContext:
        expected_path = self.extract_string_value(value) if is_string_like(value) else None
        line, column = line_and_column(self.source, span.start_byte)
        return HandlerContext(
            type=handler_type,
            position=span.start_byte,
            end=span.end_byte,
            expected_path=expected_path,
            raw_text=node_text(span, self.source),
            line=line,
            column=column,
            context_info=describe_context(handler_type, line, self.lines),
        )

    # -- value evaluation ------------------------------------------------

    def extract_string_value(self, node: Node) -> str | None:
        if node.type == "string":
            return string_literal_value(node, self.source)

        if node.type == "template_string":
            literals, expressions = template_parts(node, self.source)
            result = literals[0]
            for expression, literal in zip(expressions, literals[1:]):
                result += self.resolve_expression(expression) or ""
                result += literal
            return result

        return None

    def resolve_expression(self, node: Node) -> str | None:
        if node.type == "string":
            return string_literal_value(node, self.source)
        if node.type == "identifier":
            return self.string_constants.get(node_text(node, self.source))
        # member access, calls and the rest are not evaluated
        return None

    @property
    def lines(self) -> list[str]:
        if self._lines is None:
            self._lines = self.source.decode("utf-8", errors="replace").split("\n")
        return self._lines

    @property
    def string_constants(self) -> dict[str, str]:
        """Name -> value of the first string-initialised ``const``/``let`` per name."""
        if self._constants is None:
            constants: dict[str, str] = {}
            for node in iter_nodes(self.root):
                if node.type != "lexical_declaration":
                    continue
                for declarator in named_children(node):
                    if declarator.type != "variable_declarator":
                        continue
                    name = declarator.child_by_field_name("name")
                    value = declarator.child_by_field_name("value")
                    if name is None or value is None or name.type != "identifier" or value.type != "string":
                        continue
                    constants.setdefault(node_text(name, self.source), string_literal_value(value, self.source))
            self._constants = constants
        return self._constants
