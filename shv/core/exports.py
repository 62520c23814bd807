"""Detect which top-level exports of a TypeScript file are functions."""

from __future__ import annotations

import logging
from pathlib import Path

from tree_sitter import Node

from shv.core.ast_utils import has_keyword, named_children, node_text, parse_source

logger = logging.getLogger(__name__)

# Factories commonly used to wrap handlers, e.g. `export const handler = handle(app)`
HANDLER_FACTORY_NAMES = frozenset(
    {
        "handle",
        "middleware",
        "withMiddleware",
        "createHandler",
        "wrap",
        "createAWSHandler",
    }
)

HANDLER_FACTORY_PROPERTIES = frozenset({"handle", "handler", "create", "build", "configure"})

# Member calls that build infrastructure resources rather than handlers
RESOURCE_ACCESS_MARKERS = ("sst.aws.", ".get(")

_FUNCTION_NODES = frozenset(
    {
        "arrow_function",
        "function_expression",
        "function",
        "generator_function",
        "method_definition",
    }
)

_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})


class ExportScanner:
    """Collects the names of function-valued top-level exports."""

    def exported_names(self, source_text: str) -> list[str]:
        """Exported function names in declaration order, without duplicates."""
        source = source_text.encode("utf-8")
        tree = parse_source(source)

        names: list[str] = []
        for statement in tree.root_node.children:
            if statement.type == "export_statement":
                names.extend(self._names_from_export(statement, source))

        return list(dict.fromkeys(names))

    def scan_file(self, file_path: Path) -> list[str]:
        """Read a file and return its exported function names ([] if unreadable)."""
        try:
            source_text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {file_path}: {e}")
            return []
        return self.exported_names(source_text)

    def _names_from_export(self, statement: Node, source: bytes) -> list[str]:
        is_default = has_keyword(statement, "default")
        declaration = statement.child_by_field_name("declaration")

        if declaration is not None:
            if declaration.type in _FUNCTION_DECLARATIONS:
                if is_default:
                    return ["default"]
                name = declaration.child_by_field_name("name")
                return [node_text(name, source)] if name is not None else []
            if declaration.type in ("lexical_declaration", "variable_declaration"):
                return self._function_declarators(declaration, source)
            # `export default class ...` still occupies the default slot
            return ["default"] if is_default else []

        if is_default or has_keyword(statement, "="):
            return ["default"]

        for child in named_children(statement):
            if child.type == "export_clause":
                if has_keyword(statement, "type"):
                    return []
                return self._clause_names(child, source)
        return []

    def _function_declarators(self, declaration: Node, source: bytes) -> list[str]:
        names = []
        for declarator in named_children(declaration):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is None or value is None or name.type != "identifier":
                continue
            if self.is_function_valued(value, source):
                names.append(node_text(name, source))
        return names

    def _clause_names(self, clause: Node, source: bytes) -> list[str]:
        names = []
        for specifier in named_children(clause):
            if specifier.type != "export_specifier" or has_keyword(specifier, "type"):
                continue
            exported = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
            if exported is not None:
                names.append(node_text(exported, source))
        return names

    def is_function_valued(self, node: Node, source: bytes) -> bool:
        """Heuristic: does this initializer evaluate to something callable?"""
        if node.type in _FUNCTION_NODES:
            return True

        if node.type == "call_expression":
            return self._is_handler_factory_call(node, source)

        if node.type == "await_expression":
            inner = named_children(node)
            if inner and inner[0].type == "call_expression":
                return self._is_handler_factory_call(inner[0], source)
            return False

        # new expressions, ternaries and anything else are not treated as functions
        return False

    def _is_handler_factory_call(self, call: Node, source: bytes) -> bool:
        callee = call.child_by_field_name("function")
        if callee is None:
            return False

        if callee.type == "identifier":
            return node_text(callee, source) in HANDLER_FACTORY_NAMES

        if callee.type == "member_expression":
            prop = callee.child_by_field_name("property")
            if prop is None or node_text(prop, source) not in HANDLER_FACTORY_PROPERTIES:
                return False
            callee_text = node_text(callee, source)
            return not any(marker in callee_text for marker in RESOURCE_ACCESS_MARKERS)

        return False
