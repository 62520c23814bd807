"""Definition and completion lookups for editor integrations."""

from __future__ import annotations

import logging
from pathlib import Path

from tree_sitter import Node

from shv.core.ast_utils import has_keyword, line_and_column, named_children, node_text, parse_source
from shv.core.enums import HandlerType
from shv.core.models import CompletionItem, DefinitionTarget, HandlerInfo

logger = logging.getLogger(__name__)


def find_export_offset(source_text: str, function_name: str) -> int | None:
    """Byte offset of the top-level export statement that declares ``function_name``."""
    source = source_text.encode("utf-8")
    tree = parse_source(source)

    for statement in tree.root_node.children:
        if statement.type != "export_statement":
            continue
        if function_name == "default" and has_keyword(statement, "default"):
            return statement.start_byte
        if _declares(statement, function_name, source):
            return statement.start_byte
    return None


def _declares(statement: Node, function_name: str, source: bytes) -> bool:
    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        name = declaration.child_by_field_name("name")
        if name is not None and node_text(name, source) == function_name:
            return True
        for declarator in named_children(declaration):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and node_text(name, source) == function_name:
                return True
        return False

    for clause in named_children(statement):
        if clause.type != "export_clause":
            continue
        for specifier in named_children(clause):
            exported = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
            if exported is not None and node_text(exported, source) == function_name:
                return True
    return False


def resolve_handler_location(handler_path: str, handlers: list[HandlerInfo]) -> DefinitionTarget | None:
    """Where the function referenced by ``handler_path`` is exported, if it exists."""
    path_part, dot, function_name = handler_path.rpartition(".")
    if not dot or not path_part:
        return None

    handler = next((h for h in handlers if h.relative_path == path_part), None)
    if handler is None or function_name not in handler.exported_functions:
        return None

    offset = 0
    line, column = 1, 1
    try:
        source_text = Path(handler.file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read {handler.file_path}: {e}")
    else:
        found = find_export_offset(source_text, function_name)
        if found is not None:
            offset = found
            line, column = line_and_column(source_text.encode("utf-8"), found)

    return DefinitionTarget(
        handler_path=handler_path,
        file_path=handler.file_path,
        function_name=function_name,
        line=line,
        column=column,
        offset=offset,
    )


def complete_handler_paths(
    current_input: str,
    handlers: list[HandlerInfo],
    context_type: HandlerType | None = None,
) -> list[CompletionItem]:
    """Completion candidates for a partially typed handler path."""
    if "." in current_input:
        path_part = current_input.rpartition(".")[0]
        handler = next((h for h in handlers if h.relative_path == path_part), None)
        if handler is None:
            return []
        return [
            CompletionItem(
                label=name,
                insert_text=name,
                kind="function",
                detail=f"Exported function from {handler.relative_path}",
            )
            for name in handler.exported_functions
        ]

    label = context_type.label if context_type is not None else "Handler"
    needle = current_input.lower()
    return [
        CompletionItem(
            label=handler.relative_path,
            insert_text=f"{handler.relative_path}.",
            kind="file",
            detail=f"{label} handler ({len(handler.exported_functions)} exports)",
        )
        for handler in handlers
        if needle in handler.relative_path.lower()
    ]
