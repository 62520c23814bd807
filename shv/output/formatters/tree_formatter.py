"""Tree formatter for rich terminal output."""

import os
from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from shv.core.models import DefinitionTarget, HandlerInfo, HandlerUsage, UsageStatistics, ValidationError, ValidationResult
from shv.output.formatters.protocols import BaseFormatter

console = Console()


def _display_path(file_path: str | Path, project_root: Path) -> str:
    try:
        return Path(os.path.relpath(file_path, project_root)).as_posix()
    except ValueError:
        return str(file_path)


def _error_node(parent: Tree, error: ValidationError) -> None:
    label = Text("❌ ", style="red")
    label.append(error.message, style="red")
    if error.line is not None:
        label.append(f" (line {error.line})", style="grey50")
    node = parent.add(label)
    if error.suggestions:
        node.add(Text(f"💡 Suggestions: {', '.join(error.suggestions)}", style="grey50"))


class TreeFormatter(BaseFormatter):
    """Print results to the terminal as rich trees."""

    def format_validation(self, result: ValidationResult, project_root: Path) -> str:
        if result.is_valid:
            console.print("[green]✅ All handler references are valid![/green]")
        else:
            errors_by_file: dict[str, list[ValidationError]] = defaultdict(list)
            for error in result.errors:
                errors_by_file[error.file_path].append(error)

            root_tree = Tree(
                Text(f"❌ Found {len(result.errors)} error(s)", style="bold red"),
                guide_style="dim",
            )
            for file_path, errors in errors_by_file.items():
                parent = root_tree
                if file_path:
                    parent = root_tree.add(
                        Text(f"📄 {_display_path(file_path, project_root)}", style="bold yellow"),
                        guide_style="dim",
                    )
                for error in errors:
                    _error_node(parent, error)
            console.print(root_tree)

        if result.warnings:
            warning_tree = Tree(
                Text(f"⚠️  Found {len(result.warnings)} warning(s)", style="bold yellow"),
                guide_style="dim",
            )
            for warning in result.warnings:
                warning_tree.add(Text(warning.message, style="yellow"))
            console.print(warning_tree)
        return ""

    def format_handlers(self, handlers: list[HandlerInfo], project_root: Path) -> str:
        root_tree = Tree(
            Text(f"📁 Found {len(handlers)} handler file(s)", style="bold blue"),
            guide_style="dim",
        )
        for handler in handlers:
            file_node = root_tree.add(Text(f"{handler.relative_path}.ts", style="bold green"), guide_style="dim")
            for name in handler.exported_functions:
                file_node.add(Text(name, style="magenta"))
        console.print(root_tree)
        return ""

    def format_file_errors(self, errors: list[ValidationError], file_path: Path, project_root: Path) -> str:
        display = _display_path(file_path, project_root)
        if not errors:
            console.print(Text(f"✅ {display} is valid!", style="green"))
            return ""

        root_tree = Tree(Text(f"❌ Found {len(errors)} error(s) in {display}", style="bold red"), guide_style="dim")
        for error in errors:
            _error_node(root_tree, error)
        console.print(root_tree)
        return ""

    def format_statistics(self, stats: UsageStatistics, project_root: Path) -> str:
        console.print(Text(f"📊 Handler usage statistics for: {project_root}", style="blue"))
        console.print("\n[green]📋 Summary:[/green]")
        console.print(f"   Total handlers: {stats.total_handlers}")
        console.print(f"   Total usages: {stats.total_usages}")
        average = stats.total_usages / max(stats.total_handlers, 1)
        console.print(f"   Average usage per handler: {average:.1f}")

        if stats.most_used_handlers:
            most_used = Tree(Text("🔥 Most used handlers", style="cyan"), guide_style="dim")
            for usage in stats.most_used_handlers[:5]:
                label = Text(f"{usage.handler_path} ", style="white")
                noun = "usage" if usage.usage_count == 1 else "usages"
                label.append(f"({usage.usage_count} {noun})", style="green")
                most_used.add(label)
            console.print(most_used)

        if stats.unused_handlers:
            unused = Tree(Text("⚠️  Unused handlers", style="yellow"), guide_style="dim")
            for handler_path in stats.unused_handlers[:10]:
                unused.add(Text(handler_path, style="grey50"))
            if len(stats.unused_handlers) > 10:
                unused.add(Text(f"... and {len(stats.unused_handlers) - 10} more", style="grey50"))
            console.print(unused)

        console.print("[blue]💡 Tip: Use --handler <path> to see detailed usage for a specific handler[/blue]")
        return ""

    def format_usage(self, usage: HandlerUsage) -> str:
        root_tree = Tree(Text(f"📊 Statistics for handler: {usage.handler_path}", style="bold blue"), guide_style="dim")
        root_tree.add(Text(f"🔢 Usage count: {usage.usage_count}", style="green"))
        if usage.locations:
            used_in = root_tree.add(Text("📍 Used in", style="cyan"), guide_style="dim")
            for location in usage.locations:
                label = Text(f"{location.file_path}:{location.line}:{location.column}", style="grey50")
                label.append(f" - {location.context_info}", style="white")
                used_in.add(label)
        console.print(root_tree)
        return ""

    def format_definition(self, target: DefinitionTarget) -> str:
        label = Text(f"📍 {target.handler_path} ", style="bold green")
        label.append(f"{target.file_path}:{target.line}:{target.column}", style="grey50")
        console.print(label)
        return ""
