"""Command line entry points.

Commands:
    - analyze: Print the AST of a PowerShell file
    - locate: Print the innermost node at a position
    - describe: Print a node's properties with type documentation
"""

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

import click

from showast.analysis import AnalysisError, AnalysisSession, ParserService
from showast.config import ShowAstConfig
from showast.docs import DocStore, DocStoreError, format_doc_text
from showast.observability import clear_context, new_trace_id
from showast.tree import TreeNode


def _fail(stage: str, message: str) -> NoReturn:
    click.echo(f"Error: {stage}: {message}", err=True)
    sys.exit(1)


def _load_config() -> ShowAstConfig:
    try:
        return ShowAstConfig.from_env()
    except RuntimeError as e:
        _fail("config", str(e))


@contextmanager
def _open_session(config: ShowAstConfig) -> Iterator[AnalysisSession]:
    new_trace_id()
    session = AnalysisSession(ParserService(config))
    try:
        yield session
    finally:
        session.close()
        clear_context()


def _single_line(text: str) -> str:
    return " ".join(text.split())


def format_node(node: TreeNode) -> str:
    """One-line label: ``Kind [l:c-l:c] text``."""
    return f"{node.kind} [{node.location_str()}] {_single_line(node.text)}".rstrip()


def _echo_tree(node: TreeNode, max_depth: int | None) -> None:
    if max_depth is not None and node.depth > max_depth:
        return
    click.echo(f"{'  ' * node.depth}{format_node(node)}")
    for child in node.children:
        _echo_tree(child, max_depth)


def _analyze(session: AnalysisSession, path: Path) -> None:
    try:
        session.analyze_file(path)
    except AnalysisError as e:
        _fail(e.stage, e.message)


@click.group()
@click.version_option(package_name="showast")
def main() -> None:
    """Inspect the PowerShell abstract syntax tree of a script."""
    log_level_str = os.getenv("SHOWAST_LOG_LEVEL", "WARNING").upper()
    log_level = getattr(logging, log_level_str, logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the forest as JSON")
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=None,
    help="Only print nodes up to this depth (root is 0)",
)
def analyze(path: Path, as_json: bool, max_depth: int | None) -> None:
    """Print the AST of PATH."""
    config = _load_config()
    with _open_session(config) as session:
        _analyze(session, path)

        if as_json:
            payload = {
                "source": session.source_id,
                "nodes": [root.to_dict() for root in session.roots],
                "errors": [
                    {
                        "message": err.message,
                        "startLine": err.start_line,
                        "startColumn": err.start_column,
                        "endLine": err.end_line,
                        "endColumn": err.end_column,
                    }
                    for err in session.parse_errors
                ],
            }
            click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        for root in session.roots:
            _echo_tree(root, max_depth)

        errors = session.parse_errors
        if errors:
            click.echo(f"\nParse errors ({len(errors)}):")
            for err in errors:
                click.echo(f"  {err.to_display_str()}")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
def locate(path: Path, line: int, column: int) -> None:
    """Print the innermost node of PATH enclosing LINE:COLUMN."""
    config = _load_config()
    with _open_session(config) as session:
        _analyze(session, path)
        node = session.locate(line, column)
        if node is None:
            click.echo(f"No AST node found at {line}:{column}")
            return
        click.echo(format_node(node))


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
def describe(path: Path, line: int, column: int) -> None:
    """Print the node at LINE:COLUMN with its properties and documentation."""
    config = _load_config()
    try:
        docs = DocStore.from_file(config.docs_path)
    except DocStoreError as e:
        _fail("docs", str(e))

    with _open_session(config) as session:
        _analyze(session, path)
        node = session.locate(line, column)
        if node is None:
            click.echo(f"No AST node found at {line}:{column}")
            return

        click.echo(docs.display_type_name(node.kind) or node.kind)
        summary = docs.type_summary(node.kind)
        if summary:
            click.echo(f"  {format_doc_text(summary)}")
        click.echo(f"Location: {node.location_str()}")
        click.echo(f"Text: {_single_line(node.text)}")

        if not node.properties:
            return
        click.echo("\nProperties:")
        for prop in node.properties:
            type_name = docs.property_type_name(node.kind, prop.name) or prop.type_name
            click.echo(f"  {prop.name} ({type_name}) = {_single_line(prop.value)}")
            prop_summary = docs.property_summary(node.kind, prop.name)
            if prop_summary:
                click.echo(f"      {format_doc_text(prop_summary)}")


if __name__ == "__main__":
    main()
