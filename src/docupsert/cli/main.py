"""docupsert CLI entry point."""

import logging
from typing import List, Optional

import typer

from ..client import DocumentUpserter
from ..core.config import DocUpsertConfig
from ..errors import ConfigError, DocUpsertError
from ..store.base import NotFoundError
from ..upsert import NO_CHANGE
from .common_options import parse_assignments, set_option, verbose_option
from .display import document, error, info, success, warning

app = typer.Typer(
    name="docupsert",
    help="Conflict-retrying upserts against a revisioned document store",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from . import config as config_cli

app.add_typer(config_cli.app, name="config", help="⚙️ Configure docupsert settings")


@app.callback()
def setup(ctx: typer.Context, verbose: bool = verbose_option()):
    """Configure logging before any command runs."""
    try:
        config = DocUpsertConfig.get_instance()
    except ConfigError as e:
        # 'config init --force' must still be able to replace a broken file
        if ctx.invoked_subcommand != "config":
            error(str(e))
            raise typer.Exit(1)
        config = DocUpsertConfig()

    logging.basicConfig(
        level="DEBUG" if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _get_upserter() -> DocumentUpserter:
    """Build an upserter over the configured store."""
    config = DocUpsertConfig.get_instance()
    try:
        store = config.create_store()
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)
    return DocumentUpserter(store, id_field=config.id_field, rev_field=config.rev_field)


@app.command()
def get(doc_id: str = typer.Argument(..., help="Document id")):
    """Show the current version of a document."""
    upserter = _get_upserter()
    try:
        doc = upserter.get(doc_id)
    except NotFoundError:
        error(f"Document {doc_id} not found")
        raise typer.Exit(1)
    document(doc)


@app.command()
def upsert(
    doc_id: str = typer.Argument(..., help="Document id"),
    assignments: Optional[List[str]] = set_option(),
    replace: bool = typer.Option(
        False, "--replace", help="Replace the document body instead of merging fields into it"
    ),
):
    """Merge fields into a document, creating it if needed.

    Retries automatically when another writer gets there first.

    Example:
        docupsert upsert user:42 --set name=Ada --set visits=3
    """
    fields = parse_assignments(assignments)
    upserter = _get_upserter()

    def merge(current: Optional[dict]):
        body = {} if current is None else {
            k: v for k, v in current.items() if k != upserter.rev_field
        }
        merged = {**({} if replace else body), **fields}
        merged[upserter.id_field] = doc_id
        if current is not None and merged == body:
            return NO_CHANGE
        return merged

    try:
        result = upserter.upsert(doc_id, merge)
    except DocUpsertError as e:
        error(str(e))
        raise typer.Exit(1)
    if result.updated:
        success(f"Updated {doc_id} to {result.rev}")
    else:
        info(f"{doc_id} unchanged at {result.rev}")


@app.command("put-if-absent")
def put_if_absent(
    doc_id: str = typer.Argument(..., help="Document id"),
    assignments: Optional[List[str]] = set_option(),
):
    """Create a document only if it does not exist yet."""
    fields = parse_assignments(assignments)
    try:
        result = _get_upserter().put_if_not_exists(doc_id, fields)
    except DocUpsertError as e:
        error(str(e))
        raise typer.Exit(1)
    if result.updated:
        success(f"Created {doc_id} at {result.rev}")
    else:
        warning(f"{doc_id} already exists at {result.rev}, left untouched")


@app.command("list")
def list_docs(prefix: str = typer.Argument("", help="Only ids starting with this prefix")):
    """List document ids."""
    ids = _get_upserter().store.list_ids(prefix)
    if not ids:
        info("[dim]No documents[/dim]")
    for doc_id in ids:
        info(doc_id)


@app.command()
def version():
    """Show docupsert version."""
    from .. import __version__
    info(f"docupsert version: {__version__}")


def main():
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        warning("\nInterrupted by user")
        raise typer.Exit(1)
    except Exception as e:
        error(f"Error: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    main()
