"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from QueryEngine.cli.runner import CommandRunner
from QueryEngine.config import DEFAULT_CONFIG_PATH, load_config_with_defaults

_EXISTING_FILE = click.Path(path_type=Path, dir_okay=False, exists=True)


@click.group(help="QueryEngine: evaluate search requests locally or against a remote engine.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file, merged over the defaults.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()

    default_path = DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else config_path
    ctx.obj = load_config_with_defaults(config_path, default_path=default_path)


@cli.command("search")
@click.argument("request_path", type=_EXISTING_FILE)
@click.option("--corpus", "corpus_path", type=_EXISTING_FILE, default=None, help="Evaluate locally over this corpus file.")
@click.pass_context
def search_cmd(ctx: click.Context, request_path: Path, corpus_path: Path | None) -> None:
    """Run the search request in REQUEST_PATH."""
    CommandRunner(ctx.obj).run_search(ctx.command.name, request_path, corpus_path)


@cli.command("evaluate")
@click.argument("request_path", type=_EXISTING_FILE)
@click.argument("document_path", type=_EXISTING_FILE)
@click.option("--remote", is_flag=True, help="Send the call to the configured engine.")
@click.pass_context
def evaluate_cmd(ctx: click.Context, request_path: Path, document_path: Path, remote: bool) -> None:
    """Evaluate REQUEST_PATH against the single document in DOCUMENT_PATH."""
    CommandRunner(ctx.obj).run_evaluate(ctx.command.name, request_path, document_path, remote)


@cli.command("compare")
@click.argument("request_path", type=_EXISTING_FILE)
@click.argument("ref_path", type=_EXISTING_FILE)
@click.argument("document_path", type=_EXISTING_FILE)
@click.option("--remote", is_flag=True, help="Send the call to the configured engine.")
@click.pass_context
def compare_cmd(ctx: click.Context, request_path: Path, ref_path: Path, document_path: Path, remote: bool) -> None:
    """Score DOCUMENT_PATH with REQUEST_PATH filled in from REF_PATH."""
    CommandRunner(ctx.obj).run_compare(ctx.command.name, request_path, ref_path, document_path, remote)


@cli.group("doc")
def doc_group() -> None:
    """Manage documents in the remote collection."""


@doc_group.command("add")
@click.argument("documents_path", type=_EXISTING_FILE)
@click.pass_context
def doc_add_cmd(ctx: click.Context, documents_path: Path) -> None:
    """Add every document in DOCUMENTS_PATH."""
    CommandRunner(ctx.find_root().obj).run_doc_add("doc-add", documents_path)


@doc_group.command("get")
@click.argument("field")
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def doc_get_cmd(ctx: click.Context, field: str, values: tuple[str, ...]) -> None:
    """Fetch the documents whose unique FIELD equals each of VALUES."""
    CommandRunner(ctx.find_root().obj).run_doc_get("doc-get", field, values)


@doc_group.command("delete")
@click.argument("field")
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def doc_delete_cmd(ctx: click.Context, field: str, values: tuple[str, ...]) -> None:
    """Delete the documents whose unique FIELD equals each of VALUES."""
    CommandRunner(ctx.find_root().obj).run_doc_delete("doc-delete", field, values)


@doc_group.command("patch")
@click.argument("field")
@click.argument("value")
@click.argument("meta_path", type=_EXISTING_FILE)
@click.pass_context
def doc_patch_cmd(ctx: click.Context, field: str, value: str, meta_path: Path) -> None:
    """Patch the document keyed by FIELD=VALUE with the fields in META_PATH."""
    CommandRunner(ctx.find_root().obj).run_doc_patch("doc-patch", field, value, meta_path)
