import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from click.core import ParameterSource

from headlink.config import (
    ConfigError,
    DEFAULT_OUTPUT,
    LinkifyConfig,
    build_config,
    load_config_file,
)
from headlink.linkify import DEFAULT_STYLE, SUFFIX_STYLES, LinkifyResult, linkify_lines, split_lines
from headlink.slugs import DEFAULT_POLICY, SLUG_POLICIES, generate_anchor

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def read_document(config: LinkifyConfig) -> str:
    """Return the raw input text for ``config``; ``-`` reads stdin.

    Raises:
        OSError: If the input file cannot be opened or read.
    """
    if config.reads_stdin:
        LOGGER.info("Reading document from stdin")
        return sys.stdin.read()
    LOGGER.info("Reading document from %s", config.input_path)
    with open(config.input_path, "r", encoding="utf-8") as f_handle:
        return f_handle.read()


def write_document(path: str, text: str) -> None:
    """Overwrite ``path`` with ``text``.

    Raises:
        OSError: If the file cannot be written.
    """
    with open(path, "w", encoding="utf-8") as f_handle:
        f_handle.write(text)
    LOGGER.info("Output written to %s", path)


def transform_document(config: LinkifyConfig, content: str) -> LinkifyResult:
    return linkify_lines(
        split_lines(content),
        style=config.suffix_style,
        policy=config.slug_policy,
        skip_linked=config.skip_linked,
    )


def process_file(config: LinkifyConfig) -> LinkifyResult:
    """Read, linkify and (when ``config.write`` is set) write one document.

    I/O errors propagate unchanged; nothing is written if the read fails.
    """
    content = read_document(config)
    result = transform_document(config, content)
    if config.write:
        write_document(config.output_path, result.text)
    return result


def _fail(error: str, hint: str, **extra: Any) -> None:
    payload: Dict[str, Any] = {"error": error, "hint": hint}
    payload.update(extra)
    click.echo(json.dumps(payload))
    sys.exit(2)


def _given(ctx: click.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


@click.group()
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
def cli(verbose):
    """Append anchor links to Markdown headings."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


@cli.command()
@click.option("--input", "input_path", help="Markdown file to read ('-' for stdin)")
@click.option("--output", "output_path", default=DEFAULT_OUTPUT, show_default=True, help="File to write the result to")
@click.option("--write/--no-write", default=True, show_default=True, help="Write the output file")
@click.option("--style", "suffix_style", type=click.Choice(sorted(SUFFIX_STYLES)), default=DEFAULT_STYLE,
              show_default=True, help="Decoration appended to each heading")
@click.option("--slug-policy", type=click.Choice(sorted(SLUG_POLICIES)), default=DEFAULT_POLICY,
              show_default=True, help="How heading text is turned into an anchor")
@click.option("--skip-linked", is_flag=True, help="Leave headings that already carry a decoration alone")
@click.option("--echo", is_flag=True, help="Print the transformed document to stdout")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="JSON config file; explicit options override its values")
@click.pass_context
def run(ctx, input_path, output_path, write, suffix_style, slug_policy, skip_linked, echo, config_path):
    """Linkify the headings of one Markdown document.

    Emits a JSON summary line and exits with code 2 on failure.
    """
    options = {
        "input_path": input_path,
        "output_path": output_path,
        "write": write,
        "suffix_style": suffix_style,
        "slug_policy": slug_policy,
        "skip_linked": skip_linked,
        "echo": echo,
    }
    file_values: Optional[Dict[str, Any]] = None
    if config_path is None:
        overrides = options
    else:
        overrides = {k: v for k, v in options.items() if _given(ctx, k)}
    try:
        if config_path is not None:
            file_values = load_config_file(config_path)
        config = build_config(file_values, overrides)
    except ConfigError as exc:
        _fail("invalid_config", str(exc))

    try:
        content = read_document(config)
    except (OSError, UnicodeDecodeError) as exc:
        _fail("read_failed", f"Cannot read input: {exc}", path=config.input_path)

    result = transform_document(config, content)

    written: Optional[str] = None
    if config.write:
        try:
            write_document(config.output_path, result.text)
        except OSError as exc:
            _fail("write_failed", f"Cannot write output: {exc}", path=config.output_path)
        written = config.output_path

    if config.echo:
        click.echo(result.text)
    click.echo(json.dumps({
        "ok": True,
        "input": config.input_path,
        "output": written,
        "lines": len(result.lines),
        "headings": result.headings,
        "skipped": result.skipped,
    }))


@cli.command()
@click.argument("text")
@click.option("--slug-policy", type=click.Choice(sorted(SLUG_POLICIES)), default=DEFAULT_POLICY,
              show_default=True, help="How heading text is turned into an anchor")
def slug(text, slug_policy):
    """Print the anchor generated for TEXT."""
    click.echo(generate_anchor(text, slug_policy))


def cli_entry():
    cli(prog_name="headlink")

if __name__ == "__main__":
    cli_entry()
