"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import click

from disco_to_proto3.conversion_run import (
    ConversionRequest,
    ConversionRunError,
    OutputKind,
    execute_conversion_run,
)
from disco_to_proto3.conversion_run.conversion_run_use_case import DISTRIBUTION_NAME


class CliError(Exception):
    """Custom CLI error."""


_SHARED_OPTIONS = (
    click.option(
        "--discovery-doc",
        "discovery_doc_path",
        required=False,
        type=click.Path(path_type=str),
        help="Path to the Discovery Document JSON file",
    ),
    click.option(
        "--previous-proto",
        "previous_proto_path",
        required=False,
        type=click.Path(path_type=str),
        help="Previously generated proto file whose published shape is kept",
    ),
    click.option(
        "--output",
        "output_dir",
        required=False,
        default=".",
        show_default=True,
        type=click.Path(path_type=str),
        help="Directory for the generated files",
    ),
    click.option(
        "--output-stem",
        "output_stem",
        required=False,
        help="File name stem of the generated files (defaults to the API name)",
    ),
    click.option(
        "--service-ignorelist",
        default="",
        help="Comma separated service names to leave out",
    ),
    click.option(
        "--message-ignorelist",
        default="",
        help="Comma separated message names to leave out",
    ),
    click.option(
        "--relative-link-prefix",
        default="",
        help="Prefix for relative Markdown links in descriptions",
    ),
    click.option(
        "--enums-as-strings",
        is_flag=True,
        default=False,
        help="Emit enum-typed fields as strings that point at the enum definition.",
    ),
    click.option(
        "--output-comments/--no-output-comments",
        default=True,
        show_default=True,
        help="Write element descriptions as comments",
    ),
    click.option(
        "--inline-config",
        "inline_config_path",
        required=False,
        type=click.Path(path_type=str),
        help="Inline schema naming configuration from a previous run",
    ),
    click.option(
        "--inline-config-output",
        "inline_config_output_path",
        required=False,
        type=click.Path(path_type=str),
        help="Where to write the updated inline schema configuration",
    ),
)


def _conversion_options(command: Callable[..., Any]) -> Callable[..., Any]:
    for option in reversed(_SHARED_OPTIONS):
        command = option(command)
    return command


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name=DISTRIBUTION_NAME)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug details.")
def cli(verbose: bool) -> None:
    """Discovery Document to proto3 converter."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@cli.command(name="proto")
@_conversion_options
def generate_proto(**options: Any) -> None:
    """Generate the proto3 file."""
    _run_conversion((OutputKind.PROTO,), options)


@cli.command(name="service-config")
@_conversion_options
def generate_service_config(**options: Any) -> None:
    """Generate the gRPC service config JSON."""
    _run_conversion((OutputKind.SERVICE_CONFIG,), options)


@cli.command(name="gapic-yaml")
@_conversion_options
def generate_gapic_yaml(**options: Any) -> None:
    """Generate the GAPIC yaml with long-running method settings."""
    _run_conversion((OutputKind.GAPIC_YAML,), options)


@cli.command(name="all")
@_conversion_options
def generate_all(**options: Any) -> None:
    """Generate the proto3 file, the service config and the GAPIC yaml."""
    _run_conversion(tuple(OutputKind), options)


def _run_conversion(output_kinds: tuple[OutputKind, ...], options: dict[str, Any]) -> None:
    request = ConversionRequest(
        output_dir=options["output_dir"],
        output_kinds=output_kinds,
        discovery_doc_path=options["discovery_doc_path"],
        previous_proto_path=options["previous_proto_path"],
        output_stem=options["output_stem"],
        service_ignorelist=_split_names(options["service_ignorelist"]),
        message_ignorelist=_split_names(options["message_ignorelist"]),
        relative_link_prefix=options["relative_link_prefix"],
        enums_as_strings=options["enums_as_strings"],
        output_comments=options["output_comments"],
        inline_config_path=options["inline_config_path"],
        inline_config_output_path=options["inline_config_output_path"],
    )
    try:
        outcome = execute_conversion_run(request)
    except ConversionRunError as exc:
        raise CliError(str(exc)) from exc
    for path in outcome.written_paths:
        click.echo(str(path))
    if outcome.inline_config_path is not None:
        click.echo(str(outcome.inline_config_path))


def _split_names(value: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in value.split(",") if name.strip())


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
