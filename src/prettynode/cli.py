import asyncio
from typing import Optional

import click

from prettynode.errors import InvalidRequestError, SymbolNotFoundError
from prettynode.explorer import explore_package
from prettynode.formatters import create_formatter
from prettynode.helpers import parse_package_spec
from prettynode.locator import LocalPackageLocator
from prettynode.logger import configure_logging
from prettynode.models import ModuleInfo
from prettynode.settings import PrettyNodeSettings, load_settings
from prettynode.signature import extract_signature

OUTPUT_CHOICES = click.Choice(["pretty", "json"], case_sensitive=False)


def _settings(debug: Optional[bool]) -> PrettyNodeSettings:
    settings = load_settings(debug=debug)
    configure_logging(settings.debug)
    return settings


def _interrupted(ctx: click.Context) -> None:
    click.echo("\nReceived interrupt signal, exiting...", err=True)
    ctx.exit(130)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="pretty-node")
def cli() -> None:
    """A Node.js package tree explorer for LLMs (and humans)."""


@cli.command()
@click.argument("package")
@click.option(
    "--depth",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum depth to explore (default: 2).",
)
@click.option(
    "-q", "--quiet", is_flag=True, help="Suppress warnings and informational messages."
)
@click.option(
    "-o", "--output", type=OUTPUT_CHOICES, default="pretty", help="Output format."
)
@click.option("--debug/--no-debug", default=None, help="Enable debug logging.")
@click.pass_context
def tree(
    ctx: click.Context,
    package: str,
    depth: Optional[int],
    quiet: bool,
    output: str,
    debug: Optional[bool],
) -> None:
    """Display Node.js package tree structure."""
    if ":" in package:
        click.echo(
            f"Error: Invalid module path '{package}' for tree command. Module paths "
            f"with ':' syntax are for signatures. Use 'pretty-node sig {package}' "
            "instead.",
            err=True,
        )
        ctx.exit(1)

    settings = _settings(debug)
    formatter = create_formatter(output, settings)
    max_depth = depth or settings.default_depth
    name, version = parse_package_spec(package)

    locator = LocalPackageLocator(settings.search_paths)
    package_root = locator.locate(name, version)
    if package_root is None:
        if not quiet:
            click.echo(
                f"⚠️  Package '{package}' not found or could not be explored", err=True
            )
        module = ModuleInfo(name=name)
    else:
        if not quiet:
            click.echo(f"📦 Using locally installed {name}", err=True)
        try:
            module = asyncio.run(
                explore_package(package_root, name, max_depth, settings)
            )
        except KeyboardInterrupt:
            _interrupted(ctx)
            return

    click.echo(formatter.format_tree(module))


@cli.command()
@click.argument("import_path")
@click.option("-q", "--quiet", is_flag=True, help="Suppress informational messages.")
@click.option(
    "-o", "--output", type=OUTPUT_CHOICES, default="pretty", help="Output format."
)
@click.option("--debug/--no-debug", default=None, help="Enable debug logging.")
@click.pass_context
def sig(
    ctx: click.Context,
    import_path: str,
    quiet: bool,
    output: str,
    debug: Optional[bool],
) -> None:
    """Display function/class signature (e.g. 'express:Router')."""
    settings = _settings(debug)
    formatter = create_formatter(output, settings)

    try:
        signature = asyncio.run(extract_signature(import_path, settings))
    except KeyboardInterrupt:
        _interrupted(ctx)
        return
    except InvalidRequestError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
        return
    except SymbolNotFoundError as exc:
        if not quiet:
            click.echo(f"⚠️  {exc}", err=True)
        click.echo(formatter.format_signature_not_available(exc.symbol_name))
        return

    click.echo(formatter.format_signature(signature))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
