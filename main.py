import logging
from typing import Dict, Tuple

import click

from configuration import Configuration
from errors import PipelineError
from pipeline import PipelineOrchestrator


@click.command()
@click.argument("config", type=click.Path(exists=True))
@click.option(
    "--set",
    "overrides",
    multiple=True,
    help="Option override as KEY=VALUE (e.g. --set 'Process matching=no').",
)
@click.option(
    "--show-config/--no-show-config",
    default=True,
    help="Print the active configuration before processing.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Verbose output.")
def main(config: str, overrides: Tuple[str, ...], show_config: bool, verbose: bool):
    """Run the iris recognition pipeline described by CONFIG (a file or a directory holding process.ini)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cli_overrides: Dict[str, str] = {}
    for item in overrides:
        key, _, value = item.partition("=")
        if not key.strip():
            continue
        cli_overrides[key.strip()] = value.strip()

    try:
        configuration = Configuration()
        configuration.load(config, cli_overrides)
        if show_config:
            click.echo(configuration.describe())

        summary = PipelineOrchestrator(configuration).run()
    except PipelineError as exc:
        # Per-image failures never reach here, only fatal ones
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Processed {len(summary.processed)} images, "
               f"{len(summary.failures)} failed, {len(summary.scores)} scores")


if __name__ == "__main__":
    main()
