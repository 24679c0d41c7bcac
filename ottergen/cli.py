import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax

from ottergen import __version__
from ottergen.codegen import Codegen, render_method_source
from ottergen.config import DEFAULT_FILENAMES, create_default_config, get_config
from ottergen.exceptions import OtterGenError
from ottergen.loader import DescriptionLoader

console = Console()
app = typer.Typer(
    name='ottergen',
    help='Synthesize REST API client methods from package descriptions',
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Enable debug logging')
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


@app.command()
def generate(
    config: Annotated[
        str | None,
        typer.Option(
            '--config', '-c', help='Path to configuration file (YAML or JSON)'
        ),
    ] = None,
) -> None:
    """Generate client modules from configuration.

    If no config file is specified, will look for default config files
    in the current directory or a [tool.ottergen] table in pyproject.toml.

    Examples:
        ottergen generate
        ottergen generate --config my-config.yaml
    """
    try:
        codegen_config = get_config(config)

        for document_config in codegen_config.documents:
            with Progress(
                SpinnerColumn(),
                TextColumn('[progress.description]{task.description}'),
                console=console,
            ) as progress:
                task = progress.add_task(
                    f'Generating client for {document_config.source} in {document_config.output}...',
                    total=None,
                )

                codegen = Codegen(
                    document_config, format_code=codegen_config.format_code
                )
                written = codegen.generate()

                progress.update(
                    task,
                    description=f'Code generation completed for {document_config.source}!',
                )
            console.print('[dim]Generated files:[/dim]')
            console.print(f'  - {written}')

        console.print('[green]Successfully generated code[/green]')

    except OtterGenError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)


@app.command()
def inspect(
    source: Annotated[str, typer.Argument(help='Path or URL of the package description')],
    method: Annotated[
        str, typer.Argument(help='Method to render, as Client.method or method')
    ],
) -> None:
    """Print the synthesized Python for a single method."""
    try:
        package = DescriptionLoader().load(source)
        code = render_method_source(package, method)
    except KeyError:
        console.print(f'[red]Error:[/red] method {method!r} not found')
        raise typer.Exit(1)
    except OtterGenError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)

    console.print(Syntax(code, 'python'))


@app.command()
def init(
    force: Annotated[
        bool, typer.Option('--force', '-f', help='Overwrite an existing config')
    ] = False,
) -> None:
    """Create a starter ottergen.yaml in the current directory."""
    path = Path(DEFAULT_FILENAMES[0])
    if path.exists() and not force:
        console.print(f'[yellow]{path} already exists[/yellow] (use --force)')
        raise typer.Exit(1)

    path.write_text(yaml.safe_dump(create_default_config(), sort_keys=False))
    console.print(f'[green]Created {path}[/green]')


@app.command()
def version() -> None:
    """Show the version of ottergen."""
    console.print(f'ottergen version: {__version__}')


if __name__ == '__main__':
    app()
