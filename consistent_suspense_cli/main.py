import typer
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from consistent_suspense import Config, StreamSuspense, get_config, letter_sequence


# Create the main Typer application object
app = typer.Typer(
    name="consistent-suspense",
    help="Inspect letter ids and replay streamed HTML chunks through StreamSuspense.",
    add_completion=False
)


def load_callbacks(path: Optional[Path]) -> Dict[str, Dict[str, str]]:
    """
    Reads the markup map used by `analyze`:

        "a:a": "<script>window.AA = true;</script>"
        error:
          "a:a": "<p>Failed</p>"
    """
    if path is None:
        return {"success": {}, "error": {}}

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must contain a mapping of suspense id to markup")

    errors = data.pop("error", None) or {}
    if not isinstance(errors, dict):
        raise ValueError(f"'error' in '{path}' must be a mapping of suspense id to markup")
    return {
        "success": {str(k): str(v) for k, v in data.items()},
        "error": {str(k): str(v) for k, v in errors.items()},
    }


# --- CLI Commands ---

@app.command()
def letters(
    count: int = typer.Argument(..., min=0, help="How many letters to print."),
    start: str = typer.Option("", "--start", help="Print the letters that follow this one."),
):
    """
    Prints successive values of the letter sequence used for ids.
    """
    for letter in letter_sequence(count, start):
        typer.echo(letter)


@app.command()
def analyze(
    chunk_files: List[Path] = typer.Argument(..., help="Files holding one streamed chunk each, in stream order."),
    callbacks: Optional[Path] = typer.Option(None, "--callbacks", "-c", help="YAML map of suspense id to injected markup."),
    config: Optional[Path] = typer.Option(None, "--config", help="Alternative suspense.yaml to load."),
    debug: bool = typer.Option(False, "--debug", help="Print what the analyzer registers and resolves."),
):
    """
    Feeds every chunk through StreamSuspense and prints the chunk that would be sent.
    """
    for path in [p for p in (callbacks, config) if p is not None] + list(chunk_files):
        if not path.exists():
            typer.echo(f"❌ Error: File not found at '{path}'")
            raise typer.Exit(code=1)

    if config is not None:
        Config.reset_instance()
        get_config(config_file=str(config.resolve()), prefer_embedded=False)

    if debug:
        get_config().debug_print()

    try:
        markup = load_callbacks(callbacks)
    except (OSError, yaml.YAMLError, ValueError) as e:
        typer.echo(f"❌ Error: Could not read callbacks: {e}")
        raise typer.Exit(code=1)

    def callback(suspense_id: str, extra) -> Optional[str]:
        if isinstance(extra, str):
            return markup["error"].get(suspense_id)
        return markup["success"].get(suspense_id)

    stream = StreamSuspense.create(callback, debug=debug or None)

    for path in chunk_files:
        chunk = path.read_text(encoding="utf-8")
        result = stream.analyze(chunk)
        typer.echo(result if result is not None else chunk, nl=False)

    if stream.pending:
        typer.echo(f"\n⚠️  Unresolved slots: {', '.join(stream.pending)}", err=True)


if __name__ == "__main__":
    app()
