import logging
from pathlib import Path
from typing import Annotated, Optional

import click
import logzero
import typer
from logzero import logger
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from streamgrep.errors import GrepError
from streamgrep.grep import Grep
from streamgrep.options import GrepConfig

PROG = "streamgrep"

app = typer.Typer()


@app.command()
def cli(
    arguments: Annotated[
        Optional[list[str]],
        typer.Argument(
            metavar="PATTERN [FILE]...",
            help="PATTERN, then the files to search ('-' for standard input)",
            show_default=False,
        ),
    ] = None,
    regexp: Annotated[
        Optional[list[str]],
        typer.Option("--regexp", "-e", help="use PATTERN for matching"),
    ] = None,
    file: Annotated[
        Optional[list[Path]],
        typer.Option(
            "--file",
            "-f",
            exists=True,
            dir_okay=False,
            readable=True,
            help="obtain PATTERN from FILE",
        ),
    ] = None,
    ignore_case: Annotated[
        bool, typer.Option("--ignore-case", "-i", help="ignore case distinctions")
    ] = False,
    invert_match: Annotated[
        bool, typer.Option("--invert-match", "-v", help="select non-matching lines")
    ] = False,
    word_regexp: Annotated[
        bool,
        typer.Option(
            "--word-regexp", "-w", help="force PATTERN to match only whole words"
        ),
    ] = False,
    line_regexp: Annotated[
        bool,
        typer.Option(
            "--line-regexp", "-x", help="force PATTERN to match only whole lines"
        ),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option(
            exists=True, dir_okay=False, help="YAML file with patterns and options"
        ),
    ] = None,
    verbose: bool = False,
):
    logzero.loglevel(logging.DEBUG if verbose else logging.WARNING)
    args = arguments or []

    try:
        base_config = GrepConfig.from_yaml(config) if config else GrepConfig()
        grep_config = base_config.merge_cli(
            regexps=regexp or [],
            pattern_files=file or [],
            ignore_case=ignore_case,
            invert_match=invert_match,
            word_regexp=word_regexp,
            line_regexp=line_regexp,
        )

        # with -e, -f or configured patterns every positional argument is a file
        if grep_config.patterns or grep_config.pattern_files:
            pattern, paths = "", args
        elif args:
            pattern, paths = args[0], args[1:]
        else:
            typer.echo(f"Usage: {PROG} [OPTION]... PATTERN [FILE]...", err=True)
            raise typer.Exit(code=2)

        grep = Grep.from_config(grep_config, pattern=pattern)
    except (GrepError, ValidationError, YAMLError, OSError) as e:
        logger.error(f"failed to build the matcher: {e}")
        typer.echo(f"{PROG}: {e}", err=True)
        raise typer.Exit(code=2)

    stdout = click.get_binary_stream("stdout")
    selected = False
    status = 0

    for path in paths or ["-"]:
        try:
            if path == "-":
                for line in grep.filter(click.get_binary_stream("stdin")):
                    stdout.write(line)
                    selected = True
                continue

            with open(path, "rb") as input_file:
                for line in grep.filter(input_file):
                    stdout.write(line)
                    selected = True
        except FileNotFoundError:
            typer.echo(f"{PROG}: {path}: No such file or directory", err=True)
            status = 2
        except (GrepError, OSError) as e:
            logger.error(f"failed to read {path}: {e}")
            typer.echo(f"{PROG}: {path}: {e}", err=True)
            status = 2

    stdout.flush()
    raise typer.Exit(code=status or (0 if selected else 1))


def main():
    app()


if __name__ == "__main__":
    main()
