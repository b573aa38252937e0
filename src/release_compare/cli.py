"""CLI entry point for release-compare."""

import logging
import sys
from typing import Optional

import click

from release_compare import __version__


def configure_logging(level: str, log_file: Optional[str]) -> None:
    """Route logs to a file, or to the Textual devtools console."""
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        from textual.logging import TextualHandler

        handler = TextualHandler()
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)


@click.command()
@click.option("--repo", default="", help="GitHub repository to compare releases from. Format: owner/repo")
@click.option(
    "--token",
    envvar=["GITHUB_TOKEN", "GH_TOKEN"],
    default="",
    help="GitHub token to use for API requests",
)
@click.option("--from", "from_tag", default="", help="Base release to compare")
@click.option("--to", "to_tag", default="", help="Release to compare to")
@click.option("--ignore", default="", help="Regex to ignore releases names from the analysis")
@click.option(
    "--output",
    default="releases",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory to extract releases to",
)
@click.option("--remove", is_flag=True, help="Remove the output directory after the analysis")
@click.option("--max-pages", default=10, show_default=True, type=click.IntRange(min=1), help="Maximum release pages to request")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Write logs to this file")
@click.option(
    "--log-level",
    default="warning",
    show_default=True,
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
)
@click.version_option(__version__, prog_name="release-compare")
def main(
    repo: str,
    token: str,
    from_tag: str,
    to_tag: str,
    ignore: str,
    output: str,
    remove: bool,
    max_pages: int,
    log_file: Optional[str],
    log_level: str,
) -> None:
    """Compare lines of code across the releases of an npm package."""
    configure_logging(log_level, log_file)

    from release_compare.app import ReleaseCompareApp
    from release_compare.models import RunConfig

    config = RunConfig(
        repo=repo,
        token=token or None,
        from_tag=from_tag,
        to_tag=to_tag,
        ignore=ignore,
        output_dir=output,
        remove_after=remove,
        max_pages=max_pages,
    )
    app = ReleaseCompareApp(config)
    app.run()
    sys.exit(app.return_code or 0)


def run() -> None:
    """Console-script wrapper that loads ``.env`` first (e.g. GITHUB_TOKEN)."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


if __name__ == "__main__":
    run()
