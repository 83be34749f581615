"""Command-line entry point: ``markfluence [FILES...]``."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, ConfigError, load_config
from .config_loader import load_config_file, load_hierarchical_config
from .config_schema import FileConfig, build_config
from .core.client import ConfluenceClient
from .diagrams.errors import DiagramError
from .diagrams.render import MermaidRenderer
from .logger import setup_logging
from .sync import SyncEngine, format_sync_report, report_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markfluence",
        description="Sync Markdown files to Confluence pages.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync every .md file in the current directory
  markfluence

  # Sync specific files into a space, under a parent page
  markfluence docs/intro.md docs/setup.md --space DOCS --parent 123456

  # Preview what would change
  markfluence docs/ --dry-run -v

Connection settings can also come from CONFLUENCE_DOMAIN, CONFLUENCE_SPACE,
CONFLUENCE_EMAIL and CONFLUENCE_API_TOKEN (a .env file is read), or from
markfluence.yml.
        """,
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Markdown files or directories to sync (default: .)",
    )
    parser.add_argument(
        "-d", "--domain", help="Confluence domain (e.g. mycompany.atlassian.net)"
    )
    parser.add_argument("-s", "--space", help="Confluence space key")
    parser.add_argument("-p", "--parent", help="Parent page ID for new pages")
    parser.add_argument("-u", "--user", help="Confluence user email")
    parser.add_argument(
        "-t",
        "--token",
        help="Confluence API token (visible in process list -- prefer "
        "CONFLUENCE_API_TOKEN)",
    )
    parser.add_argument("-c", "--config", help="Config file path")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be synced without making changes",
    )
    parser.add_argument(
        "--no-mermaid",
        dest="mermaid",
        action="store_false",
        default=None,
        help="Disable Mermaid rendering",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the sync report as JSON",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"markfluence version {__version__}",
    )
    return parser


def load_file_config(path: str | None) -> FileConfig:
    """Load ``--config PATH`` or, without one, every discovered config file."""
    raw: dict[str, Any]
    if path:
        raw = load_config_file(path)  # type: ignore[arg-type]
    else:
        raw = load_hierarchical_config()
    return build_config(raw)


def resolve_config(args: argparse.Namespace, file_config: FileConfig) -> Config:
    """Merge CLI arguments over env vars and config file values."""
    return load_config(
        domain=args.domain,
        space=args.space,
        email=args.user,
        api_token=args.token,
        parent_page_id=args.parent,
        mermaid=args.mermaid,
        dry_run=args.dry_run,
        verbose=args.verbose,
        yaml_fallbacks=file_config.confluence.fallbacks(),
    )


async def main(args: argparse.Namespace, config: Config) -> int:
    """Sync the requested files and print the report.

    Returns:
        Process exit code: 0, or 1 when any file errored.
    """
    client = ConfluenceClient(config)
    engine = SyncEngine(client, config, MermaidRenderer(config.mermaid_cli))
    report = await engine.run(args.files or ["."])

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print()
        print(format_sync_report(report))

    return EXIT_FAILURE if report.errors else EXIT_OK


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)

    # .env first so ${VAR} interpolation in config files can use it
    load_dotenv()

    try:
        file_config = load_file_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _stderr_print("Configuration error:")
        _stderr_print(str(e))
        sys.exit(EXIT_FAILURE)

    setup_logging(
        debug=args.debug,
        verbose=args.verbose or bool(file_config.confluence.verbose),
        log_file=args.log_file or file_config.logging.file,
        debug_format=args.log_format,
        level=file_config.logging.level,
    )

    try:
        config = resolve_config(args, file_config)
    except ConfigError as e:
        _stderr_print("Configuration error:")
        _stderr_print(str(e))
        sys.exit(EXIT_FAILURE)

    logger.debug(
        "Syncing to %s (space %s, dry run: %s)",
        config.domain,
        config.space,
        config.dry_run,
    )

    try:
        exit_code = asyncio.run(main(args, config))
    except DiagramError as e:
        _stderr_print("Diagram error:")
        _stderr_print(str(e))
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(EXIT_INTERRUPTED)

    sys.exit(exit_code)


if __name__ == "__main__":
    run()
