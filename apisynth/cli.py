"""CLI entrypoints for apisynth commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .loader import SpecLoadError
from .logging import configure_logging
from .orchestrator import Orchestrator, PipelineResult


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apisynth",
        description="Merge per-service OpenAPI TypeScript clients into one client library.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Fetch every service's document, generate and merge the clients.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root holding .apisynth.yml (defaults to current directory).",
    )
    build_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Explicit configuration file (overrides PATH/.apisynth.yml).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for apisynth commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    if args.command == "build":
        try:
            result = orchestrator.run_build(args.path, config_path=args.config)
        except ConfigError as exc:
            parser.exit(1, f"apisynth build failed: {exc}\n")
        except (SpecLoadError, RuntimeError, OSError) as exc:
            parser.exit(1, f"apisynth build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Client library written to {_relativize(result.output_dir)}")
        _print_summary(result)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_summary(result: PipelineResult) -> None:
    record = result.record
    print(
        f"Merged {len(record.merged)} shared model(s), renamed {len(record.renamed)}, "
        f"collapsed {len(record.aliases)} response envelope(s), registered {len(result.registry)} enum(s)"
    )
    if result.rewrite.dangling:
        print(f"{len(result.rewrite.dangling)} import(s) point at missing files; rerun with --verbose for details")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
