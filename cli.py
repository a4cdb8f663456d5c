#!/usr/bin/env python3
"""
Service Map CLI

A tool for scanning service projects for module user commands, emitted
messages and the types they reference, and exporting the resulting module
catalog in various formats.
"""

import argparse
import logging
import sys
from pathlib import Path

from scanner.builder import build_catalog
from scanner.config import ConfigError, load_config
from scanner.errors import AnalysisError
from exporters import to_ascii, to_json, to_yaml


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="servicemap",
        description="Scan a service project for module commands and messages and export its catalog.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  servicemap .                              # Scan current directory, JSON output
  servicemap ./server -f ascii              # Console tree for a project
  servicemap . -f ascii --ascii-style=ascii # Pure ASCII (no Unicode)
  servicemap . -f yaml -o catalog.yaml      # YAML output to file
  servicemap . --config servicemap.toml     # Settings from a config file
  servicemap . --skip-context-parameter     # Omit the state parameter
        """,
    )

    # Positional arguments
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Project root directory (default: current directory)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "yaml", "ascii"],
        default="json",
        help="Output format (default: json)",
    )

    # ASCII-specific options
    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="ASCII output style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    # Analysis options
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration file (.toml, .yaml, .yml or .json); "
             "default: [tool.servicemap] in <root>/pyproject.toml",
    )

    parser.add_argument(
        "--module-root",
        type=str,
        default=None,
        help="Directory holding the modules, relative to root (default: modules)",
    )

    parser.add_argument(
        "--commands-dir",
        type=str,
        default=None,
        help="Directory inside each module holding command files (default: commands)",
    )

    parser.add_argument(
        "--search-path",
        nargs="+",
        default=None,
        help="Extra import roots, relative to root",
    )

    parser.add_argument(
        "--skip-context-parameter",
        action="store_true",
        default=None,
        help="Leave the first (state) parameter out of user command parameters",
    )

    parser.add_argument(
        "--target-version",
        type=str,
        default=None,
        help="Python version the sources are written for, as major.minor",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log analysis progress to stderr",
    )

    return parser.parse_args(args)


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Resolve paths
    root = Path(parsed.root).resolve()
    if not root.is_dir():
        print(f"Error: '{parsed.root}' is not a directory", file=sys.stderr)
        return 1

    # Build the catalog
    try:
        config = load_config(root, Path(parsed.config) if parsed.config else None)
        config = config.update(
            module_root=parsed.module_root,
            commands_dir=parsed.commands_dir,
            search_paths=parsed.search_path,
            skip_context_parameter=parsed.skip_context_parameter,
            target_version=parsed.target_version,
        )
        modules = build_catalog(root, config)
    except (AnalysisError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Generate output
    if parsed.format == "yaml":
        output = to_yaml(modules)
    elif parsed.format == "ascii":
        output = to_ascii(modules, style=parsed.ascii_style)
    else:  # json (default)
        output = to_json(modules)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output, encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
