#!/usr/bin/env python3
"""
propsync - translation file synchronization CLI

Writes translation files delivered by a translation-management service
into a build project, keeping legacy .properties files sorted, escaped
and diff-stable.

Commands:
    format   - Re-write a .properties file in sorted, escaped form
    check    - Validate translation files
    deploy   - Write an extracted translation archive into the project
    status   - Write the translation status file
    formats  - List supported formats

Example Workflow:
    1. Extract the translation archive to ./download
    2. propsync deploy --source download --config propsync.yml --modules core ui
       → Returns: written files + stats
    3. propsync status --input status.json --output translations/languages.properties
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import DEFAULT_COMMENT, PROPERTIES_TYPE, STATUS_FILE_NAME, load_config
from .deploy import (
    LanguageStatus,
    clean_folders,
    filter_translations,
    read_archive_dir,
    write_status,
    write_translations,
)
from .format_handlers import FormatRegistry
from .properties import DEFAULT_ENCODING, LineSeparator, SerializeOptions, parse, serialize

logger = logging.getLogger(__name__)


def cmd_format(args) -> dict:
    """Re-write a .properties file."""
    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else input_path

    table = parse(input_path.read_bytes(), args.source_encoding or args.encoding)
    options = SerializeOptions(
        header_comment=None if args.no_comment else (args.comment or DEFAULT_COMMENT),
        escape_non_ascii=not args.no_escape,
        line_separator=LineSeparator.from_string(args.line_separator),
        sort_lines=not args.no_sort,
        encoding=args.encoding,
    )
    output_path.write_bytes(serialize(table, options))

    return {
        "status": "ok",
        "input": str(input_path),
        "output": str(output_path),
        "entries": len(table),
        "summary": f"Wrote {len(table)} entries to {output_path}",
    }


def cmd_check(args) -> dict:
    """Validate translation files."""
    results = []
    for name in args.files:
        path = Path(name)
        handler = FormatRegistry.detect_format(name)
        encoding = args.encoding
        if encoding is None:
            encoding = DEFAULT_ENCODING if handler.name == PROPERTIES_TYPE else "utf-8"
        errors = handler.validate_content(path.read_bytes(), encoding)
        results.append({
            "file": str(path),
            "format": handler.name,
            "valid": not errors,
            "errors": errors,
        })

    invalid = [r for r in results if not r["valid"]]
    return {
        "status": "error" if invalid else "ok",
        "files": results,
        "summary": f"{len(results) - len(invalid)} of {len(results)} files valid",
    }


def cmd_deploy(args) -> dict:
    """Write an extracted translation archive into the project."""
    config = load_config(args.config)
    translations = read_archive_dir(Path(args.source))
    translations = filter_translations(translations, args.modules)

    if not translations:
        logger.info("No translations available for this project!")
        return {
            "status": "ok",
            "written": [],
            "summary": "No translations available for this project",
        }

    # Assign every file to the first matching file set, grouped by target folder
    assigned = {}
    skipped = []
    for translation_file, data in translations.items():
        file_set = config.file_set_for(translation_file.relative_path)
        if file_set is None:
            logger.debug("No file set matches %s", translation_file.relative_path)
            skipped.append(translation_file.relative_path)
            continue
        target_sets = assigned.setdefault(Path(file_set.target_folder), {})
        target_sets.setdefault(id(file_set), (file_set, {}))[1][translation_file] = data

    written = []
    for target, file_sets in assigned.items():
        logger.info("Cleaning %s", target)
        clean_folders(target, [f for _, files in file_sets.values() for f in files])
        logger.info("Copying translations to %s", target)
        for file_set, files in file_sets.values():
            written.extend(write_translations(target, files, file_set))

    if args.status:
        statuses = _load_statuses(args.status)
        status_path = config.status_path()
        write_status(status_path, statuses)

    return {
        "status": "ok",
        "written": [str(p) for p in written],
        "skipped": sorted(skipped),
        "summary": f"Wrote {len(written)} files, skipped {len(skipped)}",
    }


def _load_statuses(path: str) -> list[LanguageStatus]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("languages", [])
    return [LanguageStatus.from_dict(item) for item in data]


def cmd_status(args) -> dict:
    """Write the translation status file."""
    statuses = _load_statuses(args.input)
    path = write_status(Path(args.output), statuses, args.comment or DEFAULT_COMMENT)
    return {
        "status": "ok",
        "output": str(path),
        "languages": len([s for s in statuses if s.code.strip()]),
    }


def cmd_formats(args) -> dict:
    """List supported formats."""
    formats = FormatRegistry.list_formats()
    return {
        "status": "ok",
        "formats": formats,
        "summary": f"{len(formats)} formats supported: {', '.join(f['name'] for f in formats)}",
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="propsync",
        description="propsync - translation file synchronization CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sort and escape a properties file in place
  propsync format messages.properties

  # Keep UTF-8 characters unescaped and use Windows line endings
  propsync format messages.properties --encoding utf-8 --no-escape --line-separator crlf

  # Validate files
  propsync check messages_de.properties messages_fr.properties

  # Deploy an extracted archive, keeping only dependency modules core and ui
  propsync deploy --source download --config propsync.yml --modules core ui
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # format command
    format_parser = subparsers.add_parser("format", help="Re-write a .properties file sorted and escaped")
    format_parser.add_argument("input", help="Input .properties file")
    format_parser.add_argument("--output", "-o", help="Output file (default: rewrite input)")
    format_parser.add_argument("--encoding", "-e", default=DEFAULT_ENCODING, help="Output encoding (default: ISO-8859-1)")
    format_parser.add_argument("--source-encoding", help="Input encoding (default: same as --encoding)")
    format_parser.add_argument("--no-sort", action="store_true", help="Keep the original entry order")
    format_parser.add_argument("--no-escape", action="store_true", help="Do not escape non-ASCII characters")
    format_parser.add_argument("--comment", "-c", help="Header comment text")
    format_parser.add_argument("--no-comment", action="store_true", help="Omit the header comment")
    format_parser.add_argument("--line-separator", default="lf", choices=["lf", "cr", "crlf"],
                               help="Line separator (default: lf)")

    # check command
    check_parser = subparsers.add_parser("check", help="Validate translation files")
    check_parser.add_argument("files", nargs="+", help="Files to validate")
    check_parser.add_argument("--encoding", "-e", help="Input encoding (default: per format)")

    # deploy command
    deploy_parser = subparsers.add_parser("deploy", help="Write an extracted translation archive into the project")
    deploy_parser.add_argument("--source", "-s", required=True, help="Extracted archive folder")
    deploy_parser.add_argument("--config", "-c", required=True, help="YAML configuration file")
    deploy_parser.add_argument("--modules", "-m", nargs="*", help="Module ids the build depends on (default: all)")
    deploy_parser.add_argument("--status", help="JSON file with translation status to write")

    # status command
    status_parser = subparsers.add_parser("status", help="Write the translation status file")
    status_parser.add_argument("--input", "-i", required=True, help="JSON file with per-language status")
    status_parser.add_argument("--output", "-o", default=STATUS_FILE_NAME, help="Output file")
    status_parser.add_argument("--comment", help="Header comment text")

    # formats command
    subparsers.add_parser("formats", help="List supported formats")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "format": cmd_format,
        "check": cmd_check,
        "deploy": cmd_deploy,
        "status": cmd_status,
        "formats": cmd_formats,
    }

    try:
        result = commands[args.command](args)
    except Exception as e:
        error = {
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
        }
        if hasattr(e, "to_dict"):
            error["details"] = e.to_dict()
        print(json.dumps(error), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))
    if result.get("status") == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
