# src/main.py
"""CLI entry point: templates, generate, preview, cache commands.

Usage:
    noiengine templates list [--format FMT]
    noiengine templates validate <file> [--format FMT]
    noiengine templates promote <file> --version LABEL [--format FMT]
    noiengine generate <claim.json> --entity-id ID [--format FMT]
    noiengine preview <template> [--set FIELD=VALUE ...]
    noiengine cache purge

Exit codes: 0 success, 1 failure, 2 template validation failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from noiengine.core.errors import TemplateValidationError
from noiengine.core.fields import TEMPLATE_FORMATS
from noiengine.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_TEMPLATE = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILURE

    from noiengine.api.facade import NoticeService
    from noiengine.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    _setup_logging(settings, args.verbose)

    try:
        service = NoticeService(settings)
        return asyncio.run(args.func(service, args))
    except TemplateValidationError as exc:
        logger.error("%s", exc)
        return EXIT_INVALID_TEMPLATE
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILURE


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="noiengine",
        description=f"noiengine v{__version__} - Notice of Intent document generator",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- templates ---
    p_templates = subparsers.add_parser("templates", help="Manage NOI templates")
    template_cmds = p_templates.add_subparsers(dest="template_command")

    p_list = template_cmds.add_parser("list", help="List current and archived templates")
    _add_format_option(p_list)
    p_list.set_defaults(func=_cmd_templates_list)

    p_validate = template_cmds.add_parser(
        "validate", help="Check a template for the required merge fields",
    )
    p_validate.add_argument("file", type=Path, help="Template file (.docx or .pdf)")
    _add_format_option(p_validate)
    p_validate.set_defaults(func=_cmd_templates_validate)

    p_promote = template_cmds.add_parser(
        "promote", help="Install a template as the current one",
    )
    p_promote.add_argument("file", type=Path, help="Template file (.docx or .pdf)")
    p_promote.add_argument("--version", dest="label", required=True, help="Version label")
    _add_format_option(p_promote)
    p_promote.set_defaults(func=_cmd_templates_promote)

    # --- generate ---
    p_generate = subparsers.add_parser("generate", help="Generate a notice for a claim")
    p_generate.add_argument("claim", type=Path, help="Claim record as JSON")
    p_generate.add_argument("--entity-id", required=True, help="Claim identifier")
    _add_format_option(p_generate)
    p_generate.set_defaults(func=_cmd_generate)

    # --- preview ---
    p_preview = subparsers.add_parser(
        "preview", help="Render a template with built-in sample data",
    )
    p_preview.add_argument("template", type=Path, help="Template file (.docx or .pdf)")
    p_preview.add_argument(
        "--set", dest="overrides", action="append", default=[], metavar="FIELD=VALUE",
        help="Override one sample field (repeatable)",
    )
    _add_format_option(p_preview)
    p_preview.set_defaults(func=_cmd_preview)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Render cache maintenance")
    cache_cmds = p_cache.add_subparsers(dest="cache_command")
    p_purge = cache_cmds.add_parser("purge", help="Remove expired cache entries")
    p_purge.set_defaults(func=_cmd_cache_purge)

    return parser


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f", "--format", dest="template_format", choices=TEMPLATE_FORMATS, default=None,
        help="Template format (default: DEFAULT_FORMAT setting or file suffix)",
    )


async def _cmd_templates_list(service, args: argparse.Namespace) -> int:
    result = service.list_templates(args.template_format)
    if not result.success:
        logger.error("%s", result.message)
        return EXIT_FAILURE
    if not result.templates:
        print("No templates installed.")
    for template in result.templates:
        marker = "*" if template.is_current else " "
        print(
            f"{marker} {template.version:<20} {template.last_modified:%Y-%m-%d %H:%M:%S}"
            f"  {template.path}"
        )
    return EXIT_OK


async def _cmd_templates_validate(service, args: argparse.Namespace) -> int:
    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return EXIT_FAILURE

    validation = service.registry.validator.validate(file_path, args.template_format)
    if not validation.success:
        raise TemplateValidationError(validation)
    print(f"{file_path.name}: all {len(validation.present_fields)} merge fields present")
    return EXIT_OK


async def _cmd_templates_promote(service, args: argparse.Namespace) -> int:
    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return EXIT_FAILURE

    result = service.promote_template(file_path, args.label, args.template_format)
    if not result.success:
        if result.promotion is not None:
            raise TemplateValidationError(result.promotion.validation)
        logger.error("%s", result.message)
        return EXIT_INVALID_TEMPLATE if result.error_kind == "validation" else EXIT_FAILURE
    print(result.message)
    if result.promotion.archived is not None:
        print(f"  Archived previous template: {result.promotion.archived.path}")
    return EXIT_OK


async def _cmd_generate(service, args: argparse.Namespace) -> int:
    claim_path: Path = args.claim
    try:
        claim = json.loads(claim_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read claim record %s: %s", claim_path, exc)
        return EXIT_FAILURE

    result = await service.generate(args.entity_id, claim, args.template_format)
    if not result.success:
        logger.error("%s", result.message)
        return EXIT_FAILURE

    document = result.document
    print("\nNotice generated:")
    print(f"  File:        {document.path}")
    print(f"  From cache:  {'yes' if document.from_cache else 'no'}")
    return EXIT_OK


async def _cmd_preview(service, args: argparse.Namespace) -> int:
    overrides = _parse_overrides(args.overrides)
    result = await service.preview_with_sample_data(
        args.template, overrides, args.template_format
    )
    if not result.success:
        logger.error("%s", result.message)
        return EXIT_FAILURE
    print(f"Preview written to {result.document.path}")
    return EXIT_OK


async def _cmd_cache_purge(service, args: argparse.Namespace) -> int:
    result = await service.purge_cache()
    if not result.success:
        logger.error("%s", result.message)
        return EXIT_FAILURE
    print(result.message)
    return EXIT_OK


def _parse_overrides(pairs: list[str]) -> dict[str, str]:
    """Parse FIELD=VALUE pairs; entries without '=' are ignored with a warning."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            logger.warning("Ignoring malformed override %r (expected FIELD=VALUE)", pair)
            continue
        overrides[key.strip()] = value
    return overrides


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage (records go to stderr)."""
    from noiengine.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text" if verbose else settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
