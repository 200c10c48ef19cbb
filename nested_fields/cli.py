#!/usr/bin/env python3
"""
nested-fields: preview add/remove clicks against a rendered page.

Loads an HTML page, dispatches clicks on elements by id through their
``data-action`` descriptors, and prints the resulting HTML, the form
submission pairs, or the parsed nested params.

Exit codes:
  0 = all clicks dispatched
  1 = configuration error, unknown element id or unreadable page
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from nested_fields.core.logging import configure_logging
from nested_fields.domain.document import FormDocument
from nested_fields.domain.errors import ConfigurationError
from nested_fields.domain.identifiers import CounterIdentifierSource
from nested_fields.settings import get_settings
from nested_fields.web.params import parse_nested_params

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nested-fields", description=__doc__.strip().splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    preview = subparsers.add_parser("preview", help="Dispatch clicks and print the result")
    preview.add_argument("page", type=Path, help="HTML file containing the form")
    preview.add_argument(
        "--click",
        action="append",
        default=[],
        metavar="ELEMENT_ID",
        help="Id of an element to click (repeatable, applied in order)",
    )
    preview.add_argument(
        "--counter",
        type=int,
        default=None,
        metavar="START",
        help="Use a counter identifier source starting after START",
    )
    output = preview.add_mutually_exclusive_group()
    output.add_argument("--form-data", action="store_true", help="Print submitted name=value pairs")
    output.add_argument("--params", action="store_true", help="Print submitted data as nested JSON")
    preview.add_argument("--lenient", action="store_true", help="Log configuration errors instead of failing")
    preview.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def preview(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.lenient:
        settings = replace(settings, strict=False)
    
    try:
        markup = args.page.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read {args.page}: {e}")
        return 1
    
    identifier_source = CounterIdentifierSource(args.counter) if args.counter is not None else None
    document = FormDocument.from_html(markup, settings=settings, identifier_source=identifier_source)
    
    for element_id in args.click:
        try:
            document.click_by_id(element_id)
        except KeyError as e:
            logger.error(str(e.args[0]))
            return 1
        except ConfigurationError as e:
            logger.error(f"Click on '{element_id}' failed: {e}")
            return 1
    
    if args.form_data:
        for name, value in document.form_data():
            print(f"{name}={value}")
    elif args.params:
        print(json.dumps(parse_nested_params(document.form_data()), indent=2))
    else:
        print(document.to_html())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(level=args.log_level or settings.log_level, format_type=settings.log_format)
    
    if args.command == "preview":
        return preview(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
