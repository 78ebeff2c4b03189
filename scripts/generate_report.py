#!/usr/bin/env python3
"""Script to fetch a user's starred repositories and write the markdown report."""

import argparse
import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from stars_report.config import ConfigurationError, Settings
from stars_report.infrastructure.github_client import GitHubRestClient
from stars_report.infrastructure.template_printer import TemplatePrinter
from stars_report.application.stars_service import StarsService

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Group a GitHub user's starred repositories by language.")
    parser.add_argument("--user", help="GitHub login (overrides GITHUB_USER)")
    parser.add_argument("--output", help="Output markdown file (overrides OUTPUT_PATH)")
    parser.add_argument("--template", help="Jinja2 template file (overrides TEMPLATE_PATH)")
    parser.add_argument("--timeout", type=float, help="Deadline in seconds for fetching all pages")
    parser.add_argument("--dedupe", action="store_true", help="Drop repositories seen on an earlier page")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def load_settings(args) -> Settings:
    settings = Settings.from_env()
    if args.user:
        settings.user_name = args.user
    if args.output:
        settings.output_path = args.output
    if args.template:
        settings.template_path = args.template
    if args.timeout is not None:
        settings.timeout = args.timeout
    if args.dedupe:
        settings.dedupe = True
    return settings.validate()


def main(argv=None):
    """Fetch starred repositories and render them to the output file."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings = load_settings(args)
        printer = TemplatePrinter(template_path=settings.template_path, output_path=settings.output_path)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    github_client = GitHubRestClient(token=settings.token, user_name=settings.user_name)
    try:
        service = StarsService(
            github_client,
            timeout=settings.timeout,
            max_workers=settings.max_workers,
            dedupe=settings.dedupe,
        )
        report = service.get_users_stars()
        output_path = printer.print_rows(report.rows, partial=report.partial)

        if report.partial:
            logger.warning(f"Report written to {output_path} is incomplete")
        else:
            logger.info(f"Report written to {output_path} with {len(report.rows)} languages")
        return 0

    except Exception as e:
        logger.error(f"Report generation failed: {e}", exc_info=True)
        return 1
    finally:
        github_client.close()


if __name__ == "__main__":
    sys.exit(main())
