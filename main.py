"""CLI entrypoint for the Google Scholar alert digest."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Protocol

from dotenv import load_dotenv

from aggregator import aggregate, extract_all
from config import DigestConfig
from errors import ClientInitError, MarkReadError, TemplateRenderError
from gmail_client import GmailSource, build_service
from models import Message
from report import render

DESCRIPTION = """\
Polls Gmail API for unread Google Scholar alert messages under a given label,
aggregates by paper title and prints a list of paper URLs in Markdown format.
"""

EPILOG = """\
The --labels flag will only list all available labels for the current account.
The --html flag will produce the output report in HTML format.
The --mark flag will mark all the aggregated emails as read in Gmail.
The label defaults to $SAD_LABEL when set.
"""


class MessageSource(Protocol):
    def list_unread(self, label: str) -> list[Message]: ...

    def batch_clear_unread(self, ids: list[str]) -> None: ...

    def list_all_labels(self) -> list[str]: ...


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-l", "--label", default=None, help="name of the Gmail label")
    parser.add_argument("--labels", action="store_true", help="list all Gmail labels and exit")
    parser.add_argument(
        "--html",
        action="store_true",
        help="output report in HTML (instead of default Markdown)",
    )
    parser.add_argument("--mark", action="store_true", help="mark all aggregated emails as read")
    return parser.parse_args(argv)


def mark_read(source: MessageSource, messages: list[Message]) -> bool:
    """Clear UNREAD on all processed messages. Failures are logged, not raised."""
    ids = [m.id for m in messages]
    try:
        source.batch_clear_unread(ids)
    except MarkReadError as exc:
        logging.error("Mark as read failed for %d messages: %s", len(ids), exc)
        return False

    logging.info("Marked %d messages as read", len(ids))
    return True


def run(config: DigestConfig, source: MessageSource) -> int:
    """Run one digest cycle and return the process exit code."""
    if config.list_labels:
        for name in source.list_all_labels():
            print(name)
        return 0

    messages = source.list_unread(config.label)
    results = extract_all(messages)
    agg = aggregate(results)
    summary = agg.summary(unread_emails=len(messages))
    logging.info(
        "Extracted papers: total=%s unique=%s errors=%s",
        summary.total_papers,
        summary.uniq_papers,
        summary.error_count,
    )

    try:
        report = render(summary, agg.counts, fmt=config.output_format)
    except TemplateRenderError as exc:
        logging.critical("Report rendering failed: %s", exc)
        return 1
    sys.stdout.write(report)

    if config.mark_read:
        mark_read(source, messages)

    if agg.error_count:
        logging.info("Errors: %d", agg.error_count)
    return 0


def main() -> None:
    """Initialize config and execute the digest."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    config = DigestConfig.from_args(parse_args())

    try:
        service = build_service(config.credentials_file, config.token_file, modify=config.mark_read)
    except ClientInitError as exc:
        logging.critical("%s", exc)
        sys.exit(1)

    sys.exit(run(config, GmailSource(service, user=config.user)))


if __name__ == "__main__":
    main()
