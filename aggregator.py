"""Per-message extraction and cross-message paper counting."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from errors import ExtractionError
from extractor import extract_papers
from models import Message, Paper, RunSummary

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Outcome of extracting one message: papers, or the error that stopped it."""

    message: Message
    papers: list[Paper] = field(default_factory=list)
    error: ExtractionError | None = None


@dataclass(slots=True)
class Aggregate:
    error_count: int = 0
    total_titles: int = 0
    counts: Counter[Paper] = field(default_factory=Counter)

    def summary(self, unread_emails: int) -> RunSummary:
        return RunSummary(
            unread_emails=unread_emails,
            total_papers=self.total_titles,
            uniq_papers=len(self.counts),
            error_count=self.error_count,
        )


def extract_all(messages: Iterable[Message]) -> list[ExtractionResult]:
    """Run the extractor over every message, containing per-message failures."""
    results: list[ExtractionResult] = []
    for message in messages:
        try:
            papers = extract_papers(message.body, message.subject)
        except ExtractionError as exc:
            LOGGER.warning("Skipping message id=%s: %s", message.id, exc)
            results.append(ExtractionResult(message=message, error=exc))
            continue
        results.append(ExtractionResult(message=message, papers=papers))
    return results


def aggregate(results: Iterable[ExtractionResult]) -> Aggregate:
    """Count paper mentions across messages.

    Failed messages only bump error_count. Counts do not depend on the
    order of results.
    """
    agg = Aggregate()
    for result in results:
        if result.error is not None:
            agg.error_count += 1
            continue

        agg.total_titles += len(result.papers)
        agg.counts.update(result.papers)
    return agg
