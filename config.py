"""Run configuration assembled from CLI flags and the environment."""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

# "[ OSS ]/_ML-in-SE" in the Gmail web UI
DEFAULT_LABEL = "[-oss-]-_ml-in-se"
DEFAULT_USER = "me"

LABEL_ENV = "SAD_LABEL"
CREDENTIALS_ENV = "GMAIL_CREDENTIALS_FILE"
TOKEN_ENV = "GMAIL_TOKEN_FILE"


@dataclass(frozen=True, slots=True)
class DigestConfig:
    """Immutable settings for one digest run."""

    label: str = DEFAULT_LABEL
    list_labels: bool = False
    output_html: bool = False
    mark_read: bool = False
    user: str = DEFAULT_USER
    credentials_file: Path = Path("credentials.json")
    token_file: Path = Path("token.json")

    @property
    def output_format(self) -> str:
        return "html" if self.output_html else "markdown"

    @classmethod
    def from_args(
        cls, args: argparse.Namespace, environ: Mapping[str, str] | None = None
    ) -> DigestConfig:
        """Fold parsed flags and environment into a config.

        The label resolves as: explicit --label flag, then SAD_LABEL, then
        DEFAULT_LABEL.
        """
        env = os.environ if environ is None else environ
        label = args.label or env.get(LABEL_ENV) or DEFAULT_LABEL

        return cls(
            label=label,
            list_labels=args.labels,
            output_html=args.html,
            mark_read=args.mark,
            credentials_file=Path(env.get(CREDENTIALS_ENV, "credentials.json")),
            token_file=Path(env.get(TOKEN_ENV, "token.json")),
        )
