"""Gmail API access: OAuth service construction and the message source adapter."""

from __future__ import annotations

import base64
import logging
import time
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from errors import ClientInitError, MarkReadError
from models import Message

LOGGER = logging.getLogger(__name__)

READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"
MODIFY_SCOPE = "https://www.googleapis.com/auth/gmail.modify"
UNREAD_LABEL = "UNREAD"


def scopes_for(modify: bool) -> list[str]:
    """Read-only access unless messages are going to be marked as read."""
    return [MODIFY_SCOPE] if modify else [READONLY_SCOPE]


def build_service(credentials_file: Path, token_file: Path, modify: bool = False) -> Any:
    """Return an authorized Gmail v1 service.

    A cached token is reused (and refreshed when expired); otherwise the
    installed-app flow runs against credentials_file and the resulting
    token is saved to token_file.

    Raises:
        ClientInitError: credentials are missing or authorization failed.
    """
    scopes = scopes_for(modify)
    try:
        creds = None
        if token_file.exists():
            creds = Credentials.from_authorized_user_file(str(token_file), scopes)

        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())

        if not creds or not creds.valid:
            if not credentials_file.exists():
                raise ClientInitError(
                    f"Missing OAuth client file at {credentials_file}. Download Desktop "
                    "OAuth credentials from Google Cloud and save them to this path."
                )
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_file), scopes)
            creds = flow.run_local_server(port=0)
            token_file.parent.mkdir(parents=True, exist_ok=True)
            token_file.write_text(creds.to_json(), encoding="utf-8")

        return build("gmail", "v1", credentials=creds, cache_discovery=False)
    except (GoogleAuthError, GoogleApiError, OSError, ValueError) as exc:
        raise ClientInitError(f"Unable to create a Gmail client: {exc}") from exc


class GmailSource:
    """Message source backed by the Gmail API for a single user."""

    def __init__(self, service: Any, user: str = "me") -> None:
        self._service = service
        self._user = user

    def list_unread(self, label: str) -> list[Message]:
        """Fetch all unread messages under label, with subject and HTML body."""
        start = time.monotonic()
        query = f"label:{label} is:unread"

        refs: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"userId": self._user, "q": query}
            if page_token:
                kwargs["pageToken"] = page_token
            response = self._service.users().messages().list(**kwargs).execute()
            refs.extend(response.get("messages", []) or [])
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        messages = [self._fetch(ref["id"]) for ref in refs if ref.get("id")]
        LOGGER.info(
            "%d unread messages found (took %.0f sec)",
            len(messages),
            time.monotonic() - start,
        )
        return messages

    def batch_clear_unread(self, ids: list[str]) -> None:
        """Remove the UNREAD label from all ids in one batchModify call.

        Raises:
            MarkReadError: the API rejected the request.
        """
        if not ids:
            return

        body = {"ids": list(ids), "removeLabelIds": [UNREAD_LABEL]}
        try:
            self._service.users().messages().batchModify(userId=self._user, body=body).execute()
        except GoogleApiError as exc:
            raise MarkReadError(
                f"failed to batch-delete label {UNREAD_LABEL} from {len(ids)} messages: {exc}"
            ) from exc

    def list_all_labels(self) -> list[str]:
        response = self._service.users().labels().list(userId=self._user).execute()
        return [label["name"] for label in response.get("labels", []) or []]

    def _fetch(self, message_id: str) -> Message:
        raw = (
            self._service.users()
            .messages()
            .get(userId=self._user, id=message_id, format="full")
            .execute()
        )
        payload = raw.get("payload", {}) or {}
        return Message(
            id=message_id,
            subject=message_subject(payload),
            body=message_body(payload),
        )


def message_subject(payload: dict[str, Any]) -> str:
    for header in payload.get("headers", []) or []:
        if str(header.get("name", "")).lower() == "subject":
            return str(header.get("value", ""))
    return ""


def message_body(payload: dict[str, Any]) -> bytes:
    """Decoded body of the first text/html part, else the first text/plain part."""
    html = _find_part(payload, "text/html")
    if html is not None:
        return html
    plain = _find_part(payload, "text/plain")
    return plain if plain is not None else b""


def _find_part(part: dict[str, Any], mime_type: str) -> bytes | None:
    if part.get("mimeType") == mime_type:
        data = (part.get("body") or {}).get("data")
        if data:
            return _b64decode(data)

    for child in part.get("parts", []) or []:
        found = _find_part(child, mime_type)
        if found is not None:
            return found
    return None


def _b64decode(data: str) -> bytes:
    # Gmail strips base64url padding.
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
