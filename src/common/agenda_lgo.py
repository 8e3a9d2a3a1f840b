from __future__ import annotations

import calendar
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .credentials import Credentials


DEFAULT_BASE_URL = "https://agenda-lgo.de/api"

DEFAULT_HEADERS: Dict[str, str] = {
    "Origin": "https://agenda-lgo.de",
    "User-Agent": "LGO-Downloader 0.1",
    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
}

LOGGER = logging.getLogger(__name__)


class AgendaLgoError(RuntimeError):
    """Base error for the Agenda LGO client."""


class AgendaLgoApiError(AgendaLgoError):
    """Service returned an unexpected status or payload."""


class AgendaLgoAuthError(AgendaLgoApiError):
    """The confirming GET of the login handshake was rejected."""


class AgendaLgoDataError(AgendaLgoError):
    """Decoded data cannot be used as-is."""


class NoAccountError(AgendaLgoDataError):
    """The listing response contained no account."""


class InvalidMonthError(AgendaLgoDataError):
    """A document carries a month outside 1..12."""


class OutputWriteError(AgendaLgoError):
    """A downloaded document could not be written to the output directory."""


class Document(BaseModel):
    """One salary statement as listed by the service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    year: int
    month: int
    name: str
    download_path: str = Field(..., alias="downloadPath")
    type: str = ""
    read: bool = False
    created_at: Optional[int] = Field(default=None, alias="createdAt")


class Account(BaseModel):
    """Employment relationship holding the documents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    employee: str = ""
    employer: str = ""
    activation_key: Any = Field(default=None, alias="activationKey")
    documents: List[Document] = Field(default_factory=list)


class _UrpResponse(BaseModel):
    urp: str


_ACCOUNTS = TypeAdapter(List[Account])


def document_filename(document: Document) -> str:
    """
    Return the local file name for `document`: "<year>-<MonthName>.pdf".

    Raises InvalidMonthError when the month is not within 1..12.
    """
    if not 1 <= document.month <= 12:
        raise InvalidMonthError(
            f"Invalid month {document.month} for document {document.name!r}"
        )
    return f"{document.year}-{calendar.month_name[document.month]}.pdf"


class AgendaLgoClient:
    """
    Client for the "Agenda: Lohn- und Gehaltsdokumente" web service.

    Notes
    - The session token is returned by `login` and passed to every other call;
      the service expects it appended verbatim to the request path.
    - Every request carries the fixed Origin/User-Agent/Content-Type headers,
      body-less GETs included.
    - No retries. Transport, decoding and URL errors from httpx are raised as
      AgendaLgoError; local file errors as OutputWriteError.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "AgendaLgoClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def login(self, credentials: Credentials) -> str:
        """
        Authenticate and return the session token.

        The service needs two calls: a POST with the form-encoded credentials
        answering `{"urp": <token>}`, then a GET on the same endpoint with the
        token appended. Only the status of the second call is checked.
        """
        body = urlencode({"eml": credentials.email, "pwd": credentials.password})
        resp = self._send("POST", self._url("/auth"), content=body.encode("utf-8"))
        try:
            session = _UrpResponse.model_validate_json(resp.content).urp
        except ValidationError as ve:
            raise AgendaLgoApiError(f"Failed to parse login response: {ve}") from ve

        confirm = self._send("GET", self._url("/auth", session))
        if confirm.status_code != 200:
            raise AgendaLgoAuthError(
                f"Login confirmation failed: {_status_text(confirm)}"
            )
        LOGGER.info("Logged in to Agenda LGO")
        return session

    def fetch_document_list(self, session: str) -> List[Document]:
        """
        Return the documents of the first account visible to `session`.

        Raises NoAccountError when the service lists no account at all.
        """
        resp = self._send("GET", self._url("/me/e", session))
        if resp.status_code != 200:
            raise AgendaLgoApiError(f"Document listing failed: {_status_text(resp)}")
        try:
            accounts = _ACCOUNTS.validate_json(resp.content)
        except ValidationError as ve:
            raise AgendaLgoApiError(f"Failed to parse document listing: {ve}") from ve
        if not accounts:
            raise NoAccountError("Document listing contains no account")

        # Only the first account is used
        documents = accounts[0].documents
        LOGGER.info("Found %d document(s)", len(documents))
        return documents

    def save_document(
        self,
        session: str,
        document: Document,
        out_dir: os.PathLike[str] | str,
    ) -> Path:
        """
        Download `document` into `out_dir` and return the written path.

        The body is copied unchanged into a temporary ".part" file which
        replaces "<year>-<MonthName>.pdf" once the download completed. An
        existing file of the same name is overwritten. On failure the partial
        file is removed and the previous target, if any, is left untouched.
        """
        target = Path(out_dir) / document_filename(document)
        path = f"{document.download_path}/{document.name}"
        LOGGER.info("Downloading %s to %s", path, target)

        part = target.with_name(f".{target.name}.part")
        url = self._url(path, session)
        try:
            with self._client.stream("GET", url, headers=DEFAULT_HEADERS) as resp:
                if resp.status_code != 200:
                    raise AgendaLgoApiError(
                        f"Download of {document.name!r} failed: {_status_text(resp)}"
                    )
                with part.open("wb") as out:
                    for chunk in resp.iter_bytes():
                        out.write(chunk)
            os.replace(part, target)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise AgendaLgoError(f"Download of {document.name!r} failed") from exc
        except OSError as exc:
            raise OutputWriteError(f"Failed to write {target}: {exc}") from exc
        finally:
            # No-op after a successful rename
            part.unlink(missing_ok=True)
        return target

    # --------------- Internal ---------------
    def _url(self, path: str, session: str = "") -> str:
        # Token is appended without any separator
        return f"{self._base_url}{path}{session}"

    def _send(self, method: str, url: str, *, content: Optional[bytes] = None) -> httpx.Response:
        try:
            return self._client.request(method, url, headers=DEFAULT_HEADERS, content=content)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise AgendaLgoError(f"{method} request to Agenda LGO failed") from exc


def _status_text(resp: httpx.Response) -> str:
    reason = resp.reason_phrase
    return f"{resp.status_code} {reason}" if reason else str(resp.status_code)


__all__ = [
    "AgendaLgoClient",
    "AgendaLgoError",
    "AgendaLgoApiError",
    "AgendaLgoAuthError",
    "AgendaLgoDataError",
    "NoAccountError",
    "InvalidMonthError",
    "OutputWriteError",
    "Account",
    "Document",
    "document_filename",
    "DEFAULT_BASE_URL",
    "DEFAULT_HEADERS",
]
