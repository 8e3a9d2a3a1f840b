from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import httpx

from common.agenda_lgo import (
    DEFAULT_BASE_URL,
    AgendaLgoClient,
    AgendaLgoDataError,
    Document,
    document_filename,
)
from common.credentials import DEFAULT_AUTH_FILE, load_credentials


# Environment variable names used as fallbacks by the CLI
ENV_AUTH_FILE = "LGO_AUTH_FILE"
ENV_OUT_DIR = "LGO_OUT_DIR"
ENV_TIMEOUT = "LGO_TIMEOUT"

DEFAULT_OUT_DIR = "out"
DEFAULT_TIMEOUT = 30.0

CollisionPolicy = Literal["overwrite", "fail"]
COLLISION_POLICIES = ("overwrite", "fail")

LOGGER = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Run configuration is unusable."""


class DocumentCollisionError(AgendaLgoDataError):
    """Two documents would be saved under the same file name."""


def _require_dir(path: Path) -> Path:
    if not path.is_dir():
        raise ConfigError(f"Output directory does not exist: {path}")
    return path


def _check_collision(
    doc: Document,
    seen: Dict[str, Document],
    policy: CollisionPolicy,
) -> None:
    filename = document_filename(doc)
    previous = seen.get(filename)
    seen[filename] = doc
    if previous is None:
        return
    if policy == "fail":
        raise DocumentCollisionError(
            f"Documents {previous.name!r} and {doc.name!r} both map to {filename}"
        )
    LOGGER.warning(
        "Documents %r and %r both map to %s; keeping %r",
        previous.name,
        doc.name,
        filename,
        doc.name,
    )


def run_once(
    *,
    auth_file: os.PathLike[str] | str = DEFAULT_AUTH_FILE,
    out_dir: os.PathLike[str] | str = DEFAULT_OUT_DIR,
    timeout: float = DEFAULT_TIMEOUT,
    on_collision: CollisionPolicy = "overwrite",
    base_url: str = DEFAULT_BASE_URL,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """
    Log in, list the documents and save each one into `out_dir`.

    Documents are saved in listing order. The first error aborts the run and
    propagates to the caller. Returns a summary of the completed run.
    """
    if on_collision not in COLLISION_POLICIES:
        raise ConfigError(f"Unknown collision policy: {on_collision}")
    out_path = _require_dir(Path(out_dir))
    credentials = load_credentials(auth_file)

    saved: List[str] = []
    seen: Dict[str, Document] = {}
    with AgendaLgoClient(base_url=base_url, timeout=timeout, client=client) as lgo:
        session = lgo.login(credentials)
        documents = lgo.fetch_document_list(session)
        for doc in documents:
            try:
                _check_collision(doc, seen, on_collision)
                target = lgo.save_document(session, doc, out_path)
            except Exception:
                LOGGER.error("Saved %d of %d document(s) before failing", len(saved), len(documents))
                raise
            saved.append(str(target))

    return {
        "ok": True,
        "listed": len(documents),
        "saved": len(saved),
        "files": saved,
    }
