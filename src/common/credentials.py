from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError


DEFAULT_AUTH_FILE = ".auth"


class CredentialsError(RuntimeError):
    """Credentials file is missing, unreadable or malformed."""


class Credentials(BaseModel):
    """
    Login credentials for Agenda LGO.

    The file format is a JSON object `{"Email": "...", "Password": "..."}`.
    Key matching is case-insensitive, so `email`/`password` work as well.
    The password is excluded from `repr` to keep it out of logs and tracebacks.
    """

    model_config = ConfigDict(frozen=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., repr=False)


def _lower_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).lower(): v for k, v in raw.items()}


def load_credentials(path: os.PathLike[str] | str = DEFAULT_AUTH_FILE) -> Credentials:
    """Read and validate the credentials file at `path`."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as ex:
        raise CredentialsError(f"Credentials file not found: {p}") from ex
    except OSError as ex:
        raise CredentialsError(f"Failed to read credentials file {p}: {ex}") from ex
    except json.JSONDecodeError as ex:
        raise CredentialsError(f"Credentials file {p} is not valid JSON") from ex

    if not isinstance(raw, dict):
        raise CredentialsError(f"Credentials file {p} must contain a JSON object")
    try:
        return Credentials.model_validate(_lower_keys(raw))
    except ValidationError as ve:
        # Only field names and error types; never the input values
        fields = ", ".join(".".join(str(x) for x in e["loc"]) for e in ve.errors())
        raise CredentialsError(f"Invalid credentials file {p}: check {fields}") from None


__all__ = ["Credentials", "CredentialsError", "load_credentials", "DEFAULT_AUTH_FILE"]
