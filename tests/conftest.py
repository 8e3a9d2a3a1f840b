import json
import os
import sys
from typing import Any, Dict, List, Optional

import httpx
import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `common.*` / `downloader.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


class FakeLgoService:
    """
    In-memory stand-in for the Agenda LGO API, used through httpx.MockTransport.

    - POST /auth answers {"urp": token}
    - GET /auth<token> answers `confirm_status`
    - GET /me/e<token> answers `accounts`
    - GET <path><token> answers the bytes registered in `files[path]`
    Every request is recorded in `requests`.
    """

    def __init__(
        self,
        *,
        token: str = "TOK",
        accounts: Optional[List[Dict[str, Any]]] = None,
        files: Optional[Dict[str, bytes]] = None,
        confirm_status: int = 200,
    ) -> None:
        self.token = token
        self.accounts = accounts if accounts is not None else []
        self.files = dict(files or {})
        self.confirm_status = confirm_status
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith("/api"):
            return httpx.Response(404)
        path = path[len("/api"):]

        if request.method == "POST" and path == "/auth":
            return httpx.Response(200, json={"urp": self.token})
        if request.method != "GET" or not path.endswith(self.token):
            return httpx.Response(401)

        path = path[: len(path) - len(self.token)]
        if path == "/auth":
            return httpx.Response(self.confirm_status)
        if path == "/me/e":
            return httpx.Response(200, content=json.dumps(self.accounts).encode("utf-8"))
        if path in self.files:
            return httpx.Response(200, content=self.files[path])
        return httpx.Response(404)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self), timeout=10.0)


@pytest.fixture
def fake_lgo() -> FakeLgoService:
    return FakeLgoService()


@pytest.fixture
def auth_file(tmp_path):
    path = tmp_path / ".auth"
    path.write_text(json.dumps({"Email": "jane@example.com", "Password": "s3cret&x"}), encoding="utf-8")
    return path
