from __future__ import annotations

import json

import pytest

from common.credentials import Credentials, CredentialsError, load_credentials


def test_load_credentials_reads_original_field_names(auth_file):
    creds = load_credentials(auth_file)

    assert creds.email == "jane@example.com"
    assert creds.password == "s3cret&x"


def test_load_credentials_keys_are_case_insensitive(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text(json.dumps({"email": "a@b.c", "PASSWORD": "pw"}), encoding="utf-8")

    creds = load_credentials(path)

    assert creds == Credentials(email="a@b.c", password="pw")


def test_password_not_in_repr(auth_file):
    creds = load_credentials(auth_file)
    assert "s3cret" not in repr(creds)


def test_missing_file_raises(tmp_path):
    with pytest.raises(CredentialsError, match="not found"):
        load_credentials(tmp_path / "nope")


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        json.dumps({"Email": "a@b.c"}),
        json.dumps({"Password": "pw"}),
        json.dumps({"Email": "", "Password": "pw"}),
    ],
)
def test_malformed_file_raises(tmp_path, content):
    path = tmp_path / ".auth"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CredentialsError):
        load_credentials(path)


def test_error_message_does_not_leak_password(tmp_path):
    path = tmp_path / ".auth"
    path.write_text(json.dumps({"Email": 123, "Password": "topsecret"}), encoding="utf-8")

    with pytest.raises(CredentialsError) as excinfo:
        load_credentials(path)

    assert "topsecret" not in str(excinfo.value)
    assert "email" in str(excinfo.value)
