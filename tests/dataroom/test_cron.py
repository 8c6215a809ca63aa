"""定时清理接口与 QStash 签名校验的测试。"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import update

from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.security import body_digest, verify_cron_signature
from app.packages.dataroom.models import TrashItem
from app.packages.dataroom.services.trash_service import trash_service

CRON_URL = "/api/cron/auto-purge-trash"
CURRENT_KEY = "sig_current_test_key"
NEXT_KEY = "sig_next_test_key"


def _sign(body: bytes, key: str, issuer: str = "Upstash") -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "iss": issuer,
        "sub": f"http://testserver{CRON_URL}",
        "iat": issued,
        "nbf": issued - timedelta(seconds=5),
        "exp": issued + timedelta(minutes=5),
        "body": body_digest(body),
    }
    return jwt.encode(claims, key, algorithm="HS256")


@pytest.fixture()
def signed_cron(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "cron_verify_signature", True)
    monkeypatch.setattr(settings, "qstash_current_signing_key", CURRENT_KEY)
    monkeypatch.setattr(settings, "qstash_next_signing_key", NEXT_KEY)
    return settings


def test_verify_cron_signature_accepts_current_and_next_keys():
    body = b'{"job":"purge"}'

    assert verify_cron_signature(_sign(body, CURRENT_KEY), body, signing_keys=[CURRENT_KEY, NEXT_KEY])
    assert verify_cron_signature(_sign(body, NEXT_KEY), body, signing_keys=[CURRENT_KEY, NEXT_KEY])


def test_verify_cron_signature_rejects_bad_input():
    body = b'{"job":"purge"}'
    keys = [CURRENT_KEY]

    assert not verify_cron_signature(None, body, signing_keys=keys)
    assert not verify_cron_signature(_sign(body, "wrong-key"), body, signing_keys=keys)
    assert not verify_cron_signature(_sign(body, CURRENT_KEY, issuer="someone"), body, signing_keys=keys)
    assert not verify_cron_signature(_sign(body, CURRENT_KEY), b"tampered", signing_keys=keys)
    assert not verify_cron_signature(_sign(body, CURRENT_KEY), body, signing_keys=[])


@pytest.mark.usefixtures("isolate_expired_items")
def test_auto_purge_without_signature_check(client: TestClient, db_session_fixture, make_dataroom, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    document = make_document(dataroom, "Expired.pdf")
    item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=document.id)
    item_id = item.id
    db.execute(
        update(TrashItem)
        .where(TrashItem.id == item_id)
        .values(purge_at=datetime.now(timezone.utc) - timedelta(days=1))
    )
    db.commit()

    response = client.post(CRON_URL)

    assert response.status_code == 200
    payload = response.json()
    assert payload["code"] == 200
    assert payload["data"]["purged_count"] == 1
    assert payload["data"]["total_expired"] == 1
    assert payload["data"]["errors"] == []
    db.expire_all()
    assert db.get(TrashItem, item_id) is None


@pytest.mark.usefixtures("isolate_expired_items")
def test_auto_purge_with_valid_signature(client: TestClient, signed_cron):
    response = client.post(CRON_URL, headers={"Upstash-Signature": _sign(b"", CURRENT_KEY)})

    assert response.status_code == 200
    assert response.json()["data"]["purged_count"] == 0


def test_auto_purge_rejects_missing_or_invalid_signature(client: TestClient, signed_cron):
    missing = client.post(CRON_URL)
    assert missing.status_code == 401
    assert missing.json()["msg"] == "签名校验失败"

    forged = client.post(CRON_URL, headers={"Upstash-Signature": _sign(b"", "attacker-key")})
    assert forged.status_code == 401

    mismatched = client.post(
        CRON_URL,
        content=b'{"extra":true}',
        headers={"Upstash-Signature": _sign(b"", CURRENT_KEY), "Content-Type": "application/json"},
    )
    assert mismatched.status_code == 401
