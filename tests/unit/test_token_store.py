import json

import pytest

import whoop_mcp.tokens as tokens
from whoop_mcp.tokens import TokenRecord, TokenStore


def test_load_missing_file_means_unauthenticated(tmp_path):
    store = TokenStore(tmp_path / "nope" / "tokens.json")
    assert store.load() is None
    assert store.record is None
    assert store.is_expired() is True


def test_load_ignores_garbage(tmp_path):
    p = tmp_path / "tokens.json"
    p.write_text("{not json", encoding="utf-8")
    store = TokenStore(p)
    assert store.load() is None
    assert store.access_token is None


def test_load_ignores_non_object_json(tmp_path):
    p = tmp_path / "tokens.json"
    p.write_text("[1, 2, 3]", encoding="utf-8")
    assert TokenStore(p).load() is None


def test_save_stamps_stored_at_and_creates_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(tokens, "now_ms", lambda: 1_700_000_000_000)
    p = tmp_path / "deep" / "dir" / "tokens.json"
    store = TokenStore(p)

    saved = store.save(TokenRecord(access_token="t1", refresh_token="r1", expires_in=3600, token_type="bearer"))

    assert saved.stored_at == 1_700_000_000_000
    assert store.record == saved
    on_disk = json.loads(p.read_text(encoding="utf-8"))
    assert on_disk == {
        "access_token": "t1",
        "refresh_token": "r1",
        "expires_in": 3600,
        "token_type": "bearer",
        "stored_at": 1_700_000_000_000,
    }
    # no temp files left behind
    assert [f.name for f in p.parent.iterdir()] == ["tokens.json"]


def test_save_overrides_externally_supplied_stored_at(tmp_path, monkeypatch):
    monkeypatch.setattr(tokens, "now_ms", lambda: 42)
    store = TokenStore(tmp_path / "tokens.json")
    saved = store.save(TokenRecord(access_token="t", expires_in=10, stored_at=1))
    assert saved.stored_at == 42


def test_save_then_load_roundtrip_keeps_extra_fields(tmp_path):
    p = tmp_path / "tokens.json"
    TokenStore(p).save(TokenRecord.model_validate({"access_token": "t", "expires_in": 60, "id_token": "x"}))

    fresh = TokenStore(p)
    rec = fresh.load()
    assert rec is not None
    assert rec.access_token == "t"
    assert rec.model_dump()["id_token"] == "x"


@pytest.mark.parametrize(
    "age_ms,expected",
    [
        (0, False),
        (3600_000 - 60_000 - 1, False),  # just inside the buffer
        (3600_000 - 60_000, False),  # exactly at the boundary: not strictly past it
        (3600_000 - 60_000 + 1, True),
        (3600_001, True),
    ],
)
def test_is_expired_boundary(tmp_path, age_ms, expected):
    now = 10_000_000_000
    store = TokenStore(tmp_path / "tokens.json")
    store.record = TokenRecord(access_token="a", refresh_token="r", expires_in=3600, stored_at=now - age_ms)
    assert store.is_expired(now=now) is expected


def test_is_expired_without_timing_fields(tmp_path):
    store = TokenStore(tmp_path / "tokens.json")
    store.record = TokenRecord(access_token="a")
    assert store.is_expired() is True


def test_token_file_one_ms_past_window_is_expired(tmp_path):
    p = tmp_path / "tokens.json"
    stored_at = tokens.now_ms() - 3600001
    p.write_text(
        json.dumps({"access_token": "a", "refresh_token": "r", "expires_in": 3600, "stored_at": stored_at}),
        encoding="utf-8",
    )
    store = TokenStore(p)
    store.load()
    assert store.is_expired() is True
