from __future__ import annotations

import time

import httpx
import jwt

from . import config


def _https(url: str) -> str:
    if not url.startswith("http"):
        return f"https://{url}"
    return url


def build_jwt_assertion(creds: config.Credentials) -> str:
    now = int(time.time())
    payload = {
        "iss": creds.client_id,
        "sub": creds.username,
        "aud": _https(creds.audience),
        "exp": now + 5 * 60,
    }
    key_bytes = creds.key_path.read_bytes()
    return jwt.encode(payload, key_bytes, algorithm="RS256")


def get_access_token(
    creds: config.Credentials | None = None,
    transport: httpx.BaseTransport | None = None,
) -> tuple[str, str]:
    """Return (access_token, instance_url)."""
    creds = creds or config.sf_credentials()
    assertion = build_jwt_assertion(creds)
    token_url = f"{_https(creds.login_url.rstrip('/'))}/services/oauth2/token"
    data = {
        "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
        "assertion": assertion,
        "client_id": creds.client_id,
    }
    with httpx.Client(timeout=30, transport=transport) as client:
        resp = client.post(token_url, data=data)
    resp.raise_for_status()
    j = resp.json()
    return j["access_token"], j["instance_url"]
