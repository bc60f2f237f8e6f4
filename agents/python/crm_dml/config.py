from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _load_env() -> None:
    """Load .env (template) then .env.local with override=True so local values win."""
    pkg_dir = Path(__file__).resolve().parent
    env_base = pkg_dir.parent / ".env"
    env_local = pkg_dir.parent / ".env.local"
    load_dotenv(env_base, override=True)
    load_dotenv(env_local, override=True)


_load_env()


def env_str(key: str, default: str | None = None, required: bool = False) -> str | None:
    val = os.environ.get(key, default)
    if required and not val:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return val


# Paths
PYTHON_ROOT = Path(__file__).resolve().parents[1]  # .../agents/python

LOG_DIR = Path(env_str("LOG_DIR", str(PYTHON_ROOT / "logs"))).expanduser()
if not LOG_DIR.is_absolute():
    LOG_DIR = (PYTHON_ROOT / LOG_DIR).resolve()

# Salesforce connection
API_VERSION = env_str("SF_API_VERSION", "65.0")

# sObject Collections accept at most 200 records per request
BATCH_SIZE = 200


class Credentials:
    def __init__(self, client_id: str, username: str, login_url: str, audience: str, key_path: Path):
        self.client_id = client_id
        self.username = username
        self.login_url = login_url
        self.audience = audience
        self.key_path = key_path


def resolve_key_path(raw: str) -> Path:
    raw_key_path = Path(raw).expanduser()
    candidate_paths = []
    if raw_key_path.is_absolute():
        candidate_paths.append(raw_key_path)
    else:
        # Try resolving relative to agents/python, the repo root, and repo config/
        candidate_paths.append((PYTHON_ROOT / raw_key_path).resolve())
        candidate_paths.append((PYTHON_ROOT.parents[1] / raw_key_path).resolve())
        candidate_paths.append((PYTHON_ROOT.parents[1] / "config" / raw_key_path.name).resolve())

    for p in candidate_paths:
        if p.exists():
            return p
    raise FileNotFoundError(f"SF_JWT_KEY_PATH not found. Tried: {candidate_paths}")


def sf_credentials() -> Credentials:
    """Read the JWT bearer settings. Only needed when authenticating, so not evaluated at import."""
    return Credentials(
        client_id=env_str("SF_CLIENT_ID", required=True),
        username=env_str("SF_USERNAME", required=True),
        login_url=env_str("SF_LOGIN_URL", required=True),
        audience=env_str("SF_AUDIENCE", required=True),
        key_path=resolve_key_path(env_str("SF_JWT_KEY_PATH", required=True)),
    )


def ensure_log_dir() -> Path:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR
