"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below rather than reading `os.environ`
directly, to keep environment handling consistent.
"""

from pathlib import Path

from dotenv import load_dotenv
import os


def _project_root() -> Path:
    """Resolve project root (the directory holding app.py)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Existing environment variables win over .env values so tests can override them.
    """
    env_path = _project_root() / ".env"
    load_dotenv(env_path, override=False)


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def api_base_url() -> str:
    """Optional: backend REST base URL. Default http://localhost:5000/api."""
    return get_optional("AGBANK_API_URL", "http://localhost:5000/api").rstrip("/")


def api_timeout() -> int:
    """Optional: per-request timeout in seconds. Default 30."""
    return get_optional_int("AGBANK_API_TIMEOUT", 30)


def session_dir() -> Path:
    """Optional: directory holding one identity/token file per browser session."""
    val = get_optional("AGBANK_SESSION_DIR", "")
    if val:
        return Path(val)
    return _project_root() / "data" / "sessions"


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("AGBANK_LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    """Optional: log file path. Logs go to stderr only when unset."""
    val = get_optional("AGBANK_LOG_FILE", "")
    return Path(val) if val else None


def project_root() -> Path:
    """Project root directory."""
    return _project_root()
