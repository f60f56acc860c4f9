import logging
import os
from typing import Optional

from dotenv import load_dotenv, dotenv_values

# URL Web App Google Apps Script hasil deploy (format .../macros/s/XXXXX/exec)
DEFAULT_SCRIPT_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbyWd-WKXpRJaRmA3U_EPEz_ny0SjmKuIFKkmfJ95xLGwbHKMwkYkwopuUYtLpHTgpxw0w/exec"
)
DEFAULT_TIMEOUT = 30.0

_ENV_LOADED = False
_DOTENV_VALUES = {}


def load_env_once(dotenv_path: Optional[str] = None) -> None:
    """
    Load .env sekali saja dan simpan nilai mentah dari file .env di _DOTENV_VALUES.
    """
    global _ENV_LOADED, _DOTENV_VALUES
    if _ENV_LOADED:
        return
    path = dotenv_path or os.path.join(os.getcwd(), ".env")
    load_dotenv(path)
    _DOTENV_VALUES = dotenv_values(path)
    _ENV_LOADED = True


def _first_nonempty(*vals: Optional[str]) -> Optional[str]:
    for v in vals:
        if v:
            v = v.strip()
            if v:
                return v
    return None


def _get_value(key: str) -> Optional[str]:
    # Prioritas: ENV -> .env mentah
    return _first_nonempty(os.environ.get(key), _DOTENV_VALUES.get(key))


def _normalize_pg(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def resolve_database_uri() -> str:
    """
    Database lokal hanya menyimpan pengaturan aplikasi (URL endpoint).
    Prioritas:
      1) SQLALCHEMY_DATABASE_URI (ENV/.env)
      2) DATABASE_URL (ENV/.env)
      3) Fallback sqlite:///instance/amsa_pos.db
    """
    url = _get_value("SQLALCHEMY_DATABASE_URI") or _get_value("DATABASE_URL")
    if url:
        return _normalize_pg(url)

    inst = os.path.abspath(os.path.join(os.getcwd(), "instance"))
    os.makedirs(inst, exist_ok=True)
    return f"sqlite:///{os.path.join(inst, 'amsa_pos.db')}"


def resolve_secret_key() -> str:
    return _first_nonempty(_get_value("SECRET_KEY"), "dev-secret-key")  # jangan pakai di production


def resolve_sheet_api_url() -> str:
    """
    URL endpoint spreadsheet: SHEET_API_URL (ENV/.env), lalu URL bawaan.
    SHEET_API_URL yang ditulis tapi dikosongkan berarti tanpa endpoint
    (Mode Demo). Pengaturan admin di database lebih diutamakan (lihat routes).
    """
    if "SHEET_API_URL" in os.environ or "SHEET_API_URL" in _DOTENV_VALUES:
        return _get_value("SHEET_API_URL") or ""
    return DEFAULT_SCRIPT_URL


def resolve_demo_mode() -> bool:
    value = (_get_value("SHEET_DEMO_MODE") or "").lower()
    return value in ("1", "true", "yes", "on")


def resolve_request_timeout() -> float:
    raw = _get_value("SHEET_TIMEOUT")
    try:
        timeout = float(raw) if raw else DEFAULT_TIMEOUT
    except ValueError:
        return DEFAULT_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_TIMEOUT


def resolve_log_level() -> int:
    name = (_get_value("APP_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else logging.INFO
