import os
import re
from datetime import datetime

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

INDONESIAN_MONTHS = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]

_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

_LOCAL_TZ = None


def _resolve_local_tz():
    global _LOCAL_TZ
    if _LOCAL_TZ is not None:
        return _LOCAL_TZ
    tz_name = os.environ.get("APP_TIMEZONE") or os.environ.get("TZ")
    if tz_name:
        try:
            _LOCAL_TZ = ZoneInfo(tz_name)
            return _LOCAL_TZ
        except (ZoneInfoNotFoundError, ValueError):
            _LOCAL_TZ = None
    _LOCAL_TZ = datetime.now().astimezone().tzinfo
    return _LOCAL_TZ


def local_now():
    tz = _resolve_local_tz()
    if tz:
        return datetime.now(tz).replace(tzinfo=None)
    return datetime.now()


def now_iso():
    """Timestamp entri buku kas baru, format ISO seperti yang disimpan sheet."""
    return local_now().replace(microsecond=0).isoformat()


def current_period():
    return local_now().strftime("%Y-%m")


def is_valid_period(value):
    return bool(value) and bool(_PERIOD_RE.match(value))


def parse_period_param(value, default=None):
    """Ambil `YYYY-MM` dari query string; nilai tidak valid jatuh ke default."""
    value = (value or "").strip()
    if is_valid_period(value):
        return value
    return default


def format_period_id(period):
    if not is_valid_period(period):
        return "Semua Periode"
    year, month = period.split("-")
    return f"{INDONESIAN_MONTHS[int(month) - 1]} {year}"


def format_tanggal_id(value):
    """Format string tanggal ISO dari sheet menjadi '05 Januari 2025'."""
    if not value:
        return "-"
    text = str(value)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return f"{parsed.day:02d} {INDONESIAN_MONTHS[parsed.month - 1]} {parsed.year}"
