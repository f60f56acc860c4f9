"""
Kontrak mutasi buku kas: modal, biaya, ambil laba (prive), edit dan hapus.

Setiap payload divalidasi di sini sebelum dikirim; kegagalan validasi
memunculkan BookkeepingError dan tidak ada yang dikirim ke server.
"""
import logging

from .ledger import EXPENSE_CATEGORIES, LedgerCategory, parse_category, saldo_kas
from .records import to_number, to_text
from .time_utils import now_iso

logger = logging.getLogger(__name__)

ACTION_ADD_CAPITAL = "ADD_CAPITAL"
ACTION_ADD_EXPENSE = "ADD_EXPENSE"
ACTION_WITHDRAW_PROFIT = "WITHDRAW_PROFIT"
ACTION_UPDATE_LEDGER = "UPDATE_LEDGER"
ACTION_DELETE_LEDGER = "DELETE_LEDGER"

DEFAULT_EXPENSE_CATEGORY = EXPENSE_CATEGORIES[-1]


class BookkeepingError(ValueError):
    pass


def _positive_amount(value, label="Nominal"):
    amount = to_number(value, None)
    if amount is None or amount <= 0:
        raise BookkeepingError(f"{label} harus lebih besar dari 0.")
    return amount


def _entry_payload(tanggal, deskripsi, debit, kredit, kategori):
    return {
        "tanggal": tanggal or now_iso(),
        "deskripsi": deskripsi,
        "debit": debit,
        "kredit": kredit,
        "kategori": kategori,
    }


def build_capital_payload(amount, deskripsi=None, tanggal=None):
    amount = _positive_amount(amount, "Nominal modal")
    return _entry_payload(
        tanggal,
        to_text(deskripsi) or "Tambahan Modal",
        amount,
        0.0,
        LedgerCategory.MODAL.value,
    )


def build_expense_payload(amount, kategori=None, deskripsi=None, tanggal=None):
    amount = _positive_amount(amount, "Nominal biaya")
    kategori = to_text(kategori) or DEFAULT_EXPENSE_CATEGORY
    if parse_category(kategori) in (LedgerCategory.MODAL, LedgerCategory.PENJUALAN):
        raise BookkeepingError(f"Kategori '{kategori}' adalah pemasukan, bukan biaya.")
    return _entry_payload(tanggal, to_text(deskripsi) or kategori, 0.0, amount, kategori)


def validate_withdrawal(amount, saldo):
    """Ambil laba dibatasi kas yang benar-benar ada, bukan laba di atas kertas."""
    amount = _positive_amount(amount, "Nominal penarikan")
    if amount > saldo:
        raise BookkeepingError(
            f"Saldo kas tidak cukup. Maksimal yang bisa diambil Rp {max(saldo, 0):,.0f}."
        )
    return amount


def build_withdrawal_payload(amount, ledger, deskripsi=None, tanggal=None):
    amount = validate_withdrawal(amount, saldo_kas(ledger))
    return _entry_payload(
        tanggal,
        to_text(deskripsi) or "Ambil Laba (Prive)",
        0.0,
        amount,
        LedgerCategory.PRIVE.value,
    )


def build_ledger_update_payload(entry_id, tanggal, deskripsi, debit, kredit, kategori):
    entry_id = to_text(entry_id)
    if not entry_id:
        raise BookkeepingError("ID entri wajib diisi.")
    debit = to_number(debit, None)
    kredit = to_number(kredit, None)
    if debit is None or kredit is None or debit < 0 or kredit < 0:
        raise BookkeepingError("Debit dan kredit harus berupa angka tidak negatif.")
    if debit == 0 and kredit == 0:
        raise BookkeepingError("Isi salah satu dari debit atau kredit.")
    if debit > 0 and kredit > 0:
        logger.warning("Entri %s berisi debit dan kredit sekaligus", entry_id)
    kategori = to_text(kategori)
    if not kategori:
        raise BookkeepingError("Kategori wajib diisi.")
    payload = _entry_payload(to_text(tanggal), to_text(deskripsi), debit, kredit, kategori)
    payload["id"] = entry_id
    return payload


def build_ledger_delete_payload(entry_id):
    entry_id = to_text(entry_id)
    if not entry_id:
        raise BookkeepingError("ID entri wajib diisi.")
    return {"id": entry_id}


def submit(backend, action, payload):
    """Kirim satu mutasi; SheetApiError diteruskan ke pemanggil."""
    return backend.post(action, payload)
