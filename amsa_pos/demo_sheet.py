"""
Pengganti endpoint spreadsheet di memori untuk "Mode Demo".

Dipakai ketika URL endpoint belum diatur. Menjawab aksi GET/POST yang sama
dengan Apps Script dan menerapkannya ke list lokal.
"""
import copy
import logging
import uuid

from .records import parse_ledger, parse_products, to_int, to_number, to_text
from .sheet_client import SheetApiError
from .time_utils import now_iso

logger = logging.getLogger(__name__)

MOCK_PRODUCTS = [
    {"id": "1", "kode": "BRG001", "nama": "Indomie Goreng", "harga_beli": 2500, "harga_jual": 3500, "stok": 100, "kategori": "Makanan"},
    {"id": "2", "kode": "BRG002", "nama": "Aqua Botol 600ml", "harga_beli": 3000, "harga_jual": 5000, "stok": 48, "kategori": "Minuman"},
    {"id": "3", "kode": "BRG003", "nama": "Telur Ayam (kg)", "harga_beli": 24000, "harga_jual": 28000, "stok": 15, "kategori": "Sembako"},
    {"id": "4", "kode": "BRG004", "nama": "Beras Premium 5kg", "harga_beli": 65000, "harga_jual": 75000, "stok": 10, "kategori": "Sembako"},
    {"id": "5", "kode": "BRG005", "nama": "Kopi Kapal Api", "harga_beli": 1200, "harga_jual": 2000, "stok": 200, "kategori": "Minuman"},
]

MOCK_LEDGER = [
    {"id": "1", "tanggal": "2025-01-02T08:00:00", "deskripsi": "Modal Awal", "debit": 5000000, "kredit": 0, "kategori": "Modal"},
    {"id": "2", "tanggal": "2025-01-02T09:00:00", "deskripsi": "Belanja Stok Awal", "debit": 0, "kredit": 1500000, "kategori": "Belanja Stok"},
]

DEFAULT_USERS = [
    {"username": "admin", "password": "admin", "role": "admin"},
    {"username": "kasir", "password": "kasir", "role": "kasir"},
    {"username": "manager", "password": "manager", "role": "manager"},
]


class DemoSheet:
    def __init__(self, products=None, ledger=None, users=None):
        self.products = copy.deepcopy(MOCK_PRODUCTS if products is None else products)
        self.ledger = copy.deepcopy(MOCK_LEDGER if ledger is None else ledger)
        self.users = copy.deepcopy(DEFAULT_USERS if users is None else users)
        self.posted = []

    def get_inventory(self):
        return parse_products(self.products)

    def get_ledger(self):
        return parse_ledger(self.ledger)

    def post(self, action, payload):
        handler = getattr(self, f"_do_{action.lower()}", None)
        if handler is None:
            raise SheetApiError(f"Aksi tidak dikenal: {action}")
        logger.info("[DEMO] %s %s", action, payload)
        result = handler(payload or {})
        if result.get("status") == "error":
            raise SheetApiError(result.get("message") or "Error")
        self.posted.append((action, payload))
        return result

    def _new_id(self):
        return uuid.uuid4().hex[:8]

    def _find_product(self, product_id):
        for row in self.products:
            if to_text(row.get("id")) == to_text(product_id):
                return row
        return None

    def _find_entry(self, entry_id):
        for row in self.ledger:
            if to_text(row.get("id")) == to_text(entry_id):
                return row
        return None

    def _append_entry(self, deskripsi, kategori, debit=0.0, kredit=0.0, tanggal=None):
        entry = {
            "id": self._new_id(),
            "tanggal": tanggal or now_iso(),
            "deskripsi": deskripsi,
            "debit": debit,
            "kredit": kredit,
            "kategori": kategori,
        }
        self.ledger.append(entry)
        return entry

    def _do_checkout(self, payload):
        items = payload.get("items") or []
        for item in items:
            row = self._find_product(item.get("id"))
            if row is None:
                return {"status": "error", "message": f"Barang {item.get('id')} tidak ditemukan"}
            if to_int(row.get("stok")) < to_int(item.get("qty")):
                return {"status": "error", "message": f"Stok {row.get('nama')} tidak cukup"}
        for item in items:
            row = self._find_product(item.get("id"))
            row["stok"] = to_int(row.get("stok")) - to_int(item.get("qty"))
        metode = payload.get("metode_pembayaran") or "Tunai"
        trx_id = self._new_id()
        self._append_entry(
            f"Penjualan #{trx_id} ({metode})",
            "Penjualan",
            debit=to_number(payload.get("total")),
        )
        return {"status": "success", "id": trx_id}

    def _do_restock_product(self, payload):
        row = self._find_product(payload.get("id"))
        if row is None:
            return {"status": "error", "message": "Barang tidak ditemukan"}
        qty = to_int(payload.get("qty"))
        row["stok"] = to_int(row.get("stok")) + qty
        row["harga_beli"] = to_number(payload.get("harga_beli"), to_number(row.get("harga_beli")))
        row["status_pemesanan"] = ""
        self._append_entry(
            f"Restock {row.get('nama')} x{qty}",
            "Belanja Stok",
            kredit=to_number(payload.get("total")),
        )
        return {"status": "success"}

    def _do_add_product(self, payload):
        row = dict(payload)
        row["id"] = self._new_id()
        self.products.append(row)
        return {"status": "success", "id": row["id"]}

    def _do_update_product(self, payload):
        row = self._find_product(payload.get("id"))
        if row is None:
            return {"status": "error", "message": "Barang tidak ditemukan"}
        row.update(payload)
        return {"status": "success"}

    def _do_delete_product(self, payload):
        row = self._find_product(payload.get("id"))
        if row is None:
            return {"status": "error", "message": "Barang tidak ditemukan"}
        self.products.remove(row)
        return {"status": "success"}

    def _add_ledger_payload(self, payload):
        entry = self._append_entry(
            to_text(payload.get("deskripsi")),
            to_text(payload.get("kategori")),
            debit=to_number(payload.get("debit")),
            kredit=to_number(payload.get("kredit")),
            tanggal=payload.get("tanggal"),
        )
        return {"status": "success", "id": entry["id"]}

    _do_add_capital = _add_ledger_payload
    _do_add_expense = _add_ledger_payload
    _do_withdraw_profit = _add_ledger_payload

    def _do_update_ledger(self, payload):
        row = self._find_entry(payload.get("id"))
        if row is None:
            return {"status": "error", "message": "Entri tidak ditemukan"}
        row.update(payload)
        return {"status": "success"}

    def _do_delete_ledger(self, payload):
        row = self._find_entry(payload.get("id"))
        if row is None:
            return {"status": "error", "message": "Entri tidak ditemukan"}
        self.ledger.remove(row)
        return {"status": "success"}

    def _do_login(self, payload):
        username = to_text(payload.get("username")).lower()
        password = payload.get("password") or ""
        for user in self.users:
            if user["username"] == username and user["password"] == password:
                return {
                    "status": "success",
                    "user": {"username": user["username"], "role": user["role"]},
                }
        return {"status": "error", "message": "Username atau password salah!"}

    def _do_reset_users(self, payload):
        self.users = copy.deepcopy(DEFAULT_USERS)
        return {"status": "success", "message": "Akun pengguna dikembalikan ke default."}
