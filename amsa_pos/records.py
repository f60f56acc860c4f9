"""
Record barang dan buku kas seperti yang dikirim endpoint spreadsheet.

Baris sheet datang sebagai JSON longgar: angka bisa berupa string, kosong,
atau tidak ada sama sekali. Konstruktor ``from_dict`` merapikannya.
"""
import math
from dataclasses import dataclass, field, asdict

STATUS_ORDERED = "ordered"


def to_number(value, default=0.0):
    if value is None or value == "":
        return default
    if not isinstance(value, (bool, int, float)):
        value = str(value).replace(",", "").strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    # NaN/Infinity tidak pernah jadi nominal yang sah
    if not math.isfinite(number):
        return default
    return number


def to_int(value, default=0):
    number = to_number(value, None)
    if number is None:
        return default
    return int(number)


def to_text(value):
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class Product:
    id: str
    kode: str = ""
    nama: str = ""
    harga_beli: float = 0.0
    harga_jual: float = 0.0
    stok: int = 0
    kategori: str = ""
    status_pemesanan: str = ""

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=to_text(data.get("id")),
            kode=to_text(data.get("kode")),
            nama=to_text(data.get("nama")),
            harga_beli=to_number(data.get("harga_beli")),
            harga_jual=to_number(data.get("harga_jual")),
            # stok negatif dari sheet dianggap habis
            stok=max(0, to_int(data.get("stok"))),
            kategori=to_text(data.get("kategori")),
            status_pemesanan=to_text(data.get("status_pemesanan")),
        )

    @property
    def is_ordered(self):
        return self.status_pemesanan == STATUS_ORDERED

    def to_dict(self):
        return asdict(self)


@dataclass
class LedgerEntry:
    id: str
    tanggal: str = ""
    deskripsi: str = ""
    debit: float = 0.0
    kredit: float = 0.0
    kategori: str = ""

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=to_text(data.get("id")),
            tanggal=to_text(data.get("tanggal")),
            deskripsi=to_text(data.get("deskripsi")),
            debit=to_number(data.get("debit")),
            kredit=to_number(data.get("kredit")),
            kategori=to_text(data.get("kategori")),
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class CartItem:
    product: Product
    qty: int = 1

    @property
    def subtotal(self):
        return self.product.harga_jual * self.qty

    def to_dict(self):
        return {
            "id": self.product.id,
            "qty": self.qty,
            "nama": self.product.nama,
            "harga": self.product.harga_jual,
        }


@dataclass
class Snapshot:
    """Salinan inventory dan buku kas terakhir yang berhasil dimuat."""

    inventory: list = field(default_factory=list)
    ledger: list = field(default_factory=list)
    stale: bool = False
    error: str = ""


def parse_products(rows):
    return [Product.from_dict(row) for row in rows or [] if isinstance(row, dict)]


def parse_ledger(rows):
    return [LedgerEntry.from_dict(row) for row in rows or [] if isinstance(row, dict)]
