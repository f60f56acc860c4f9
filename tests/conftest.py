# tests/conftest.py
import os
import pytest
from sqlalchemy.pool import StaticPool

# --- Paksa environment test yang aman ---
os.environ.setdefault("SECRET_KEY", "test")
# SQLite in-memory untuk tabel pengaturan
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
# Jangan pernah memanggil Google Sheet sungguhan saat test
os.environ["SHEET_DEMO_MODE"] = "1"

from amsa_pos import create_app, db  # noqa: E402
from amsa_pos.records import LedgerEntry, Product  # noqa: E402


@pytest.fixture()
def app():
    # app baru per test supaya data DemoSheet selalu bersih
    app = create_app(
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_ENGINE_OPTIONS": {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            },
            "SHEET_DEMO_MODE": True,
        }
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def demo_sheet(app):
    return app.extensions["amsa_pos"]["demo_sheet"]


@pytest.fixture()
def login(client):
    def _login(role="admin", username=None):
        with client.session_transaction() as session:
            session["user"] = {"username": username or role, "role": role}
        return client

    return _login


def make_entry(tanggal, kategori, debit=0, kredit=0, deskripsi="", entry_id=None):
    return LedgerEntry(
        id=entry_id or f"{kategori}-{tanggal}-{debit}-{kredit}",
        tanggal=tanggal,
        deskripsi=deskripsi or kategori,
        debit=float(debit),
        kredit=float(kredit),
        kategori=kategori,
    )


def make_product(product_id, harga_beli, stok, harga_jual=None, nama=None, kode=None, kategori="Umum"):
    return Product(
        id=product_id,
        kode=kode or f"BRG{product_id}",
        nama=nama or f"Barang {product_id}",
        harga_beli=float(harga_beli),
        harga_jual=float(harga_jual if harga_jual is not None else harga_beli),
        stok=stok,
        kategori=kategori,
    )
