from .records import STATUS_ORDERED, to_int, to_number, to_text

ACTION_ADD_PRODUCT = "ADD_PRODUCT"
ACTION_UPDATE_PRODUCT = "UPDATE_PRODUCT"
ACTION_DELETE_PRODUCT = "DELETE_PRODUCT"
ACTION_RESTOCK_PRODUCT = "RESTOCK_PRODUCT"

DEFAULT_PRODUCT_CATEGORY = "Umum"
LOW_STOCK_THRESHOLD = 5


class InventoryError(ValueError):
    pass


def _non_negative(value, label):
    number = to_number(value, None)
    if number is None or number < 0:
        raise InventoryError(f"{label} harus berupa angka dan tidak boleh negatif.")
    return number


def build_product_payload(data, product_id=None):
    """Payload ADD_PRODUCT (tanpa id) atau UPDATE_PRODUCT (dengan id)."""
    kode = to_text(data.get("kode"))
    nama = to_text(data.get("nama"))
    if not kode or not nama:
        raise InventoryError("Kode dan nama barang wajib diisi.")
    stok = _non_negative(data.get("stok"), "Stok")
    payload = {
        "kode": kode,
        "nama": nama,
        "harga_beli": _non_negative(data.get("harga_beli"), "Harga beli"),
        "harga_jual": _non_negative(data.get("harga_jual"), "Harga jual"),
        "stok": int(stok),
        "kategori": to_text(data.get("kategori")) or DEFAULT_PRODUCT_CATEGORY,
        "status_pemesanan": to_text(data.get("status_pemesanan")),
    }
    product_id = to_text(product_id)
    if product_id:
        payload["id"] = product_id
    return payload


def product_action(payload):
    return ACTION_UPDATE_PRODUCT if payload.get("id") else ACTION_ADD_PRODUCT


def build_restock_payload(product, qty, harga_beli=None):
    qty = to_int(qty)
    if qty <= 0:
        raise InventoryError("Jumlah restock harus lebih besar dari 0.")
    if harga_beli is None or harga_beli == "":
        unit_cost = product.harga_beli
    else:
        unit_cost = _non_negative(harga_beli, "Harga beli")
    return {
        "id": product.id,
        "nama": product.nama,
        "qty": qty,
        "harga_beli": unit_cost,
        "total": unit_cost * qty,
    }


def toggle_order_status(product):
    payload = product.to_dict()
    payload["status_pemesanan"] = "" if product.is_ordered else STATUS_ORDERED
    return payload


def low_stock(inventory, threshold=LOW_STOCK_THRESHOLD):
    return sorted(
        (item for item in inventory if item.stok < threshold),
        key=lambda item: (item.stok, item.nama),
    )


def list_categories(inventory):
    return sorted({item.kategori for item in inventory if item.kategori})


def find_product(inventory, product_id):
    for item in inventory:
        if item.id == product_id:
            return item
    return None
