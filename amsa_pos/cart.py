"""
Keranjang kasir. Di session hanya disimpan ``[{"id", "qty"}]``; harga dan stok
selalu diambil dari snapshot inventory terbaru.
"""
from .records import CartItem, to_number

PAYMENT_CASH = "Tunai"
PAYMENT_QRIS = "QRIS"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_QRIS)

ACTION_CHECKOUT = "CHECKOUT"


class CartError(ValueError):
    pass


def search_products(inventory, term):
    term = (term or "").strip().lower()
    if not term:
        return list(inventory)
    return [
        item
        for item in inventory
        if term in (item.nama or "").lower() or term in (item.kode or "").lower()
    ]


def _find_line(cart, product_id):
    for line in cart:
        if line.get("id") == product_id:
            return line
    return None


def add_to_cart(cart, product):
    if product.stok <= 0:
        raise CartError("Stok habis!")
    cart = [dict(line) for line in cart]
    line = _find_line(cart, product.id)
    if line is None:
        cart.append({"id": product.id, "qty": 1})
    elif line["qty"] < product.stok:
        line["qty"] += 1
    return cart


def update_qty(cart, product_id, delta, inventory):
    stock = {item.id: item.stok for item in inventory}
    updated = []
    for line in cart:
        line = dict(line)
        if line.get("id") == product_id:
            new_qty = max(0, line["qty"] + delta)
            # melebihi stok diabaikan
            if new_qty <= stock.get(product_id, 0):
                line["qty"] = new_qty
        if line["qty"] > 0:
            updated.append(line)
    return updated


def remove_from_cart(cart, product_id):
    return [dict(line) for line in cart if line.get("id") != product_id]


def resolve_cart(cart, inventory):
    """Gabungkan baris session dengan data barang; barang yang hilang dibuang."""
    products = {item.id: item for item in inventory}
    items = []
    for line in cart:
        product = products.get(line.get("id"))
        if product is None:
            continue
        qty = min(int(line.get("qty") or 0), product.stok)
        if qty > 0:
            items.append(CartItem(product=product, qty=qty))
    return items


def cart_total(items):
    return sum(item.subtotal for item in items)


def build_checkout_payload(items, payment_method, amount_paid=None):
    if not items:
        raise CartError("Keranjang masih kosong.")
    if payment_method not in PAYMENT_METHODS:
        raise CartError("Metode pembayaran tidak dikenal.")
    total = cart_total(items)
    if payment_method == PAYMENT_QRIS:
        bayar = total
    else:
        bayar = to_number(amount_paid, None)
        if bayar is None or bayar < total:
            raise CartError(f"Uang yang dibayar kurang dari total Rp {total:,.0f}.")
    return {
        "items": [item.to_dict() for item in items],
        "total": total,
        "metode_pembayaran": payment_method,
        "bayar": bayar,
        "kembalian": bayar - total,
    }
