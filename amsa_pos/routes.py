from flask import (
    Blueprint,
    render_template,
    request,
    redirect,
    flash,
    url_for,
    session,
    g,
    jsonify,
    current_app,
)
from functools import wraps
from urllib.parse import urlparse, urljoin
import logging

from amsa_pos.bookkeeping import (
    ACTION_ADD_CAPITAL,
    ACTION_ADD_EXPENSE,
    ACTION_DELETE_LEDGER,
    ACTION_UPDATE_LEDGER,
    ACTION_WITHDRAW_PROFIT,
    BookkeepingError,
    build_capital_payload,
    build_expense_payload,
    build_ledger_delete_payload,
    build_ledger_update_payload,
    build_withdrawal_payload,
    submit,
)
from amsa_pos.cart import (
    ACTION_CHECKOUT,
    CartError,
    add_to_cart,
    build_checkout_payload,
    cart_total,
    remove_from_cart,
    resolve_cart,
    search_products,
    update_qty,
)
from amsa_pos.exports import inventory_rows, ledger_rows, report_sheets, xlsx_response
from amsa_pos.forms import (
    CapitalForm,
    CheckoutForm,
    ExpenseForm,
    LedgerEntryForm,
    LoginForm,
    ProductForm,
    RestockForm,
    SettingsForm,
    WithdrawForm,
)
from amsa_pos.inventory import (
    ACTION_DELETE_PRODUCT,
    ACTION_RESTOCK_PRODUCT,
    ACTION_UPDATE_PRODUCT,
    InventoryError,
    build_product_payload,
    build_restock_payload,
    find_product,
    list_categories,
    low_stock,
    product_action,
    toggle_order_status,
)
from amsa_pos.ledger import (
    EXPENSE_CATEGORIES,
    LedgerCategory,
    build_financial_report,
    classify_entry,
    filter_by_period,
    ledger_totals,
    sort_ledger,
)
from amsa_pos.models import (
    SETTING_SHEET_API_URL,
    delete_setting,
    get_setting,
    set_setting,
)
from amsa_pos.records import Snapshot
from amsa_pos.sheet_client import SheetApiError, SheetClient, load_snapshot
from amsa_pos.time_utils import current_period, parse_period_param

bp = Blueprint("main", __name__)

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_KASIR = "kasir"
ALL_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_KASIR}
ALL_ROLE_CHOICES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_KASIR)
REPORT_ROLES = (ROLE_ADMIN, ROLE_MANAGER)
ADMIN_ONLY = (ROLE_ADMIN,)

CART_SESSION_KEY = "cart"


def _is_safe_redirect_target(target: str) -> bool:
    if not target:
        return False
    ref_url = urlparse(request.host_url)
    test_url = urlparse(urljoin(request.host_url, target))
    return test_url.scheme in ("http", "https") and ref_url.netloc == test_url.netloc


def _accepts_json():
    return (
        request.path.startswith("/api/")
        or request.is_json
        or (request.accept_mimetypes and request.accept_mimetypes.best == "application/json")
    )


def _auth_required_response():
    if _accepts_json():
        return jsonify({"error": "Authentication required"}), 401

    flash("Silakan login untuk mengakses halaman tersebut.", "warning")
    next_target = request.full_path if request.method == "GET" else request.path
    if not _is_safe_redirect_target(next_target):
        next_target = url_for("main.pos")
    return redirect(url_for("main.login", next=next_target))


def _forbidden_response(allowed_roles):
    if _accepts_json():
        return (
            jsonify(
                {
                    "error": "Forbidden",
                    "allowed_roles": sorted(r for r in allowed_roles),
                }
            ),
            403,
        )

    flash("Anda tidak memiliki akses ke halaman tersebut.", "danger")
    return redirect(url_for("main.pos"))


def get_current_user():
    user = session.get("user")
    if not isinstance(user, dict) or user.get("role") not in ALL_ROLES:
        return None
    return user


def login_required(view_func):
    @wraps(view_func)
    def wrapped_view(*args, **kwargs):
        if not get_current_user():
            return _auth_required_response()
        return view_func(*args, **kwargs)

    return wrapped_view


def roles_required(*allowed_roles, allow_admin=True):
    allowed_set = {role.lower() for role in allowed_roles if role}

    def decorator(view_func):
        @wraps(view_func)
        def wrapped_view(*args, **kwargs):
            user = get_current_user()
            if not user:
                return _auth_required_response()

            user_role = (user.get("role") or "").lower()
            if allow_admin and user_role == ROLE_ADMIN:
                return view_func(*args, **kwargs)

            if allowed_set and user_role in allowed_set:
                return view_func(*args, **kwargs)

            return _forbidden_response(allowed_set or ALL_ROLES)

        return wrapped_view

    return decorator


def _safe_next_url(default_endpoint="main.pos", candidate=None):
    target = candidate or request.args.get("next")
    if target and _is_safe_redirect_target(target):
        return target
    return url_for(default_endpoint)


def _state():
    return current_app.extensions["amsa_pos"]


def get_api_url():
    """URL endpoint aktif: pengaturan admin, lalu ENV/.env, lalu bawaan."""
    return get_setting(SETTING_SHEET_API_URL) or current_app.config.get("SHEET_API_URL") or ""


def is_demo_mode():
    if current_app.config.get("SHEET_DEMO_MODE"):
        return True
    return not get_api_url()


def get_backend():
    if "backend" not in g:
        if is_demo_mode():
            g.backend = _state()["demo_sheet"]
        else:
            g.backend = SheetClient(get_api_url(), timeout=current_app.config["SHEET_TIMEOUT"])
    return g.backend


def get_snapshot():
    if "snapshot" in g:
        return g.snapshot

    state = _state()
    snapshot = load_snapshot(get_backend(), state["last_snapshot"])
    if snapshot.stale:
        logging.warning("Memakai data terakhir: %s", snapshot.error)
        flash(
            f"{snapshot.error} Angka yang tampil memakai data terakhir yang berhasil dimuat.",
            "danger",
        )
    else:
        state["last_snapshot"] = snapshot
    g.snapshot = snapshot
    return snapshot


def _post_mutation(action, payload, success_message):
    """Kirim satu mutasi ke server; kembalikan True jika berhasil."""
    try:
        submit(get_backend(), action, payload)
    except SheetApiError as exc:
        logging.exception("Gagal mengirim aksi %s", action)
        flash(exc.message, "danger")
        return False
    flash(success_message, "success")
    return True


def _get_cart():
    cart = session.get(CART_SESSION_KEY)
    return cart if isinstance(cart, list) else []


def _save_cart(cart):
    session[CART_SESSION_KEY] = cart
    session.modified = True


def _flash_form_errors(form):
    for field_name, errors in form.errors.items():
        label = getattr(form, field_name).label.text if hasattr(form, field_name) else field_name
        for error in errors:
            flash(f"{label}: {error}", "warning")


@bp.route("/login", methods=["GET", "POST"])
def login():
    if get_current_user():
        return redirect(_safe_next_url())

    form = LoginForm()
    next_value = request.args.get("next")
    if request.method == "POST":
        next_value = request.form.get("next") or next_value
        if form.validate_on_submit():
            try:
                result = get_backend().post(
                    "LOGIN",
                    {"username": form.username.data.strip(), "password": form.password.data},
                )
            except SheetApiError as exc:
                flash(exc.message, "danger")
            else:
                user = result.get("user") or {}
                role = (user.get("role") or "").lower()
                if role not in ALL_ROLES:
                    flash("Peran pengguna tidak dikenal.", "danger")
                else:
                    session.clear()
                    session["user"] = {
                        "username": user.get("username") or form.username.data.strip(),
                        "role": role,
                    }
                    flash("Login berhasil!", "success")
                    return redirect(_safe_next_url(candidate=next_value))
        else:
            flash("Username dan password wajib diisi.", "warning")

    return render_template("login.html", form=form, next=next_value)


@bp.route("/logout")
@login_required
def logout():
    session.clear()
    flash("Anda telah keluar.", "info")
    return redirect(url_for("main.login"))


@bp.route("/")
@login_required
def index():
    return redirect(url_for("main.pos"))


@bp.route("/pos")
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def pos():
    snapshot = get_snapshot()
    search_term = (request.args.get("q") or "").strip()
    products = search_products(snapshot.inventory, search_term)
    cart_items = resolve_cart(_get_cart(), snapshot.inventory)

    return render_template(
        "pos.html",
        products=products,
        search_term=search_term,
        cart_items=cart_items,
        cart_total=cart_total(cart_items),
        form=CheckoutForm(),
    )


@bp.route("/pos/cart/add/<product_id>", methods=["POST"])
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def cart_add(product_id):
    snapshot = get_snapshot()
    product = find_product(snapshot.inventory, product_id)
    if product is None:
        flash("Barang tidak ditemukan.", "warning")
        return redirect(url_for("main.pos"))
    try:
        _save_cart(add_to_cart(_get_cart(), product))
    except CartError as exc:
        flash(str(exc), "warning")
    return redirect(url_for("main.pos", q=request.form.get("q") or None))


@bp.route("/pos/cart/update/<product_id>", methods=["POST"])
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def cart_update(product_id):
    try:
        delta = int(request.form.get("delta", 0))
    except (TypeError, ValueError):
        delta = 0
    snapshot = get_snapshot()
    _save_cart(update_qty(_get_cart(), product_id, delta, snapshot.inventory))
    return redirect(url_for("main.pos"))


@bp.route("/pos/cart/remove/<product_id>", methods=["POST"])
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def cart_remove(product_id):
    _save_cart(remove_from_cart(_get_cart(), product_id))
    return redirect(url_for("main.pos"))


@bp.route("/pos/cart/clear", methods=["POST"])
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def cart_clear():
    _save_cart([])
    return redirect(url_for("main.pos"))


@bp.route("/pos/checkout", methods=["POST"])
@login_required
@roles_required(*ALL_ROLE_CHOICES)
def checkout():
    form = CheckoutForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.pos"))

    snapshot = get_snapshot()
    cart_items = resolve_cart(_get_cart(), snapshot.inventory)
    try:
        payload = build_checkout_payload(
            cart_items, form.metode_pembayaran.data, form.bayar.data
        )
    except CartError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.pos"))

    payload["kasir"] = get_current_user()["username"]
    message = f"Transaksi berhasil! Total Rp {payload['total']:,.0f}".replace(",", ".")
    if payload["kembalian"] > 0:
        message += f", kembalian Rp {payload['kembalian']:,.0f}".replace(",", ".")
    if _post_mutation(ACTION_CHECKOUT, payload, message):
        _save_cart([])
    return redirect(url_for("main.pos"))


@bp.route("/inventory")
@login_required
@roles_required(*ADMIN_ONLY)
def inventory():
    snapshot = get_snapshot()
    edit_id = request.args.get("edit")
    editing = find_product(snapshot.inventory, edit_id) if edit_id else None
    form = ProductForm(obj=editing) if editing else ProductForm()

    return render_template(
        "inventory.html",
        products=snapshot.inventory,
        low_stock_products=low_stock(snapshot.inventory),
        categories=list_categories(snapshot.inventory),
        form=form,
        editing=editing,
        restock_form=RestockForm(),
    )


@bp.route("/inventory/save", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def save_product():
    form = ProductForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.inventory"))

    try:
        payload = build_product_payload(
            {
                "kode": form.kode.data,
                "nama": form.nama.data,
                "kategori": form.kategori.data,
                "harga_beli": form.harga_beli.data,
                "harga_jual": form.harga_jual.data,
                "stok": form.stok.data or 0,
                "status_pemesanan": request.form.get("status_pemesanan"),
            },
            product_id=form.id.data,
        )
    except InventoryError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.inventory"))

    action = product_action(payload)
    label = "diperbarui" if action == ACTION_UPDATE_PRODUCT else "ditambahkan"
    _post_mutation(action, payload, f"Barang {payload['nama']} berhasil {label}.")
    return redirect(url_for("main.inventory"))


@bp.route("/inventory/delete/<product_id>", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def delete_product(product_id):
    _post_mutation(ACTION_DELETE_PRODUCT, {"id": product_id}, "Barang berhasil dihapus.")
    return redirect(url_for("main.inventory"))


@bp.route("/inventory/restock/<product_id>", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def restock_product(product_id):
    snapshot = get_snapshot()
    product = find_product(snapshot.inventory, product_id)
    if product is None:
        flash("Barang tidak ditemukan.", "warning")
        return redirect(url_for("main.inventory"))

    form = RestockForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.inventory"))

    try:
        payload = build_restock_payload(product, form.qty.data, form.harga_beli.data)
    except InventoryError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.inventory"))

    _post_mutation(
        ACTION_RESTOCK_PRODUCT,
        payload,
        f"Restock {product.nama} sebanyak {payload['qty']} berhasil dicatat.",
    )
    return redirect(url_for("main.inventory"))


@bp.route("/inventory/order-status/<product_id>", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def toggle_order(product_id):
    snapshot = get_snapshot()
    product = find_product(snapshot.inventory, product_id)
    if product is None:
        flash("Barang tidak ditemukan.", "warning")
        return redirect(url_for("main.inventory"))

    payload = toggle_order_status(product)
    label = "ditandai sudah dipesan" if payload["status_pemesanan"] else "tanda pesanan dihapus"
    _post_mutation(ACTION_UPDATE_PRODUCT, payload, f"{product.nama} {label}.")
    return redirect(url_for("main.inventory"))


@bp.route("/inventory/export")
@login_required
@roles_required(*ADMIN_ONLY)
def export_inventory():
    rows = inventory_rows(get_snapshot().inventory)
    if not rows:
        flash("Tidak ada data untuk diekspor.", "warning")
        return redirect(url_for("main.inventory"))
    return xlsx_response({"Stok Barang": rows}, "Stok_Barang")


@bp.route("/ledger")
@login_required
@roles_required(*REPORT_ROLES)
def ledger():
    snapshot = get_snapshot()
    period = parse_period_param(request.args.get("bulan"))
    entries = sort_ledger(filter_by_period(snapshot.ledger, period))

    return render_template(
        "ledger.html",
        entries=[(entry, classify_entry(entry)) for entry in entries],
        totals=ledger_totals(entries),
        overall=ledger_totals(snapshot.ledger),
        period=period,
        capital_form=CapitalForm(),
        expense_form=ExpenseForm(),
        entry_form=LedgerEntryForm(),
        category_choices=[category.value for category in LedgerCategory] + list(EXPENSE_CATEGORIES),
    )


@bp.route("/ledger/capital", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def add_capital():
    form = CapitalForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.ledger"))
    try:
        payload = build_capital_payload(form.nominal.data, form.deskripsi.data)
    except BookkeepingError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.ledger"))

    _post_mutation(ACTION_ADD_CAPITAL, payload, "Modal berhasil dicatat.")
    return redirect(url_for("main.ledger"))


@bp.route("/ledger/expense", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def add_expense():
    form = ExpenseForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.ledger"))
    try:
        payload = build_expense_payload(
            form.nominal.data, form.kategori.data, form.deskripsi.data
        )
    except BookkeepingError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.ledger"))

    _post_mutation(ACTION_ADD_EXPENSE, payload, "Biaya berhasil dicatat.")
    return redirect(url_for("main.ledger"))


@bp.route("/ledger/update/<entry_id>", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def update_ledger_entry(entry_id):
    form = LedgerEntryForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.ledger"))
    try:
        payload = build_ledger_update_payload(
            entry_id,
            form.tanggal.data,
            form.deskripsi.data,
            form.debit.data or 0,
            form.kredit.data or 0,
            form.kategori.data,
        )
    except BookkeepingError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.ledger"))

    _post_mutation(ACTION_UPDATE_LEDGER, payload, "Entri buku kas diperbarui.")
    return redirect(url_for("main.ledger"))


@bp.route("/ledger/delete/<entry_id>", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def delete_ledger_entry(entry_id):
    try:
        payload = build_ledger_delete_payload(entry_id)
    except BookkeepingError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.ledger"))

    _post_mutation(ACTION_DELETE_LEDGER, payload, "Entri buku kas dihapus.")
    return redirect(url_for("main.ledger"))


@bp.route("/ledger/export")
@login_required
@roles_required(*REPORT_ROLES)
def export_ledger():
    period = parse_period_param(request.args.get("bulan"))
    entries = sort_ledger(filter_by_period(get_snapshot().ledger, period))
    rows = ledger_rows(entries)
    if not rows:
        flash("Tidak ada data untuk diekspor.", "warning")
        return redirect(url_for("main.ledger", bulan=period))
    return xlsx_response({"Buku Kas": rows}, f"Buku_Kas_{period or 'Semua'}")


def _report_for_request():
    snapshot = get_snapshot()
    period = parse_period_param(request.args.get("bulan"), default=current_period())
    return build_financial_report(snapshot.ledger, snapshot.inventory, period)


@bp.route("/reports")
@login_required
@roles_required(*REPORT_ROLES)
def reports():
    report = _report_for_request()
    return render_template(
        "reports.html",
        report=report,
        period=report.period,
        withdraw_form=WithdrawForm(),
    )


@bp.route("/reports/withdraw", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def withdraw_profit():
    form = WithdrawForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("main.reports"))

    snapshot = get_snapshot()
    try:
        payload = build_withdrawal_payload(
            form.nominal.data, snapshot.ledger, form.deskripsi.data
        )
    except BookkeepingError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("main.reports"))

    _post_mutation(
        ACTION_WITHDRAW_PROFIT,
        payload,
        f"Ambil laba Rp {payload['kredit']:,.0f} berhasil dicatat.".replace(",", "."),
    )
    return redirect(url_for("main.reports"))


@bp.route("/reports/export")
@login_required
@roles_required(*REPORT_ROLES)
def export_report():
    report = _report_for_request()
    return xlsx_response(report_sheets(report), f"Laporan_Keuangan_{report.period}")


@bp.route("/api/report")
@login_required
@roles_required(*REPORT_ROLES)
def api_report():
    report = _report_for_request()
    snapshot = get_snapshot()
    data = report.to_dict()
    data["stale"] = snapshot.stale
    return jsonify(data)


@bp.route("/settings", methods=["GET", "POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def settings():
    form = SettingsForm()
    if request.method == "POST":
        if form.validate_on_submit():
            url = (form.api_url.data or "").strip()
            if url:
                set_setting(SETTING_SHEET_API_URL, url)
                flash("URL endpoint disimpan.", "success")
            else:
                delete_setting(SETTING_SHEET_API_URL)
                flash("URL endpoint dihapus, kembali ke pengaturan bawaan.", "info")
            # data lama milik endpoint sebelumnya
            g.pop("backend", None)
            _state()["last_snapshot"] = Snapshot()
            return redirect(url_for("main.settings"))
        _flash_form_errors(form)
    else:
        form.api_url.data = get_api_url()

    return render_template("settings.html", form=form, api_url=get_api_url())


@bp.route("/settings/reset-users", methods=["POST"])
@login_required
@roles_required(*ADMIN_ONLY)
def reset_users():
    _post_mutation("RESET_USERS", {}, "Akun pengguna dikembalikan ke default.")
    return redirect(url_for("main.settings"))
