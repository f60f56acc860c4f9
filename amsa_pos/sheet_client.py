"""
Klien HTTP untuk Web App Google Apps Script yang menyimpan data toko.

GET  ?action=getInventory / ?action=getLedger  -> array baris
POST {"action": ..., "payload": {...}}          -> {"status": "success"|"error", ...}
"""
import json
import logging

import requests

from .records import Snapshot, parse_ledger, parse_products

logger = logging.getLogger(__name__)

ACTION_GET_INVENTORY = "getInventory"
ACTION_GET_LEDGER = "getLedger"

POST_ACTIONS = (
    "ADD_CAPITAL",
    "ADD_EXPENSE",
    "WITHDRAW_PROFIT",
    "UPDATE_LEDGER",
    "DELETE_LEDGER",
    "CHECKOUT",
    "RESTOCK_PRODUCT",
    "ADD_PRODUCT",
    "UPDATE_PRODUCT",
    "DELETE_PRODUCT",
    "LOGIN",
    "RESET_USERS",
)

GENERIC_ERROR_MESSAGE = "Gagal terhubung ke server. Periksa koneksi atau URL endpoint."


class SheetApiError(Exception):
    """Gagal berkomunikasi dengan endpoint atau endpoint menjawab error."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SheetClient:
    # Apps Script menolak preflight CORS, jadi body JSON dikirim sebagai text/plain
    POST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}

    def __init__(self, base_url, timeout=30.0, session=None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _decode(self, resp):
        if resp.status_code >= 400:
            logger.warning("Endpoint menjawab HTTP %s", resp.status_code)
            raise SheetApiError(
                f"Server menjawab HTTP {resp.status_code}.", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError:
            logger.warning("Respons endpoint bukan JSON: %.200s", resp.text or "")
            raise SheetApiError("Respons server tidak valid.", status_code=resp.status_code)

    def _get_rows(self, action):
        try:
            resp = self.session.get(
                self.base_url, params={"action": action}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("Gagal mengambil %s: %s", action, exc)
            raise SheetApiError(GENERIC_ERROR_MESSAGE) from exc
        body = self._decode(resp)
        if isinstance(body, dict):
            if body.get("error") or body.get("status") == "error":
                raise SheetApiError(str(body.get("error") or body.get("message") or "Error"))
            body = body.get("data", [])
        if not isinstance(body, list):
            raise SheetApiError("Format data dari server tidak dikenali.")
        return body

    def get_inventory(self):
        return parse_products(self._get_rows(ACTION_GET_INVENTORY))

    def get_ledger(self):
        return parse_ledger(self._get_rows(ACTION_GET_LEDGER))

    def post(self, action, payload):
        if action not in POST_ACTIONS:
            raise ValueError(f"Aksi tidak dikenal: {action}")
        body = json.dumps({"action": action, "payload": payload})
        try:
            resp = self.session.post(
                self.base_url,
                data=body.encode("utf-8"),
                headers=self.POST_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gagal mengirim %s: %s", action, exc)
            raise SheetApiError(GENERIC_ERROR_MESSAGE) from exc
        result = self._decode(resp)
        if not isinstance(result, dict):
            raise SheetApiError("Respons server tidak valid.")
        if result.get("status") == "error":
            raise SheetApiError(result.get("message") or f"Aksi {action} ditolak server.")
        logger.info("Aksi %s berhasil", action)
        return result


def load_snapshot(backend, previous=None):
    """
    Muat inventory dan buku kas sekaligus. Jika gagal, kembalikan snapshot
    sebelumnya (atau kosong saat pertama kali) dengan tanda ``stale``.
    """
    try:
        inventory = backend.get_inventory()
        ledger = backend.get_ledger()
    except SheetApiError as exc:
        base = previous or Snapshot()
        return Snapshot(
            inventory=list(base.inventory),
            ledger=list(base.ledger),
            stale=True,
            error=exc.message,
        )
    return Snapshot(inventory=inventory, ledger=ledger)
