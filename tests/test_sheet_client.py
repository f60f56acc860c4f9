import json
from unittest import mock

import pytest
import requests

from amsa_pos.records import Snapshot
from amsa_pos.sheet_client import (
    GENERIC_ERROR_MESSAGE,
    SheetApiError,
    SheetClient,
    load_snapshot,
)
from conftest import make_entry, make_product

URL = "https://script.example.com/exec"


def _response(status_code=200, body=None, text=None):
    resp = mock.Mock()
    resp.status_code = status_code
    if text is not None:
        resp.text = text
        resp.json.side_effect = ValueError("not json")
    else:
        resp.text = json.dumps(body)
        resp.json.return_value = body
    return resp


@pytest.fixture()
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture()
def sheet_client(session):
    return SheetClient(URL, timeout=5, session=session)


def test_get_inventory_parses_rows(sheet_client, session):
    session.get.return_value = _response(
        body=[{"id": 1, "kode": "BRG001", "nama": "Indomie", "harga_beli": "2500", "harga_jual": 3500, "stok": "10"}]
    )
    inventory = sheet_client.get_inventory()

    session.get.assert_called_once_with(URL, params={"action": "getInventory"}, timeout=5)
    assert len(inventory) == 1
    assert inventory[0].id == "1"
    assert inventory[0].harga_beli == 2500
    assert inventory[0].stok == 10


def test_get_ledger_accepts_wrapped_data(sheet_client, session):
    session.get.return_value = _response(
        body={"data": [{"id": "9", "tanggal": "2025-01-01", "debit": 100, "kredit": 0, "kategori": "Modal"}]}
    )
    ledger = sheet_client.get_ledger()
    assert [entry.id for entry in ledger] == ["9"]
    assert session.get.call_args.kwargs["params"] == {"action": "getLedger"}


def test_get_with_error_body_raises(sheet_client, session):
    session.get.return_value = _response(body={"error": "Sheet tidak ditemukan"})
    with pytest.raises(SheetApiError, match="Sheet tidak ditemukan"):
        sheet_client.get_inventory()


def test_http_error_raises_with_status(sheet_client, session):
    session.get.return_value = _response(status_code=500, body={})
    with pytest.raises(SheetApiError) as excinfo:
        sheet_client.get_ledger()
    assert excinfo.value.status_code == 500


def test_non_json_response_raises(sheet_client, session):
    session.get.return_value = _response(text="<html>login</html>")
    with pytest.raises(SheetApiError):
        sheet_client.get_inventory()


def test_network_error_uses_generic_message(sheet_client, session):
    session.get.side_effect = requests.ConnectionError("boom")
    with pytest.raises(SheetApiError) as excinfo:
        sheet_client.get_inventory()
    assert excinfo.value.message == GENERIC_ERROR_MESSAGE


def test_post_sends_json_as_plain_text(sheet_client, session):
    session.post.return_value = _response(body={"status": "success", "id": "abc"})
    payload = {"amount": 1, "kategori": "Modal"}

    result = sheet_client.post("ADD_CAPITAL", payload)

    assert result == {"status": "success", "id": "abc"}
    args, kwargs = session.post.call_args
    assert args == (URL,)
    assert kwargs["headers"] == {"Content-Type": "text/plain;charset=utf-8"}
    assert json.loads(kwargs["data"].decode("utf-8")) == {"action": "ADD_CAPITAL", "payload": payload}


def test_post_error_status_raises_server_message(sheet_client, session):
    session.post.return_value = _response(body={"status": "error", "message": "Username atau password salah!"})
    with pytest.raises(SheetApiError, match="password salah"):
        sheet_client.post("LOGIN", {"username": "x", "password": "y"})


def test_post_rejects_unknown_action(sheet_client, session):
    with pytest.raises(ValueError):
        sheet_client.post("DROP_TABLE", {})
    session.post.assert_not_called()


def test_load_snapshot_success():
    backend = mock.Mock()
    backend.get_inventory.return_value = [make_product("1", 1000, 2)]
    backend.get_ledger.return_value = [make_entry("2025-01-01", "Modal", debit=10)]

    snapshot = load_snapshot(backend)

    assert not snapshot.stale
    assert snapshot.error == ""
    assert len(snapshot.inventory) == 1
    assert len(snapshot.ledger) == 1


def test_load_snapshot_failure_keeps_previous_data():
    previous = Snapshot(
        inventory=[make_product("1", 1000, 2)],
        ledger=[make_entry("2025-01-01", "Modal", debit=10)],
    )
    backend = mock.Mock()
    backend.get_inventory.side_effect = SheetApiError("putus")

    snapshot = load_snapshot(backend, previous)

    assert snapshot.stale
    assert snapshot.error == "putus"
    assert snapshot.inventory == previous.inventory
    assert snapshot.ledger == previous.ledger


def test_load_snapshot_failure_on_first_load_is_empty():
    backend = mock.Mock()
    backend.get_inventory.side_effect = SheetApiError("putus")

    snapshot = load_snapshot(backend)

    assert snapshot.stale
    assert snapshot.inventory == []
    assert snapshot.ledger == []
