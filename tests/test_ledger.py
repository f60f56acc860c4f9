import random

import pytest

from amsa_pos.ledger import (
    LedgerCategory,
    LedgerRole,
    OtherCategory,
    asset_composition,
    build_financial_report,
    cashflow_trend,
    classify,
    classify_entry,
    expense_breakdown,
    filter_by_period,
    laba_bersih_all_time,
    ledger_totals,
    monthly_cashflow,
    nilai_aset_stok,
    parse_category,
    potensi_omset,
    saldo_kas,
    sort_ledger,
    total_modal,
    total_prive,
)
from conftest import make_entry, make_product


@pytest.fixture()
def sample_ledger():
    return [
        make_entry("2025-01-02T08:00:00", "Modal", debit=5_000_000),
        make_entry("2025-01-02T09:00:00", "Belanja Stok", kredit=1_500_000),
        make_entry("2025-01-15T12:00:00", "Penjualan", debit=2_000_000),
    ]


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Modal", LedgerCategory.MODAL),
        ("Penjualan", LedgerCategory.PENJUALAN),
        ("Belanja Stok", LedgerCategory.BELANJA_STOK),
        ("Prive", LedgerCategory.PRIVE),
        ("Gaji Karyawan", OtherCategory("Gaji Karyawan")),
        ("modal", OtherCategory("modal")),
        ("", OtherCategory("")),
    ],
)
def test_parse_category_is_exact_and_case_sensitive(label, expected):
    assert parse_category(label) == expected


def test_parse_category_handles_none():
    assert parse_category(None) == OtherCategory("")


def test_classify_recognized_categories_ignore_side():
    assert classify("Modal", debit=100) is LedgerRole.CAPITAL_CONTRIBUTION
    assert classify("Penjualan", debit=100) is LedgerRole.SALES_REVENUE
    assert classify("Belanja Stok", kredit=100) is LedgerRole.STOCK_PURCHASE
    assert classify("Prive", kredit=100) is LedgerRole.OWNER_WITHDRAWAL
    # kategori menentukan peran, bukan sisi debit/kredit
    assert classify("Prive", debit=100) is LedgerRole.OWNER_WITHDRAWAL


def test_classify_unknown_category_depends_on_kredit():
    assert classify("Listrik & Air", kredit=250_000) is LedgerRole.OPERATING_EXPENSE
    assert classify("Salah Ketik", kredit=1) is LedgerRole.OPERATING_EXPENSE
    assert classify("Hibah", debit=10_000) is LedgerRole.UNCLASSIFIED
    assert classify(None) is LedgerRole.UNCLASSIFIED


def test_classify_entry_uses_entry_fields():
    entry = make_entry("2025-02-01", "Sewa Tempat", kredit=1_000_000)
    assert classify_entry(entry) is LedgerRole.OPERATING_EXPENSE


def test_saldo_kas_of_empty_ledger_is_zero():
    assert saldo_kas([]) == 0
    totals = ledger_totals([])
    assert (totals.debit, totals.kredit, totals.saldo) == (0, 0, 0)


def test_saldo_kas_is_invariant_under_reordering(sample_ledger):
    expected = saldo_kas(sample_ledger)
    shuffled = list(sample_ledger)
    random.Random(7).shuffle(shuffled)
    assert saldo_kas(shuffled) == expected
    assert saldo_kas(reversed(sample_ledger)) == expected


def test_filter_then_sum_matches_manual_prefix_filter():
    ledger = [
        make_entry("2025-01-03", "Penjualan", debit=100_000),
        make_entry("2025-02-03", "Penjualan", debit=250_000),
        make_entry("2025-02-10", "Belanja Stok", kredit=80_000),
        make_entry("2025-02-28T23:59:59", "Penjualan", debit=50_000),
        make_entry("2025-03-01", "Belanja Stok", kredit=10_000),
    ]
    cashflow = monthly_cashflow(ledger, "2025-02")

    manual = [e for e in ledger if e.tanggal.startswith("2025-02")]
    assert cashflow.omset == sum(e.debit for e in manual if e.kategori == "Penjualan")
    assert cashflow.belanja == sum(e.kredit for e in manual if e.kategori == "Belanja Stok")
    assert filter_by_period(ledger, "2025-02") == manual


def test_filter_by_period_without_period_returns_everything(sample_ledger):
    assert filter_by_period(sample_ledger, None) == sample_ledger
    assert filter_by_period(sample_ledger, "") == sample_ledger


def test_net_worth_profit_example(sample_ledger):
    inventory = [make_product("1", harga_beli=1_400_000, stok=1)]

    assert saldo_kas(sample_ledger) == 5_500_000
    assert nilai_aset_stok(inventory) == 1_400_000
    assert total_modal(sample_ledger) == 5_000_000
    assert total_prive(sample_ledger) == 0
    assert laba_bersih_all_time(sample_ledger, inventory) == 1_900_000


def test_net_worth_profit_adds_back_withdrawals(sample_ledger):
    inventory = [make_product("1", harga_beli=1_400_000, stok=1)]
    ledger = sample_ledger + [make_entry("2025-01-20", "Prive", kredit=300_000)]

    # prive mengurangi kas tetapi tidak mengurangi laba
    assert saldo_kas(ledger) == 5_200_000
    assert laba_bersih_all_time(ledger, inventory) == 1_900_000


def test_stock_asset_value_example():
    inventory = [
        make_product("1", harga_beli=2500, stok=100, harga_jual=3500),
        make_product("2", harga_beli=3000, stok=48, harga_jual=5000),
    ]
    assert nilai_aset_stok(inventory) == 394_000
    assert potensi_omset(inventory) == 3500 * 100 + 5000 * 48


def test_monthly_cashflow_for_empty_month_is_all_zero(sample_ledger):
    cashflow = monthly_cashflow(sample_ledger, "2030-12")
    assert (cashflow.omset, cashflow.belanja, cashflow.biaya, cashflow.surplus) == (0, 0, 0, 0)


def test_monthly_cashflow_excludes_stock_and_prive_from_biaya():
    ledger = [
        make_entry("2025-03-01", "Penjualan", debit=3_000_000),
        make_entry("2025-03-02", "Belanja Stok", kredit=1_000_000),
        make_entry("2025-03-05", "Prive", kredit=500_000),
        make_entry("2025-03-06", "Gaji Karyawan", kredit=700_000),
        make_entry("2025-03-07", "Listrik & Air", kredit=150_000),
    ]
    cashflow = monthly_cashflow(ledger, "2025-03")
    assert cashflow.omset == 3_000_000
    assert cashflow.belanja == 1_000_000
    assert cashflow.biaya == 850_000
    assert cashflow.surplus == 1_150_000
    assert cashflow.to_dict()["surplus"] == 1_150_000


def test_expense_breakdown_sorted_by_total():
    ledger = [
        make_entry("2025-03-06", "Gaji Karyawan", kredit=700_000),
        make_entry("2025-03-07", "Listrik & Air", kredit=150_000),
        make_entry("2025-03-20", "Listrik & Air", kredit=50_000),
        make_entry("2025-03-21", "Belanja Stok", kredit=900_000),
        make_entry("2025-04-01", "Sewa Tempat", kredit=2_000_000),
    ]
    assert expense_breakdown(ledger, "2025-03") == [
        {"kategori": "Gaji Karyawan", "total": 700_000},
        {"kategori": "Listrik & Air", "total": 200_000},
    ]


def test_cashflow_trend_keeps_latest_months_oldest_first():
    ledger = [
        make_entry(f"2025-{month:02d}-10", "Penjualan", debit=month * 1000)
        for month in range(1, 10)
    ]
    trend = cashflow_trend(ledger, months=3)
    assert [point.period for point in trend] == ["2025-07", "2025-08", "2025-09"]
    assert trend[-1].omset == 9000


def test_asset_composition_clamps_negative_cash():
    ledger = [make_entry("2025-01-01", "Gaji Karyawan", kredit=100_000)]
    inventory = [make_product("1", harga_beli=1000, stok=5)]
    assert asset_composition(ledger, inventory) == [
        {"name": "Uang Kas Tunai", "value": 0.0},
        {"name": "Nilai Stok Barang", "value": 5000.0},
    ]


def test_sort_ledger_newest_first(sample_ledger):
    ordered = sort_ledger(sample_ledger)
    assert [e.tanggal for e in ordered] == sorted((e.tanggal for e in sample_ledger), reverse=True)


def test_build_financial_report_is_idempotent_and_pure(sample_ledger):
    inventory = [make_product("1", harga_beli=1_400_000, stok=1)]
    snapshot_before = [entry.to_dict() for entry in sample_ledger]

    first = build_financial_report(sample_ledger, inventory, "2025-01")
    second = build_financial_report(sample_ledger, inventory, "2025-01")

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert [entry.to_dict() for entry in sample_ledger] == snapshot_before
    assert first.total_aset == 6_900_000
    assert first.laba_bersih == 1_900_000
    assert first.cashflow.surplus == 2_000_000 - 1_500_000
