"""
Klasifikasi buku kas dan perhitungan laporan keuangan.

Semua fungsi di sini murni: menerima snapshot buku kas / inventory dan
selektor periode ``YYYY-MM``, lalu mengembalikan angka tanpa menyimpan state
apa pun. Setiap tampilan menghitung ulang dari awal.
"""
from collections import defaultdict, namedtuple
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Union

from .records import LedgerEntry, Product


class LedgerCategory(str, Enum):
    MODAL = "Modal"
    PENJUALAN = "Penjualan"
    BELANJA_STOK = "Belanja Stok"
    PRIVE = "Prive"


# Kategori selain empat di atas, biasanya biaya operasional
OtherCategory = namedtuple("OtherCategory", ["label"])

Category = Union[LedgerCategory, OtherCategory]


class LedgerRole(str, Enum):
    CAPITAL_CONTRIBUTION = "CapitalContribution"
    SALES_REVENUE = "SalesRevenue"
    STOCK_PURCHASE = "StockPurchase"
    OWNER_WITHDRAWAL = "OwnerWithdrawal"
    OPERATING_EXPENSE = "OperatingExpense"
    UNCLASSIFIED = "Unclassified"


EXPENSE_CATEGORIES = (
    "Gaji Karyawan",
    "Listrik & Air",
    "Sewa Tempat",
    "Transportasi",
    "Perlengkapan Toko",
    "Lain-lain",
)

# kredit kategori ini bukan biaya operasional
NON_OPERATING_OUTFLOWS = (LedgerCategory.BELANJA_STOK, LedgerCategory.PRIVE)

_ROLE_BY_CATEGORY = {
    LedgerCategory.MODAL: LedgerRole.CAPITAL_CONTRIBUTION,
    LedgerCategory.PENJUALAN: LedgerRole.SALES_REVENUE,
    LedgerCategory.BELANJA_STOK: LedgerRole.STOCK_PURCHASE,
    LedgerCategory.PRIVE: LedgerRole.OWNER_WITHDRAWAL,
}


def parse_category(label: Optional[str]) -> Category:
    """Cocokkan label persis (case-sensitive); selain itu OtherCategory."""
    label = label or ""
    for category in LedgerCategory:
        if category.value == label:
            return category
    return OtherCategory(label)


def classify(kategori: Optional[str], debit: float = 0.0, kredit: float = 0.0) -> LedgerRole:
    category = parse_category(kategori)
    if isinstance(category, LedgerCategory):
        return _ROLE_BY_CATEGORY[category]
    if (kredit or 0) > 0:
        return LedgerRole.OPERATING_EXPENSE
    return LedgerRole.UNCLASSIFIED


def classify_entry(entry: LedgerEntry) -> LedgerRole:
    return classify(entry.kategori, entry.debit, entry.kredit)


def is_operating_outflow(entry: LedgerEntry) -> bool:
    return parse_category(entry.kategori) not in NON_OPERATING_OUTFLOWS


@dataclass(frozen=True)
class MonthlyCashflow:
    period: str
    omset: float = 0.0
    belanja: float = 0.0
    biaya: float = 0.0

    @property
    def surplus(self):
        return self.omset - self.belanja - self.biaya

    def to_dict(self):
        return {
            "period": self.period,
            "omset": self.omset,
            "belanja": self.belanja,
            "biaya": self.biaya,
            "surplus": self.surplus,
        }


@dataclass(frozen=True)
class LedgerTotals:
    debit: float = 0.0
    kredit: float = 0.0

    @property
    def saldo(self):
        return self.debit - self.kredit


@dataclass(frozen=True)
class FinancialReport:
    period: str
    saldo_kas: float
    nilai_aset_stok: float
    potensi_omset: float
    total_modal: float
    total_prive: float
    laba_bersih: float
    cashflow: MonthlyCashflow
    expense_breakdown: list = field(default_factory=list)
    trend: list = field(default_factory=list)
    asset_composition: list = field(default_factory=list)

    @property
    def total_aset(self):
        return self.saldo_kas + self.nilai_aset_stok

    def to_dict(self):
        return {
            "period": self.period,
            "saldo_kas": self.saldo_kas,
            "nilai_aset_stok": self.nilai_aset_stok,
            "potensi_omset": self.potensi_omset,
            "total_aset": self.total_aset,
            "total_modal": self.total_modal,
            "total_prive": self.total_prive,
            "laba_bersih": self.laba_bersih,
            "cashflow": self.cashflow.to_dict(),
            "expense_breakdown": list(self.expense_breakdown),
            "trend": [point.to_dict() for point in self.trend],
            "asset_composition": list(self.asset_composition),
        }


def filter_by_period(ledger: Iterable[LedgerEntry], period: Optional[str]) -> List[LedgerEntry]:
    if not period:
        return list(ledger)
    return [entry for entry in ledger if (entry.tanggal or "").startswith(period)]


def _sum_debit(entries, category=None):
    return sum(
        entry.debit or 0.0
        for entry in entries
        if category is None or parse_category(entry.kategori) == category
    )


def _sum_kredit(entries, category=None):
    return sum(
        entry.kredit or 0.0
        for entry in entries
        if category is None or parse_category(entry.kategori) == category
    )


def saldo_kas(ledger: Iterable[LedgerEntry]) -> float:
    """Kas di tangan: seluruh debit dikurangi seluruh kredit, tanpa filter bulan."""
    entries = list(ledger)
    return _sum_debit(entries) - _sum_kredit(entries)


def ledger_totals(ledger: Iterable[LedgerEntry]) -> LedgerTotals:
    entries = list(ledger)
    return LedgerTotals(debit=_sum_debit(entries), kredit=_sum_kredit(entries))


def nilai_aset_stok(inventory: Iterable[Product]) -> float:
    # dinilai dengan harga beli, bukan harga jual
    return sum((item.harga_beli or 0.0) * (item.stok or 0) for item in inventory)


def potensi_omset(inventory: Iterable[Product]) -> float:
    return sum((item.harga_jual or 0.0) * (item.stok or 0) for item in inventory)


def total_modal(ledger: Iterable[LedgerEntry]) -> float:
    return _sum_debit(ledger, LedgerCategory.MODAL)


def total_prive(ledger: Iterable[LedgerEntry]) -> float:
    return _sum_kredit(ledger, LedgerCategory.PRIVE)


def laba_bersih_all_time(ledger: Iterable[LedgerEntry], inventory: Iterable[Product]) -> float:
    """
    Laba metode kekayaan bersih: (kas + nilai stok + total prive) - total modal.

    Belanja stok tidak dihitung rugi karena uangnya berubah menjadi barang,
    dan prive yang sudah diambil pemilik tetap bagian dari laba.
    """
    entries = list(ledger)
    return (
        saldo_kas(entries) + nilai_aset_stok(inventory) + total_prive(entries)
    ) - total_modal(entries)


def monthly_cashflow(ledger: Iterable[LedgerEntry], period: str) -> MonthlyCashflow:
    entries = filter_by_period(ledger, period)
    omset = _sum_debit(entries, LedgerCategory.PENJUALAN)
    belanja = _sum_kredit(entries, LedgerCategory.BELANJA_STOK)
    biaya = sum(entry.kredit or 0.0 for entry in entries if is_operating_outflow(entry))
    return MonthlyCashflow(period=period, omset=omset, belanja=belanja, biaya=biaya)


def expense_breakdown(ledger: Iterable[LedgerEntry], period: Optional[str]) -> list:
    totals = defaultdict(float)
    for entry in filter_by_period(ledger, period):
        if (entry.kredit or 0) > 0 and is_operating_outflow(entry):
            totals[entry.kategori or "Lain-lain"] += entry.kredit
    return [
        {"kategori": kategori, "total": total}
        for kategori, total in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    ]


def cashflow_trend(ledger: Iterable[LedgerEntry], months: int = 6) -> List[MonthlyCashflow]:
    entries = list(ledger)
    periods = sorted(
        {entry.tanggal[:7] for entry in entries if len(entry.tanggal or "") >= 7}
    )
    return [monthly_cashflow(entries, period) for period in periods[-months:]]


def asset_composition(ledger: Iterable[LedgerEntry], inventory: Iterable[Product]) -> list:
    return [
        {"name": "Uang Kas Tunai", "value": max(0.0, saldo_kas(ledger))},
        {"name": "Nilai Stok Barang", "value": nilai_aset_stok(inventory)},
    ]


def sort_ledger(ledger: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    return sorted(ledger, key=lambda entry: entry.tanggal or "", reverse=True)


def build_financial_report(
    ledger: Iterable[LedgerEntry],
    inventory: Iterable[Product],
    period: str,
) -> FinancialReport:
    entries = list(ledger)
    products = list(inventory)
    return FinancialReport(
        period=period,
        saldo_kas=saldo_kas(entries),
        nilai_aset_stok=nilai_aset_stok(products),
        potensi_omset=potensi_omset(products),
        total_modal=total_modal(entries),
        total_prive=total_prive(entries),
        laba_bersih=laba_bersih_all_time(entries, products),
        cashflow=monthly_cashflow(entries, period),
        expense_breakdown=expense_breakdown(entries, period),
        trend=cashflow_trend(entries),
        asset_composition=asset_composition(entries, products),
    )
