from io import BytesIO

import pandas as pd
from flask import make_response

from .ledger import classify_entry

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def inventory_rows(inventory):
    return [
        {
            "Kode": item.kode,
            "Nama Barang": item.nama,
            "Kategori": item.kategori,
            "Harga Beli": item.harga_beli,
            "Harga Jual": item.harga_jual,
            "Stok": item.stok,
            "Nilai Stok (Modal)": item.harga_beli * item.stok,
            "Status Pemesanan": "Sudah dipesan" if item.is_ordered else "",
        }
        for item in inventory
    ]


def ledger_rows(ledger):
    return [
        {
            "Tanggal": entry.tanggal,
            "Deskripsi": entry.deskripsi,
            "Kategori": entry.kategori,
            "Peran": classify_entry(entry).value,
            "Debit": entry.debit,
            "Kredit": entry.kredit,
        }
        for entry in ledger
    ]


def report_sheets(report):
    cashflow = report.cashflow
    summary = [
        {"Keterangan": "Kas di Tangan", "Nilai": report.saldo_kas},
        {"Keterangan": "Nilai Aset Stok (Modal)", "Nilai": report.nilai_aset_stok},
        {"Keterangan": "Total Aset", "Nilai": report.total_aset},
        {"Keterangan": "Potensi Omset Stok", "Nilai": report.potensi_omset},
        {"Keterangan": "Total Modal Disetor", "Nilai": report.total_modal},
        {"Keterangan": "Total Prive", "Nilai": report.total_prive},
        {"Keterangan": "Laba Bersih (Kekayaan Bersih)", "Nilai": report.laba_bersih},
        {"Keterangan": "Omset Bulan Ini", "Nilai": cashflow.omset},
        {"Keterangan": "Belanja Stok Bulan Ini", "Nilai": cashflow.belanja},
        {"Keterangan": "Biaya Operasional Bulan Ini", "Nilai": cashflow.biaya},
        {"Keterangan": "Surplus Kas Bulan Ini", "Nilai": cashflow.surplus},
    ]
    expenses = [
        {"Kategori": row["kategori"], "Total": row["total"]}
        for row in report.expense_breakdown
    ]
    return {"Ringkasan": summary, "Biaya Operasional": expenses}


def xlsx_response(sheets, filename):
    """Tulis satu atau beberapa sheet ke .xlsx dan kirim sebagai attachment."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet_name[:31], index=False)
    output.seek(0)

    response = make_response(output.read())
    response.headers["Content-Disposition"] = f"attachment; filename={filename}.xlsx"
    response.headers["Content-Type"] = XLSX_MIMETYPE
    return response
