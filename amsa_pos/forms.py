from flask_wtf import FlaskForm
from wtforms import (
    DecimalField,
    HiddenField,
    IntegerField,
    PasswordField,
    SelectField,
    StringField,
    SubmitField,
)
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, URL

from .cart import PAYMENT_METHODS
from .ledger import EXPENSE_CATEGORIES


class LoginForm(FlaskForm):
    username = StringField('Username', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Masuk')


class CheckoutForm(FlaskForm):
    metode_pembayaran = SelectField(
        'Metode Pembayaran',
        choices=[(method, method) for method in PAYMENT_METHODS],
        default=PAYMENT_METHODS[0],
    )
    bayar = DecimalField('Uang Diterima', places=0, validators=[Optional(), NumberRange(min=0)])
    submit = SubmitField('Bayar')


class ProductForm(FlaskForm):
    id = HiddenField()
    kode = StringField('Kode Barang', validators=[DataRequired()])
    nama = StringField('Nama Barang', validators=[DataRequired()])
    kategori = StringField('Kategori', default='Umum')
    harga_beli = DecimalField('Harga Beli', places=0, validators=[InputRequired(), NumberRange(min=0)])
    harga_jual = DecimalField('Harga Jual', places=0, validators=[InputRequired(), NumberRange(min=0)])
    stok = IntegerField('Stok', default=0, validators=[Optional(), NumberRange(min=0)])
    submit = SubmitField('Simpan')


class RestockForm(FlaskForm):
    qty = IntegerField('Jumlah', validators=[DataRequired(), NumberRange(min=1)])
    harga_beli = DecimalField('Harga Beli Satuan', places=0, validators=[Optional(), NumberRange(min=0)])
    submit = SubmitField('Restock')


class CapitalForm(FlaskForm):
    nominal = DecimalField('Nominal', places=0, validators=[DataRequired(), NumberRange(min=1)])
    deskripsi = StringField('Keterangan')
    submit = SubmitField('Tambah Modal')


class ExpenseForm(FlaskForm):
    nominal = DecimalField('Nominal', places=0, validators=[DataRequired(), NumberRange(min=1)])
    kategori = SelectField('Kategori', choices=[(c, c) for c in EXPENSE_CATEGORIES])
    deskripsi = StringField('Keterangan')
    submit = SubmitField('Catat Biaya')


class LedgerEntryForm(FlaskForm):
    tanggal = StringField('Tanggal')
    deskripsi = StringField('Deskripsi')
    debit = DecimalField('Debit', places=0, default=0, validators=[Optional(), NumberRange(min=0)])
    kredit = DecimalField('Kredit', places=0, default=0, validators=[Optional(), NumberRange(min=0)])
    kategori = StringField('Kategori', validators=[DataRequired()])
    submit = SubmitField('Simpan')


class WithdrawForm(FlaskForm):
    nominal = DecimalField('Nominal', places=0, validators=[DataRequired(), NumberRange(min=1)])
    deskripsi = StringField('Keterangan')
    submit = SubmitField('Ambil Laba')


class SettingsForm(FlaskForm):
    api_url = StringField('Google Apps Script Web App URL', validators=[Optional(), URL()])
    submit = SubmitField('Simpan')
