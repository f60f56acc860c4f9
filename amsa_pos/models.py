from datetime import datetime

from amsa_pos import db

SETTING_SHEET_API_URL = "sheet_api_url"


class AppSetting(db.Model):
    """Pengaturan lokal aplikasi (pengganti localStorage browser)."""

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<AppSetting {self.key}>"


def ensure_table(model):
    engine = db.session.get_bind()
    model.__table__.create(bind=engine, checkfirst=True)


def get_setting(key, default=None):
    ensure_table(AppSetting)
    setting = AppSetting.query.filter_by(key=key).first()
    if setting is None or not setting.value:
        return default
    return setting.value


def set_setting(key, value):
    ensure_table(AppSetting)
    setting = AppSetting.query.filter_by(key=key).first()
    if setting is None:
        setting = AppSetting(key=key)
    setting.value = value
    setting.updated_at = datetime.utcnow()
    db.session.add(setting)
    db.session.commit()
    return setting


def delete_setting(key):
    ensure_table(AppSetting)
    AppSetting.query.filter_by(key=key).delete()
    db.session.commit()
