from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, String

from modules._infra.base import Base


class ContractRecord(Base):
    __tablename__ = "contracts"

    id = Column(String, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    client_name = Column(String, nullable=False, default="")
    form_data = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime, default=datetime.now, nullable=False)
    expiry_date = Column(DateTime)
    template_id = Column(String)
    is_extended = Column(Boolean, default=False, nullable=False)
    assigned_to = Column(String, index=True)


class SettingRecord(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON)
