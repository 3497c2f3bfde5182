from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from modules._infra.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)  # charge or payment
    amount = Column(Integer, nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.now, nullable=False)
