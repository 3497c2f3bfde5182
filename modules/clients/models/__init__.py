from datetime import datetime

from sqlalchemy import Column, DateTime, String

from modules._infra.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    father_name = Column(String, default="")
    tazkira = Column(String, nullable=False)  # plate / national id
    phone = Column(String, default="")
    created_at = Column(DateTime, default=datetime.now, nullable=False)
