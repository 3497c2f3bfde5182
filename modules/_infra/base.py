"""Declarative base shared by every record-store table."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
