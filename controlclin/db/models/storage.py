from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime
from typing import Optional
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow_aware


# SQL columns hold timezone-aware UTC; the JSON state stays naive UTC
class StateBlob(SQLModel, table=True):
    __tablename__ = "local_storage"
    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=utcnow_aware, sa_column=Column(DateTime(timezone=True), nullable=False))


class Credential(SQLModel, table=True):
    __tablename__ = "credentials"
    uid: str = Field(default_factory=lambda: generate_id("uid"), primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    disabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow_aware, sa_column=Column(DateTime(timezone=True), nullable=False))
    last_sign_in_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
