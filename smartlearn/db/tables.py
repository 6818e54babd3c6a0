"""SQLAlchemy table definitions for the SQL collection store.

The store is schemaless at the record level: every collection shares one
``store_records`` table and each record is kept as JSON text.  The
relational schema only pins down collection membership and key
uniqueness:

  store_meta         name → value   (schema_version lives here)
  store_collections  one row per collection created by init()
  store_records      (collection, key) → JSON document
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from smartlearn.db.engine import Base


class StoreMetaRow(Base):
    __tablename__ = "store_meta"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)


class CollectionRow(Base):
    __tablename__ = "store_collections"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class RecordRow(Base):
    __tablename__ = "store_records"

    collection: Mapped[str] = mapped_column(
        String(64), ForeignKey("store_collections.name"), primary_key=True
    )
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)  # JSON document
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
