"""SQLAlchemy ORM models for the shortening service.

Data Model Layout
=================
::
    urls table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ code (VARCHAR(8) UNIQUE, INDEXED)
    ├─ original_url (TEXT NOT NULL, INDEXED)
    ├─ short_url (TEXT NOT NULL)
    ├─ domain (TEXT NOT NULL)
    └─ counter (INTEGER DEFAULT 0)

Key Behaviours
===============
- The unique index on ``code`` is the authoritative uniqueness guard; the
  service-level existence check only fails fast.
- ``original_url`` is indexed for the idempotent-create lookup, not unique.
- ``counter`` starts at 0 and is only ever changed by ``counter = counter + 1``.

Classes:
    URL:  Represents a persisted short code mapping with its redirect counter.
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortener.database import Base
from shortener.schemas import CODE_LENGTH

__all__ = ["URL"]


class URL(Base):
    __tablename__ = "urls"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(CODE_LENGTH), unique=True, index=True, nullable=False)
    original_url: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    short_url: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str] = mapped_column(Text, nullable=False)
    counter: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<URL(id={self.id}, code='{self.code}', counter={self.counter})>"
