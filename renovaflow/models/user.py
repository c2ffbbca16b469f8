from __future__ import annotations

from sqlalchemy import Boolean, Column, Text, text

from ..db.session import Base

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_CHOICES = (ROLE_ADMIN, ROLE_STAFF)


class User(Base):
    """Operator account. Passwords are compared as stored; there is no hashing."""

    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False, unique=True)
    password = Column(Text, nullable=False)
    name = Column(Text, nullable=True)
    role = Column(Text, nullable=False, default=ROLE_STAFF)
    remarks = Column(Text, nullable=True)
    is_active = Column("isActive", Boolean, nullable=False, default=True, server_default=text("1"))


__all__ = ["ROLE_ADMIN", "ROLE_CHOICES", "ROLE_STAFF", "User"]
