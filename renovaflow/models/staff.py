from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class ConstructionStaff(Base):
    """A contractor or crew contact assigned to one project."""

    __tablename__ = "construction_staff"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    project_id = Column(
        "projectId", Text, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(Text, nullable=True)
    zip_code = Column("zipCode", Text, nullable=True)
    address = Column(Text, nullable=True)
    tel = Column(Text, nullable=True)
    email = Column(Text, nullable=True)

    project = relationship("Project", back_populates="construction_staff")


__all__ = ["ConstructionStaff"]
