from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class ProjectFile(Base):
    """Registry row for an uploaded document; ``url`` points at ``/uploads/<stored name>``."""

    __tablename__ = "files"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    project_id = Column(
        "projectId", Text, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(Text, nullable=False)
    url = Column(Text, nullable=False)

    project = relationship("Project", back_populates="files")

    @property
    def stored_name(self) -> str:
        return self.url.rsplit("/", 1)[-1]


__all__ = ["ProjectFile"]
