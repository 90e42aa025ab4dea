from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


class Drawer(Base):
    __tablename__ = "drawers"
    # Drawer names repeat across freezers, never within one.
    __table_args__ = (UniqueConstraint("freezer_id", "name", name="uq_drawers_freezer_name"),)

    drawer_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    freezer_id = Column(
        Integer,
        ForeignKey("freezers.freezer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    freezer = relationship("Freezer", back_populates="drawers")
    storage_entries = relationship(
        "StorageEntry", back_populates="drawer", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def to_schema(self):
        return {
            "drawer_id": self.drawer_id,
            "name": self.name,
            "freezer_id": self.freezer_id,
        }
