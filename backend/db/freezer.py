from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class Freezer(Base):
    __tablename__ = "freezers"

    freezer_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)

    drawers = relationship("Drawer", back_populates="freezer", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def to_schema(self):
        return {
            "freezer_id": self.freezer_id,
            "name": self.name,
        }
