"""Line model for subway lines."""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .section import LineSection


class Line(Base, TimestampMixin):
    """A subway line. Its station order is derived from its sections."""

    __tablename__ = "lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    color: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)

    # Relationships
    sections: Mapped[List["LineSection"]] = relationship(
        "LineSection",
        back_populates="line",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Line(id={self.id}, name={self.name}, color={self.color})>"
