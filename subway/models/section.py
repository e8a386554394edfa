"""Persisted rows for the sections of a line."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from ..domain.section import Section
from .base import Base

if TYPE_CHECKING:
    from .line import Line


class LineSection(Base):
    """One stored section; converts to and from the domain ``Section`` value."""

    __tablename__ = "sections"
    __table_args__ = (
        CheckConstraint("distance > 0", name="positive_distance"),
        CheckConstraint("up_station_id != down_station_id", name="distinct_stations"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    line_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    up_station_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False
    )
    down_station_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False
    )
    distance: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    line: Mapped["Line"] = relationship("Line", back_populates="sections")

    @classmethod
    def from_domain(cls, section: Section) -> "LineSection":
        return cls(
            line_id=section.line_id,
            up_station_id=section.up_station_id,
            down_station_id=section.down_station_id,
            distance=section.distance,
        )

    def to_domain(self) -> Section:
        return Section(self.line_id, self.up_station_id, self.down_station_id, self.distance)

    def matches(self, section: Section) -> bool:
        return self.to_domain() == section

    def __repr__(self) -> str:
        return (
            f"<LineSection(line_id={self.line_id}, {self.up_station_id}->{self.down_station_id}, "
            f"distance={self.distance})>"
        )
