"""
Rank ladder keyed by minimum ELO.
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lectern.kernel.models.base import Base


class Rank(Base):
    """A named ELO threshold."""

    __tablename__ = "ranks"

    slug: Mapped[str] = mapped_column(String(40), primary_key=True)
    name: Mapped[str] = mapped_column(String(40), nullable=False)
    min_elo: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    icon_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
