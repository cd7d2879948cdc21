"""
Volunteer model.
"""
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from escala.models.base import BaseModel

if TYPE_CHECKING:
    from escala.models.user import User


class Volunteer(BaseModel):
    """Volunteer profile. Linked to a user once the invitation is accepted."""
    __tablename__ = "volunteers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    initials: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True
    )

    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="volunteer",
        foreign_keys=[user_id]
    )

    def __repr__(self) -> str:
        return f"<Volunteer {self.name}>"
