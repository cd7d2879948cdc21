"""
User model.
"""
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from escala.models.base import BaseModel

if TYPE_CHECKING:
    from escala.models.department import Department
    from escala.models.volunteer import Volunteer


class UserRole(str, enum.Enum):
    """Application role carried in the user's token."""
    ADMIN = "admin"
    LEADER = "leader"
    VOLUNTEER = "volunteer"


class User(BaseModel):
    """User model for authentication and profile."""
    __tablename__ = "users"

    # Core auth fields
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UserRole.VOLUNTEER
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Department the user leads; scopes attendance confirmation
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    department: Mapped[Optional["Department"]] = relationship(
        "Department",
        foreign_keys=[department_id]
    )
    volunteer: Mapped[Optional["Volunteer"]] = relationship(
        "Volunteer",
        back_populates="user",
        uselist=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.email}>"
