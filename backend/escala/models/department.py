"""
Department model and its leader association.
"""
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from escala.models.base import BaseModel

if TYPE_CHECKING:
    from escala.models.user import User


class Department(BaseModel):
    """A ministry department volunteers are scheduled into."""
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    leaders: Mapped[list["DepartmentLeader"]] = relationship(
        "DepartmentLeader",
        back_populates="department",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Department {self.name}>"


class DepartmentLeader(BaseModel):
    """Leader assignment for a department."""
    __tablename__ = "department_leaders"
    __table_args__ = (
        UniqueConstraint("department_id", "user_id", name="uq_department_leaders_department_user"),
    )

    department_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    department: Mapped["Department"] = relationship(
        "Department",
        back_populates="leaders"
    )
    user: Mapped["User"] = relationship(
        "User",
        foreign_keys=[user_id]
    )

    def __repr__(self) -> str:
        return f"<DepartmentLeader {self.user_id} of department {self.department_id}>"
