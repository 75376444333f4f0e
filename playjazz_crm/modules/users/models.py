from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, ForeignKey, CheckConstraint
from playjazz_crm.db.base import Base
from playjazz_crm.domain.enums import USER_ROLES


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(f"role in {USER_ROLES}", name="ck_user_role_valido"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="manager")  # admin | manager
    # só gerente tem unidade; admin enxerga todas
    unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("units.id", ondelete="SET NULL"), index=True, nullable=True
    )
