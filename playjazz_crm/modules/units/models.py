from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String
from playjazz_crm.db.base import Base


class Unit(Base):
    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
