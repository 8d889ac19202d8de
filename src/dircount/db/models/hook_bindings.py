import datetime as dt

from sqlalchemy import TIMESTAMP, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class HookBindingDb(Base):
    """
    Version of the trigger function currently bound to a table hook.
    There is at most one binding per (table_name, hook_name).
    """

    __tablename__ = "hook_bindings"

    table_name: Mapped[str] = mapped_column(String, primary_key=True)
    hook_name: Mapped[str] = mapped_column(String, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    implementation_ref: Mapped[str] = mapped_column(String, nullable=False)
    installed: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False
    )

    __table_args__ = (
        CheckConstraint("version >= 0", name="hook_bindings_version_positive"),
    )
