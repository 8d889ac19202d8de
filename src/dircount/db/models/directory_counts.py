import datetime as dt

from sqlalchemy import TIMESTAMP, BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy_utils.types.choice import ChoiceType

from dircount.types.hooks import EntryType

from .base import Base


class DirectoryCountDb(Base):
    __tablename__ = "directory_counts"

    directory: Mapped[str] = mapped_column(String, primary_key=True)
    row_count: Mapped[int] = mapped_column("count", BigInteger, nullable=False)
    # Kept for compatibility with the directory listing schema, not interpreted.
    entry_type: Mapped[EntryType] = mapped_column(
        ChoiceType(EntryType), nullable=False, default=EntryType.DIRECTORY
    )
    created: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False
    )
    last_updated: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False
    )

    __table_args__ = (
        CheckConstraint("count >= 1", name="directory_counts_count_positive"),
    )
