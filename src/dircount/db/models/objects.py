import datetime as dt

from sqlalchemy import TIMESTAMP, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ObjectDb(Base):
    """
    Metadata of an object stored in a bucket. Insertions and deletions on this
    table are the events counted per directory.
    """

    __tablename__ = "objects"

    bucket: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, primary_key=True)
    directory: Mapped[str] = mapped_column(String, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False
    )

    __table_args__ = (Index("ix_objects_directory", "directory"),)
