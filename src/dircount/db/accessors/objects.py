import datetime as dt
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert

from dircount.toolkit.paths import normalize_object_name, parent_directory
from dircount.toolkit.timestamp import utc_now
from dircount.types.db_session import DbSession

from ..models.objects import ObjectDb
from .directory_counts import decrement_directory_count, increment_directory_count


def get_object(session: DbSession, bucket: str, name: str) -> Optional[ObjectDb]:
    select_stmt = select(ObjectDb).where(
        (ObjectDb.bucket == bucket) & (ObjectDb.name == normalize_object_name(name))
    )
    return session.execute(select_stmt).scalar_one_or_none()


def get_objects_in_directory(
    session: DbSession, directory: str, bucket: Optional[str] = None
) -> Sequence[ObjectDb]:
    select_stmt = (
        select(ObjectDb).where(ObjectDb.directory == directory).order_by(ObjectDb.name)
    )
    if bucket is not None:
        select_stmt = select_stmt.where(ObjectDb.bucket == bucket)

    return session.execute(select_stmt).scalars().all()


def insert_object(
    session: DbSession,
    bucket: str,
    name: str,
    size: int = 0,
    created: Optional[dt.datetime] = None,
    update_counts: bool = False,
) -> bool:
    """
    Inserts the metadata of an object. Does nothing if the object already exists.

    :param update_counts: Maintain the directory count from the application.
                          Leave unset when the counter trigger is installed on
                          the objects table, otherwise the object is counted twice.
    :returns: Whether the object was inserted.
    """

    name = normalize_object_name(name)
    directory = parent_directory(name)

    insert_stmt = (
        insert(ObjectDb)
        .values(
            bucket=bucket,
            name=name,
            directory=directory,
            size=size,
            created=created or utc_now(),
        )
        .on_conflict_do_nothing(index_elements=["bucket", "name"])
        .returning(ObjectDb.name)
    )
    inserted = session.execute(insert_stmt).scalar_one_or_none() is not None

    if inserted and update_counts:
        increment_directory_count(session=session, directory=directory)

    return inserted


def delete_object(
    session: DbSession, bucket: str, name: str, update_counts: bool = False
) -> bool:
    """
    Deletes the metadata of an object.

    :param update_counts: See `insert_object`.
    :returns: Whether the object existed.
    """

    delete_stmt = (
        delete(ObjectDb)
        .where(
            (ObjectDb.bucket == bucket)
            & (ObjectDb.name == normalize_object_name(name))
        )
        .returning(ObjectDb.directory)
    )
    directory = session.execute(delete_stmt).scalar_one_or_none()
    if directory is None:
        return False

    if update_counts:
        decrement_directory_count(session=session, directory=directory)

    return True
