"""
Application-side counter maintenance.

These functions run the same algorithm as the counter trigger functions, inside
the unit of work of the caller. They never commit: the counter change commits
or rolls back together with the membership change that caused it.
"""

import logging
from typing import Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.dialects.postgresql import insert

from dircount.config import get_config
from dircount.exceptions import CounterRetryExhausted, DirectoryCountInvariantViolation
from dircount.toolkit.timestamp import utc_now
from dircount.types.db_session import DbSession
from dircount.types.hooks import CounterCreateResult, EntryType

from ..models.directory_counts import DirectoryCountDb
from ..models.objects import ObjectDb

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CREATE_ATTEMPTS = 50


def get_directory_count(session: DbSession, directory: str) -> int:
    select_stmt = select(DirectoryCountDb.row_count).where(
        DirectoryCountDb.directory == directory
    )
    return session.execute(select_stmt).scalar_one_or_none() or 0


def get_directory_counts(
    session: DbSession, prefix: Optional[str] = None
) -> Sequence[DirectoryCountDb]:
    select_stmt = select(DirectoryCountDb).order_by(DirectoryCountDb.directory)
    if prefix is not None:
        select_stmt = select_stmt.where(DirectoryCountDb.directory.startswith(prefix))

    return session.execute(select_stmt).scalars().all()


def _increment_existing_count(session: DbSession, directory: str) -> bool:
    update_stmt = (
        update(DirectoryCountDb)
        .where(DirectoryCountDb.directory == directory)
        .values(row_count=DirectoryCountDb.row_count + 1, last_updated=utc_now())
        .execution_options(synchronize_session=False)
    )
    return session.execute(update_stmt).rowcount > 0


def _create_count(session: DbSession, directory: str) -> CounterCreateResult:
    now = utc_now()
    insert_stmt = (
        insert(DirectoryCountDb)
        .values(
            directory=directory,
            row_count=1,
            entry_type=EntryType.DIRECTORY,
            created=now,
            last_updated=now,
        )
        .on_conflict_do_nothing(index_elements=["directory"])
        .returning(DirectoryCountDb.directory)
    )
    created = session.execute(insert_stmt).scalar_one_or_none()
    return (
        CounterCreateResult.CREATED
        if created is not None
        else CounterCreateResult.CONFLICT
    )


def increment_directory_count(
    session: DbSession,
    directory: str,
    max_attempts: Optional[int] = None,
) -> None:
    """
    Records a new member in a directory, creating the counter row if needed.

    The update is attempted first as the row exists in the common case. If no
    row matched, the row is created. A concurrent creator can win the race for
    the creation, in which case the update is attempted again.

    :param session: DB session. Not committed.
    :param directory: Grouping key.
    :param max_attempts: Bound on the update/create loop. Defaults to the
                         `counters.max_create_attempts` setting.
    :raises CounterRetryExhausted: If the bound is exceeded.
    """

    if max_attempts is None:
        max_attempts = int(get_config().counters.max_create_attempts.value)

    for attempt in range(1, max_attempts + 1):
        if _increment_existing_count(session=session, directory=directory):
            LOGGER.debug("Incremented count of '%s'", directory)
            return

        create_result = _create_count(session=session, directory=directory)
        if create_result == CounterCreateResult.CREATED:
            LOGGER.debug("Created count of '%s'", directory)
            return

        LOGGER.debug(
            "Count of '%s' was created concurrently, retrying (attempt %d/%d)",
            directory,
            attempt,
            max_attempts,
        )

    LOGGER.error(
        "Giving up on the count of '%s' after %d attempts", directory, max_attempts
    )
    raise CounterRetryExhausted(directory=directory, attempts=max_attempts)


def decrement_directory_count(session: DbSession, directory: str) -> None:
    """
    Records the removal of a member of a directory, deleting the counter row
    when the directory becomes empty.

    The counter row is locked for the rest of the transaction. Only removals
    and creations on the same directory wait for it.

    :raises DirectoryCountInvariantViolation: If the directory has no count.
    """

    select_stmt = (
        select(DirectoryCountDb.row_count)
        .where(DirectoryCountDb.directory == directory)
        .with_for_update()
    )
    count = session.execute(select_stmt).scalar_one_or_none()

    if count is None:
        LOGGER.error("Removal event for '%s', which has no count", directory)
        raise DirectoryCountInvariantViolation(directory)

    if count <= 1:
        session.execute(
            delete(DirectoryCountDb)
            .where(DirectoryCountDb.directory == directory)
            .execution_options(synchronize_session=False)
        )
        LOGGER.debug("Deleted count of '%s'", directory)
    else:
        session.execute(
            update(DirectoryCountDb)
            .where(DirectoryCountDb.directory == directory)
            .values(row_count=DirectoryCountDb.row_count - 1, last_updated=utc_now())
            .execution_options(synchronize_session=False)
        )
        LOGGER.debug("Decremented count of '%s'", directory)


def count_objects_by_directory(session: DbSession) -> Sequence[Tuple[str, int]]:
    select_stmt = (
        select(ObjectDb.directory, func.count())
        .group_by(ObjectDb.directory)
        .order_by(ObjectDb.directory)
    )
    return [(directory, count) for directory, count in session.execute(select_stmt)]


def find_count_mismatches(session: DbSession) -> Sequence[Tuple[str, int, int]]:
    """
    Compares the maintained counts with the actual content of the objects table.

    :returns: A list of (directory, expected count, maintained count) tuples for
              every directory where both differ. A missing row counts as 0.
    """

    expected = dict(count_objects_by_directory(session))
    maintained = {
        directory_count.directory: directory_count.row_count
        for directory_count in get_directory_counts(session)
    }

    mismatches = []
    for directory in sorted(expected.keys() | maintained.keys()):
        expected_count = expected.get(directory, 0)
        maintained_count = maintained.get(directory, 0)
        if expected_count != maintained_count:
            mismatches.append((directory, expected_count, maintained_count))

    return mismatches


def rebuild_directory_counts(session: DbSession) -> int:
    """
    Recomputes all the counts from the objects table.

    Writers on the objects table are blocked until the end of the transaction.

    :returns: The number of directories.
    """

    session.execute(text(f"LOCK TABLE {ObjectDb.__tablename__} IN SHARE MODE"))
    session.execute(delete(DirectoryCountDb))

    now = utc_now()
    rows = [
        {
            "directory": directory,
            "row_count": count,
            "entry_type": EntryType.DIRECTORY,
            "created": now,
            "last_updated": now,
        }
        for directory, count in count_objects_by_directory(session)
    ]
    if rows:
        session.execute(insert(DirectoryCountDb), rows)

    return len(rows)
