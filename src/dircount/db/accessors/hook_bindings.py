from typing import Optional, Sequence

from sqlalchemy import delete, select, text
from sqlalchemy.dialects.postgresql import insert

from dircount.toolkit.timestamp import utc_now
from dircount.types.db_session import DbSession

from ..models.hook_bindings import HookBindingDb


def get_hook_binding(
    session: DbSession, table_name: str, hook_name: str
) -> Optional[HookBindingDb]:
    select_stmt = select(HookBindingDb).where(
        (HookBindingDb.table_name == table_name)
        & (HookBindingDb.hook_name == hook_name)
    )
    return session.execute(select_stmt).scalar_one_or_none()


def get_hook_bindings(session: DbSession) -> Sequence[HookBindingDb]:
    select_stmt = select(HookBindingDb).order_by(
        HookBindingDb.table_name, HookBindingDb.hook_name
    )
    return session.execute(select_stmt).scalars().all()


def delete_outdated_hook_binding(
    session: DbSession, table_name: str, hook_name: str, version: int
) -> Optional[int]:
    """
    Deletes the binding of a hook if it is older than the specified version.

    :returns: The version of the deleted binding, if any.
    """

    delete_stmt = (
        delete(HookBindingDb)
        .where(
            (HookBindingDb.table_name == table_name)
            & (HookBindingDb.hook_name == hook_name)
            & (HookBindingDb.version < version)
        )
        .returning(HookBindingDb.version)
        .execution_options(synchronize_session=False)
    )
    return session.execute(delete_stmt).scalar_one_or_none()


def insert_hook_binding(
    session: DbSession,
    table_name: str,
    hook_name: str,
    version: int,
    implementation_ref: str,
) -> bool:
    """
    Inserts a hook binding, unless a binding already exists for the hook.
    If a concurrent transaction is inserting the same binding, waits for it
    to complete.

    :returns: Whether the binding was inserted.
    """

    insert_stmt = (
        insert(HookBindingDb)
        .values(
            table_name=table_name,
            hook_name=hook_name,
            version=version,
            implementation_ref=implementation_ref,
            installed=utc_now(),
        )
        .on_conflict_do_nothing(index_elements=["table_name", "hook_name"])
        .returning(HookBindingDb.version)
    )
    return session.execute(insert_stmt).scalar_one_or_none() is not None


def function_exists(session: DbSession, function_name: str) -> bool:
    return (
        session.execute(
            text("SELECT to_regprocedure(:signature) IS NOT NULL"),
            {"signature": f"{function_name}()"},
        ).scalar_one()
    )


def table_exists(session: DbSession, table_name: str) -> bool:
    return (
        session.execute(
            text("SELECT to_regclass(:table_name) IS NOT NULL"),
            {"table_name": table_name},
        ).scalar_one()
    )


def replace_trigger(
    session: DbSession, table_name: str, hook_name: str, function_name: str
) -> None:
    """
    Replaces the row-level trigger of a table. Identifiers must be validated by
    the caller.
    """

    session.execute(text(f"DROP TRIGGER IF EXISTS {hook_name} ON {table_name}"))
    session.execute(
        text(
            f"CREATE TRIGGER {hook_name} "
            f"AFTER INSERT OR DELETE ON {table_name} "
            f"FOR EACH ROW EXECUTE FUNCTION {function_name}()"
        )
    )


def get_trigger_function(
    session: DbSession, table_name: str, hook_name: str
) -> Optional[str]:
    """
    Returns the name of the function executed by a trigger, as seen by PostgreSQL.
    """

    select_stmt = text(
        """
        SELECT p.proname
        FROM pg_trigger t
        JOIN pg_proc p ON p.oid = t.tgfoid
        WHERE t.tgrelid = to_regclass(:table_name) AND t.tgname = :hook_name
        """
    )
    return session.execute(
        select_stmt, {"table_name": table_name, "hook_name": hook_name}
    ).scalar_one_or_none()


def get_function_source(session: DbSession, function_name: str) -> Optional[str]:
    """
    Returns the body of a function without arguments, or None if it does not exist.
    """

    select_stmt = text(
        "SELECT prosrc FROM pg_proc WHERE oid = to_regprocedure(:signature)"
    )
    return session.execute(
        select_stmt, {"signature": f"{function_name}()"}
    ).scalar_one_or_none()
