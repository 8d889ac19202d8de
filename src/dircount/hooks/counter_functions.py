"""
Numbered implementations of the directory count trigger function.

Each version is a distinct PL/pgSQL function so that defining a new version
never changes the behaviour of the trigger currently bound to the table.
Bindings are managed by `dircount.hooks.installer`.
"""

import logging
from typing import Callable, Dict, Optional

from configmanager import Config
from sqlalchemy import text

from dircount.config import get_config
from dircount.db.accessors.directory_counts import DEFAULT_MAX_CREATE_ATTEMPTS
from dircount.db.accessors.hook_bindings import get_function_source
from dircount.types.db_session import DbSession, DbSessionFactory
from dircount.types.hooks import HookInstallOutcome

from .installer import ensure_hook_version_with_retries

LOGGER = logging.getLogger(__name__)

COUNTER_FUNCTION_PREFIX = "directory_counts_trigger_v"


def counter_function_name(version: int) -> str:
    return f"{COUNTER_FUNCTION_PREFIX}{version}"


def _make_counter_function_v1(max_attempts: int) -> str:
    # Legacy routine. A concurrent creation of the same directory makes the
    # triggering statement fail with a unique violation.
    return """
        BEGIN
            IF TG_OP = 'INSERT' THEN
                UPDATE directory_counts
                SET count = count + 1, last_updated = now()
                WHERE directory = NEW.directory;

                IF NOT FOUND THEN
                    INSERT INTO directory_counts
                        (directory, count, entry_type, created, last_updated)
                    VALUES (NEW.directory, 1, 'dir', now(), now());
                END IF;
                RETURN NEW;
            END IF;

            IF TG_OP = 'DELETE' THEN
                DELETE FROM directory_counts
                WHERE directory = OLD.directory AND count <= 1;

                IF NOT FOUND THEN
                    UPDATE directory_counts
                    SET count = count - 1, last_updated = now()
                    WHERE directory = OLD.directory;

                    IF NOT FOUND THEN
                        RAISE EXCEPTION 'no directory count exists for %', OLD.directory;
                    END IF;
                END IF;
                RETURN OLD;
            END IF;

            RETURN NULL;
        END;
    """


def _make_counter_function_v2(max_attempts: int) -> str:
    return f"""
        DECLARE
            v_count BIGINT;
            v_attempt INTEGER := 0;
        BEGIN
            IF TG_OP = 'INSERT' THEN
                LOOP
                    v_attempt := v_attempt + 1;
                    IF v_attempt > {max_attempts} THEN
                        RAISE EXCEPTION
                            'could not update the count of % after % attempts',
                            NEW.directory, {max_attempts};
                    END IF;

                    -- The row exists in the common case
                    UPDATE directory_counts
                    SET count = count + 1, last_updated = now()
                    WHERE directory = NEW.directory;

                    IF FOUND THEN
                        RAISE DEBUG 'directory count of %, update path', NEW.directory;
                        RETURN NEW;
                    END IF;

                    INSERT INTO directory_counts
                        (directory, count, entry_type, created, last_updated)
                    VALUES (NEW.directory, 1, 'dir', now(), now())
                    ON CONFLICT (directory) DO NOTHING;

                    IF FOUND THEN
                        RAISE DEBUG 'directory count of %, insert path', NEW.directory;
                        RETURN NEW;
                    END IF;

                    RAISE DEBUG 'directory count of %, conflict, retrying', NEW.directory;
                END LOOP;
            END IF;

            IF TG_OP = 'DELETE' THEN
                SELECT count INTO v_count
                FROM directory_counts
                WHERE directory = OLD.directory
                FOR UPDATE;

                IF NOT FOUND THEN
                    RAISE EXCEPTION 'no directory count exists for %', OLD.directory;
                END IF;

                IF v_count <= 1 THEN
                    DELETE FROM directory_counts WHERE directory = OLD.directory;
                ELSE
                    UPDATE directory_counts
                    SET count = count - 1, last_updated = now()
                    WHERE directory = OLD.directory;
                END IF;
                RETURN OLD;
            END IF;

            RETURN NULL;
        END;
    """


COUNTER_FUNCTION_VERSIONS: Dict[int, Callable[[int], str]] = {
    1: _make_counter_function_v1,
    2: _make_counter_function_v2,
}
LATEST_COUNTER_FUNCTION_VERSION = max(COUNTER_FUNCTION_VERSIONS)


def make_counter_function_body(
    version: int, max_attempts: int = DEFAULT_MAX_CREATE_ATTEMPTS
) -> str:
    """
    Returns the PL/pgSQL body of a counter function, as stored by PostgreSQL
    in `pg_proc.prosrc`.
    """

    try:
        make_body = COUNTER_FUNCTION_VERSIONS[version]
    except KeyError:
        raise ValueError(f"Unknown counter function version: {version}") from None

    if max_attempts < 1:
        raise ValueError("The number of attempts must be strictly positive.")

    return make_body(max_attempts)


def make_counter_function_sql(
    version: int, max_attempts: int = DEFAULT_MAX_CREATE_ATTEMPTS
) -> str:
    body = make_counter_function_body(version, max_attempts)
    return (
        f"CREATE OR REPLACE FUNCTION {counter_function_name(version)}()\n"
        f"RETURNS TRIGGER AS $${body}$$ LANGUAGE plpgsql;"
    )


def create_counter_function(
    session: DbSession,
    version: int,
    max_attempts: int = DEFAULT_MAX_CREATE_ATTEMPTS,
) -> None:
    session.execute(text(make_counter_function_sql(version, max_attempts)))


def ensure_directory_count_hook(
    session_factory: DbSessionFactory,
    config: Optional[Config] = None,
    version: Optional[int] = None,
) -> HookInstallOutcome:
    """
    Makes sure that the specified version (or a newer one) of the counter trigger
    function is bound to the counted table. Meant to be called on every deployment.

    The function is (re)defined first if it does not exist or if its body does
    not match the configured creation bound.

    :param session_factory: DB session factory.
    :param config: Configuration. If not specified, the global configuration object is used.
    :param version: Version to install. Defaults to the configured version, or the
                    latest version if not configured.
    """

    if config is None:
        config = get_config()

    if version is None:
        configured_version = config.counters.version.value
        version = (
            LATEST_COUNTER_FUNCTION_VERSION
            if configured_version is None
            else int(configured_version)
        )

    if version not in COUNTER_FUNCTION_VERSIONS:
        raise ValueError(f"Unknown counter function version: {version}")

    function_name = counter_function_name(version)
    max_create_attempts = int(config.counters.max_create_attempts.value)
    expected_body = make_counter_function_body(version, max_create_attempts)

    with session_factory() as session:
        current_body = get_function_source(session=session, function_name=function_name)
        if current_body != expected_body:
            LOGGER.info(
                "%s counter function %s (max create attempts: %d)",
                "Defining" if current_body is None else "Redefining",
                function_name,
                max_create_attempts,
            )
            create_counter_function(
                session=session,
                version=version,
                max_attempts=max_create_attempts,
            )
            session.commit()

    return ensure_hook_version_with_retries(
        session_factory=session_factory,
        table_name=config.counters.table.value,
        hook_name=config.counters.hook_name.value,
        version=version,
        implementation_ref=function_name,
        max_attempts=config.installer.max_install_attempts.value,
    )
