"""
Forward-only installation of versioned trigger functions.

A hook is identified by a table name and a trigger name. The version bound to
a hook is recorded in the hook_bindings table and never decreases: requesting
an older or equal version is a no-op, and concurrent installers racing for the
same hook are resolved by the primary key of the binding.
"""

import logging

from dircount.db.accessors.hook_bindings import (
    delete_outdated_hook_binding,
    function_exists,
    get_hook_binding,
    insert_hook_binding,
    replace_trigger,
    table_exists,
)
from dircount.exceptions import (
    HookInstallConflict,
    ImplementationNotFound,
    InvalidIdentifier,
)
from dircount.toolkit.paths import validate_identifier
from dircount.types.db_session import DbSessionFactory
from dircount.types.hooks import HookInstallOutcome

LOGGER = logging.getLogger(__name__)


def _validate_version(version: int) -> int:
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid hook version: {version!r}")

    return version


def ensure_hook_version(
    session_factory: DbSessionFactory,
    table_name: str,
    hook_name: str,
    version: int,
    implementation_ref: str,
) -> HookInstallOutcome:
    """
    Binds version `version` of a trigger function to a hook, unless the same
    or a newer version is already bound.

    The check for an existing binding takes no lock, so that the usual case,
    automation calling this function on every deployment, does not disrupt the
    traffic on the table. Replacing the trigger locks the table until the end
    of the transaction.

    :param session_factory: DB session factory. Each step uses its own session.
    :param table_name: Table the trigger is attached to.
    :param hook_name: Name of the trigger. Stable across versions.
    :param version: Version to install.
    :param implementation_ref: Name of the trigger function. Must already exist.
    :returns: The outcome of the installation. `CONFLICT` means that a concurrent
              installer won the race and that the call must be retried.
    """

    validate_identifier(table_name)
    validate_identifier(hook_name)
    validate_identifier(implementation_ref)
    _validate_version(version)

    with session_factory() as session:
        binding = get_hook_binding(
            session=session, table_name=table_name, hook_name=hook_name
        )

    if binding is not None and binding.version >= version:
        LOGGER.info(
            "%s on %s: version %d is bound, no change needed for version %d",
            hook_name,
            table_name,
            binding.version,
            version,
        )
        return HookInstallOutcome.NO_CHANGE_NEEDED

    with session_factory() as session:
        if not table_exists(session=session, table_name=table_name):
            raise InvalidIdentifier(f"Table '{table_name}' does not exist")
        if not function_exists(session=session, function_name=implementation_ref):
            raise ImplementationNotFound(
                f"Function '{implementation_ref}()' does not exist"
            )

        # Binding row lock first, table lock second, in every path.
        previous_version = delete_outdated_hook_binding(
            session=session, table_name=table_name, hook_name=hook_name, version=version
        )
        if previous_version is not None:
            LOGGER.info(
                "%s on %s: removing version %d",
                hook_name,
                table_name,
                previous_version,
            )

        inserted = insert_hook_binding(
            session=session,
            table_name=table_name,
            hook_name=hook_name,
            version=version,
            implementation_ref=implementation_ref,
        )
        if not inserted:
            session.rollback()
            LOGGER.info(
                "%s on %s: version %d was not installed because of a concurrent installation",
                hook_name,
                table_name,
                version,
            )
            return HookInstallOutcome.CONFLICT

        replace_trigger(
            session=session,
            table_name=table_name,
            hook_name=hook_name,
            function_name=implementation_ref,
        )
        session.commit()

    LOGGER.info(
        "%s on %s: installed version %d (%s)",
        hook_name,
        table_name,
        version,
        implementation_ref,
    )
    return HookInstallOutcome.INSTALLED


def ensure_hook_version_with_retries(
    session_factory: DbSessionFactory,
    table_name: str,
    hook_name: str,
    version: int,
    implementation_ref: str,
    max_attempts: int = 10,
) -> HookInstallOutcome:
    """
    Calls `ensure_hook_version` until the outcome is not a conflict.

    :raises HookInstallConflict: If all the attempts ended in a conflict.
    """

    for attempt in range(1, max_attempts + 1):
        outcome = ensure_hook_version(
            session_factory=session_factory,
            table_name=table_name,
            hook_name=hook_name,
            version=version,
            implementation_ref=implementation_ref,
        )
        if outcome != HookInstallOutcome.CONFLICT:
            return outcome

        LOGGER.warning(
            "%s on %s: conflict while installing version %d (attempt %d/%d)",
            hook_name,
            table_name,
            version,
            attempt,
            max_attempts,
        )

    raise HookInstallConflict(
        f"Could not install version {version} of {hook_name} on {table_name} "
        f"after {max_attempts} attempts"
    )
