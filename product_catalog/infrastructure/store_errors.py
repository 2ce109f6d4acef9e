"""Translation of SQLAlchemy errors into the catalog error taxonomy."""

from sqlalchemy.exc import (
    DBAPIError,
    DataError,
    IntegrityError,
    InterfaceError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from product_catalog.domain.exceptions import (
    CatalogError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
)


def _constraint_target(exc: IntegrityError) -> str | None:
    """Best-effort name of the violated constraint.

    asyncpg exposes ``constraint_name`` on the driver exception, which
    the DBAPI adapter chains as ``__cause__``.
    """
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    return None


def map_store_error(exc: SQLAlchemyError) -> CatalogError:
    """Convert a low-level store error into a catalog error.

    Args:
        exc: Error raised by SQLAlchemy or the DBAPI driver.

    Returns:
        ConflictError for integrity violations, NotFoundError when an
        expected row is missing, StoreUnavailableError for connectivity
        failures and a plain CatalogError for rejected values (e.g. a
        numeric overflow) and anything else.
    """
    if isinstance(exc, IntegrityError):
        return ConflictError(_constraint_target(exc))

    if isinstance(exc, NoResultFound):
        return NotFoundError()

    if isinstance(exc, DataError):
        return CatalogError(
            "Value rejected by catalog store",
            details={"reason": str(exc.orig)},
        )

    if isinstance(exc, (OperationalError, InterfaceError, DBAPIError, PoolTimeoutError)):
        return StoreUnavailableError(
            "Catalog store unavailable",
            details={"reason": str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)},
        )

    return CatalogError(str(exc) or "Internal server error")
