"""Tests for SQLAlchemy error translation."""

import pytest
from sqlalchemy.exc import (
    DBAPIError,
    DataError,
    IntegrityError,
    InterfaceError,
    InvalidRequestError,
    NoResultFound,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from product_catalog.domain.exceptions import (
    CatalogError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
)
from product_catalog.infrastructure.store_errors import map_store_error


class _UniqueViolation(Exception):
    """Driver error carrying the violated constraint, as asyncpg does."""

    constraint_name = "uq_products_enterprise_ean"


class TestMapStoreError:
    """Tests for map_store_error."""

    def test_integrity_error_is_conflict(self) -> None:
        """Should map unique violations to ConflictError with the constraint name."""
        error = map_store_error(IntegrityError("INSERT ...", {}, _UniqueViolation("dup")))

        assert isinstance(error, ConflictError)
        assert error.status_code == 409
        assert error.error_code == "DUPLICATE_ENTRY"
        assert error.target == "uq_products_enterprise_ean"

    def test_constraint_read_from_chained_cause(self) -> None:
        """Should find the constraint name on the driver error's cause."""
        adapted = Exception("adapted")
        adapted.__cause__ = _UniqueViolation("dup")

        error = map_store_error(IntegrityError("INSERT ...", {}, adapted))

        assert error.target == "uq_products_enterprise_ean"

    def test_integrity_error_without_constraint(self) -> None:
        """Should still map to ConflictError when the target is unknown."""
        error = map_store_error(IntegrityError("INSERT ...", {}, Exception("dup")))

        assert isinstance(error, ConflictError)
        assert error.target is None
        assert error.message == "Duplicate entry for field"

    def test_no_result_is_not_found(self) -> None:
        """Should map NoResultFound to NotFoundError."""
        error = map_store_error(NoResultFound())

        assert isinstance(error, NotFoundError)
        assert error.status_code == 404

    @pytest.mark.parametrize(
        "exc",
        [
            OperationalError("SELECT 1", {}, OSError("connection refused")),
            InterfaceError("SELECT 1", {}, Exception("connection closed")),
            DBAPIError("SELECT 1", {}, Exception("driver failure")),
            PoolTimeoutError("QueuePool limit reached"),
        ],
    )
    def test_connectivity_errors_are_unavailable(self, exc) -> None:
        """Should map driver and pool failures to StoreUnavailableError."""
        error = map_store_error(exc)

        assert isinstance(error, StoreUnavailableError)
        assert error.error_code == "STORE_UNAVAILABLE"
        assert error.status_code == 500

    def test_other_errors_are_internal(self) -> None:
        """Should map anything else to a plain CatalogError."""
        error = map_store_error(InvalidRequestError("bad request"))

        assert type(error) is CatalogError
        assert error.error_code == "INTERNAL_ERROR"

    def test_data_error_is_internal(self) -> None:
        """Should map rejected values to a plain CatalogError, not an outage."""
        error = map_store_error(DataError("UPDATE ...", {}, Exception("numeric field overflow")))

        assert type(error) is CatalogError
        assert error.error_code == "INTERNAL_ERROR"
        assert error.details == {"reason": "numeric field overflow"}
