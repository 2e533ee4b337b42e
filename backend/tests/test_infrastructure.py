"""
Tests for shared infrastructure: settings, logging, correlation, exceptions
and transaction handling.
"""

import json
import logging

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError

from donations.models import Donation
from shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    get_logger,
    mask_user_id,
)
from shared.config.settings import Settings, get_settings
from shared.infrastructure.correlation import CorrelationIdFilter, bind_request_id, get_request_id
from shared.infrastructure.db import (
    get_db,
    get_db_context,
    get_engine,
    get_session_factory,
    safe_commit,
    transaction_scope,
)
from shared.utils.exceptions import (
    DuplicateEntityError,
    InvalidIdentifierError,
    NotFoundError,
    TransactionError,
    ValidationError,
)


class TestSettings:
    def test_defaults_are_valid(self):
        assert Settings().validate_production_settings() == []

    def test_production_checks(self):
        errors = Settings(
            environment="production",
            debug=True,
            database_url="sqlite:///prod.db",
        ).validate_production_settings()
        assert len(errors) == 2

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("BULK_IMPORT_STEP_MS", "250")
        monkeypatch.setenv("FILTER_LIST_DELIMITER", ",")
        s = Settings()
        assert s.bulk_import_step_ms == 250
        assert s.filter_list_delimiter == ","


def _record(msg="Donation created", **data):
    record = logging.LogRecord("donations.test", logging.INFO, __file__, 10, msg, (), None)
    record.extra_data = data or None
    CorrelationIdFilter().filter(record)
    return record


class TestLogging:
    def test_structured_formatter_emits_json(self):
        with bind_request_id("req-12345678"):
            record = _record(donation_id="abc")
        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "Donation created"
        assert payload["data"] == {"donation_id": "abc"}
        assert payload["request_id"] == "req-12345678"

    def test_development_formatter_includes_data(self):
        line = DevelopmentFormatter().format(_record(count=3))
        assert "Donation created" in line
        assert "count=3" in line

    def test_logger_accepts_keyword_data(self, caplog):
        logger = get_logger("donations.test")
        with caplog.at_level(logging.INFO, logger="donations.test"):
            logger.info("Donations imported", count=2)

        (record,) = [r for r in caplog.records if r.name == "donations.test"]
        assert record.extra_data == {"count": 2}

    def test_repository_logs_lifecycle(self, repo, caplog):
        with caplog.at_level(logging.INFO, logger="donations.repositories.donation"):
            created = repo.create({"item": "rice"})

        messages = [r.getMessage() for r in caplog.records]
        assert "Donation created" in messages
        record = next(r for r in caplog.records if r.getMessage() == "Donation created")
        assert record.extra_data["donation_id"] == str(created.id)

    def test_mask_user_id(self):
        assert mask_user_id(None) == "<no-user>"
        assert mask_user_id("12345678-aaaa") == "12345678..."


class TestCorrelation:
    def test_binding_is_scoped(self):
        assert get_request_id() == ""
        with bind_request_id("abc") as request_id:
            assert request_id == "abc"
            assert get_request_id() == "abc"
        assert get_request_id() == ""

    def test_generates_id(self):
        with bind_request_id() as request_id:
            assert len(request_id) == 36

    def test_filter_uses_dash_when_unbound(self):
        assert _record().request_id == "-"


class TestExceptions:
    def test_status_codes(self):
        assert NotFoundError("Donation", 1).status_code == 404
        assert ValidationError("bad").status_code == 400
        assert InvalidIdentifierError("id", "x").status_code == 400
        assert DuplicateEntityError("Donation").status_code == 400
        assert TransactionError("delete donations").status_code == 500

    def test_hierarchy(self):
        assert issubclass(InvalidIdentifierError, ValidationError)
        assert issubclass(DuplicateEntityError, ValidationError)

    def test_detail_is_str(self):
        err = NotFoundError("Donation", "abc")
        assert str(err) == "Donation with ID abc not found"


class TestTransactionScope:
    def test_commits_when_owned(self, db_session):
        with transaction_scope(db_session, "test insert"):
            db_session.add(Donation(item="rice"))
        db_session.rollback()

        assert db_session.scalar(select(Donation.item)) == "rice"

    def test_leaves_commit_to_caller(self, db_session):
        with transaction_scope(db_session, "test insert", commit=False):
            db_session.add(Donation(item="rice"))
        db_session.rollback()

        assert db_session.scalar(select(Donation.item)) is None

    def test_app_errors_roll_back_and_propagate(self, db_session):
        with pytest.raises(NotFoundError):
            with transaction_scope(db_session, "test insert"):
                db_session.add(Donation(item="rice"))
                db_session.flush()
                raise NotFoundError("User", "x")

        assert db_session.scalar(select(Donation.item)) is None

    def test_backend_errors_become_transaction_errors(self, db_session):
        with pytest.raises(TransactionError) as exc_info:
            with transaction_scope(db_session, "test insert"):
                raise OperationalError("INSERT", {}, Exception("locked"))
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert exc_info.value.rolled_back is True

    def test_caller_owned_failure_is_not_reported_as_rolled_back(self, db_session, caplog):
        with caplog.at_level(logging.ERROR, logger="shared.utils.exceptions"):
            with pytest.raises(TransactionError) as exc_info:
                with transaction_scope(db_session, "test insert", commit=False):
                    raise OperationalError("INSERT", {}, Exception("locked"))

        assert exc_info.value.rolled_back is False
        record = next(r for r in caplog.records if r.name == "shared.utils.exceptions")
        assert record.extra_data["rolled_back"] is False
        db_session.rollback()

    def test_safe_commit_rolls_back(self, db_session, monkeypatch):
        db_session.add(Donation(item="rice"))

        def boom():
            raise OperationalError("COMMIT", {}, Exception("locked"))

        monkeypatch.setattr(db_session, "commit", boom)
        with pytest.raises(OperationalError):
            safe_commit(db_session)
        monkeypatch.undo()

        assert db_session.scalar(select(Donation.item)) is None


class TestSessionFactory:
    @pytest.fixture
    def sqlite_settings(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
        for cached in (get_settings, get_engine, get_session_factory):
            cached.cache_clear()
        yield
        for cached in (get_settings, get_engine, get_session_factory):
            cached.cache_clear()

    def test_context_yields_working_session(self, sqlite_settings):
        with get_db_context() as db:
            assert db.scalar(text("SELECT 1")) == 1

    def test_dependency_closes_session(self, sqlite_settings):
        gen = get_db()
        db = next(gen)
        assert db.scalar(text("SELECT 1")) == 1
        gen.close()
        assert not db.in_transaction()

    def test_engine_is_cached(self, sqlite_settings):
        assert get_engine() is get_engine()
