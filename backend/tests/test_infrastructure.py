"""
Tests for correlation IDs, structured logging and commit handling.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pos_shared.config.logging import StructuredFormatter, get_logger, mask_email
from pos_shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    get_request_id,
    request_id_var,
)
from pos_shared.infrastructure.db import safe_commit


# =============================================================================
# CorrelationIdMiddleware
# =============================================================================

class TestCorrelationIdMiddleware:

    @pytest.fixture
    def correlation_client(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/echo")
        def echo():
            return {"request_id": get_request_id()}

        return TestClient(app)

    def test_generates_request_id(self, correlation_client):
        response = correlation_client.get("/echo")

        request_id = response.headers.get("X-Request-ID")
        assert len(request_id) == 36
        assert response.json()["request_id"] == request_id

    def test_uses_provided_request_id(self, correlation_client):
        response = correlation_client.get("/echo", headers={"X-Request-ID": "till-3-req-42"})

        assert response.headers.get("X-Request-ID") == "till-3-req-42"
        assert response.json()["request_id"] == "till-3-req-42"

    def test_context_is_reset_after_request(self, correlation_client):
        correlation_client.get("/echo", headers={"X-Request-ID": "till-3-req-42"})

        assert get_request_id() == ""


# =============================================================================
# Logging
# =============================================================================

class TestCorrelationIdFilter:

    def test_adds_request_id_to_record(self):
        token = request_id_var.set("req-123")
        try:
            record = MagicMock()

            assert CorrelationIdFilter().filter(record) is True
            assert record.request_id == "req-123"
        finally:
            request_id_var.reset(token)

    def test_uses_dash_without_request(self):
        record = MagicMock()

        CorrelationIdFilter().filter(record)

        assert record.request_id == "-"


class TestStructuredLogging:

    def test_keyword_arguments_become_extra_data(self, caplog):
        logger = get_logger("pos_api.tests.structured")

        with caplog.at_level(logging.INFO, logger="pos_api.tests.structured"):
            logger.info("Bill generated", order_id="abc", total="354.00")

        record = caplog.records[-1]
        assert record.getMessage() == "Bill generated"
        assert record.extra_data == {"order_id": "abc", "total": "354.00"}

    def test_json_formatter(self):
        record = logging.LogRecord("pos_api", logging.WARNING, __file__, 1, "Low stock", None, None)
        record.extra_data = {"item_id": "x1"}
        record.request_id = "req-9"

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["message"] == "Low stock"
        assert data["data"] == {"item_id": "x1"}
        assert data["request_id"] == "req-9"

    def test_mask_email(self):
        assert mask_email("cashier@spicehouse.in") == "ca***@spicehouse.in"
        assert mask_email(None) == "<no-email>"


# =============================================================================
# safe_commit
# =============================================================================

class TestSafeCommit:

    def test_commits(self):
        db = MagicMock()

        safe_commit(db)

        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self):
        class LockTimeout(Exception):
            pass

        db = MagicMock()
        db.commit.side_effect = LockTimeout("could not obtain lock")

        with pytest.raises(LockTimeout):
            safe_commit(db)

        db.rollback.assert_called_once()
