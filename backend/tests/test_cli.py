"""
Tests for demo seeding and the management CLI.
"""

from decimal import Decimal

from sqlalchemy import func, select
from typer.testing import CliRunner

from pos_api import __version__
from pos_api.cli import app
from pos_api.models import InventoryLogEntry, Item, Outlet, User
from pos_api.seed import MENU, SEED_OUTLET_NAME, STAFF, seed
from pos_shared.security.password import verify_password

runner = CliRunner()


class TestSeed:
    def test_creates_outlet_with_staff_and_stock(self, db_session):
        outlet = seed(db_session, password="demo-pass-1")

        assert outlet.name == SEED_OUTLET_NAME
        users = db_session.scalars(select(User).where(User.outlet_id == outlet.id)).all()
        assert len(users) == len(STAFF)
        assert verify_password("demo-pass-1", users[0].password)

        items = db_session.scalars(select(Item).where(Item.outlet_id == outlet.id)).all()
        assert len(items) == len(MENU)
        assert db_session.scalar(select(func.count(InventoryLogEntry.id))) == len(MENU)

    def test_is_idempotent(self, db_session):
        first = seed(db_session)
        second = seed(db_session)

        assert first.id == second.id
        assert db_session.scalar(select(func.count(Outlet.id))) == 1


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_low_stock_rejects_bad_outlet_id(self):
        result = runner.invoke(app, ["low-stock", "not-a-uuid"])

        assert result.exit_code == 1
        assert "Invalid outlet id" in result.output

    def test_low_stock_lists_items(self, db_session, seed_outlet, seed_inventory):
        seed_inventory.stock = Decimal("1")
        db_session.commit()

        result = runner.invoke(app, ["low-stock", str(seed_outlet.id)])

        assert result.exit_code == 0
        assert "Mutton Curry" in result.output

    def test_low_stock_empty(self, db_session, seed_outlet, seed_inventory):
        result = runner.invoke(app, ["low-stock", str(seed_outlet.id)])

        assert result.exit_code == 0
        assert "No low-stock items" in result.output
