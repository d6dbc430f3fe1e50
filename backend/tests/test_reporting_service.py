from datetime import date, datetime, timedelta

import pytest

from cashier.errors import ValidationError
from cashier.models import Transaction, TransactionDetail
from cashier.records import CheckoutItem, CheckoutRequest
from cashier.services.checkout_service import CheckoutEngine
from cashier.services.reporting_service import ReportAggregator
from cashier.storage import get_storage
from cashier.storage.memory import MemoryStore
from cashier.time_utils import utcnow


def _add_sale(session, created_at, lines):
    """Insert a committed transaction with (product_id, name, qty, subtotal) lines."""
    txn = Transaction(total_amount=sum(line[3] for line in lines), created_at=created_at)
    session.add(txn)
    session.flush()
    for product_id, name, qty, subtotal in lines:
        session.add(TransactionDetail(
            transaction_id=txn.id,
            product_id=product_id,
            product_name=name,
            quantity=qty,
            subtotal=subtotal,
        ))
    session.commit()
    return txn


class TestSqlReports:
    def test_inclusive_range(self, db_session):
        _add_sale(db_session, datetime(2024, 1, 1, 23, 59), [(1, "Indomie", 2, 7000)])
        _add_sale(db_session, datetime(2024, 1, 2, 8, 0), [(2, "Teh", 1, 5000)])
        _add_sale(db_session, datetime(2024, 1, 3, 0, 0), [(1, "Indomie", 1, 3500)])

        report = ReportAggregator(get_storage().reports).summary("2024-01-01", "2024-01-02")

        assert report.total_revenue == 12000
        assert report.total_transaction == 2
        assert report.top_product.name == "Indomie"
        assert report.top_product.sold_qty == 2

    def test_single_day_window(self, db_session):
        _add_sale(db_session, datetime(2024, 1, 2, 12, 0), [(2, "Teh", 1, 5000)])

        report = ReportAggregator(get_storage().reports).summary("2024-01-02", "2024-01-02")

        assert report.total_transaction == 1
        assert report.total_revenue == 5000

    def test_empty_window(self, db_session):
        report = ReportAggregator(get_storage().reports).summary("2030-01-01", "2030-01-31")

        assert report.to_dict() == {"total_revenue": 0, "total_transaction": 0, "top_product": None}

    def test_top_product_tie_goes_to_lowest_id(self, db_session):
        _add_sale(db_session, datetime(2024, 2, 1, 9, 0), [(7, "Kopi", 3, 9000), (4, "Gula", 3, 6000)])

        report = ReportAggregator(get_storage().reports).summary("2024-02-01", "2024-02-01")

        assert report.top_product.name == "Gula"
        assert report.top_product.sold_qty == 3

    def test_top_product_uses_latest_name_snapshot(self, db_session):
        _add_sale(db_session, datetime(2024, 3, 1, 9, 0), [(1, "Indomie", 2, 7000)])
        _add_sale(db_session, datetime(2024, 3, 2, 9, 0), [(1, "Indomie Goreng", 1, 4000)])

        report = ReportAggregator(get_storage().reports).summary("2024-03-01", "2024-03-31")

        assert report.top_product.name == "Indomie Goreng"
        assert report.top_product.sold_qty == 3

    def test_today_uses_database_date(self, db_session):
        now = utcnow()
        _add_sale(db_session, now, [(1, "Indomie", 2, 7000)])
        _add_sale(db_session, now - timedelta(days=2), [(1, "Indomie", 5, 17500)])

        report = ReportAggregator(get_storage().reports).today()

        assert report.total_transaction == 1
        assert report.total_revenue == 7000
        assert report.top_product.sold_qty == 2

    def test_checkout_shows_up_in_today(self, db_session):
        catalog = get_storage().catalog
        p = catalog.create_product({"name": "Indomie", "price": 3500, "stock": 10})
        CheckoutEngine(get_storage().transactions).checkout(
            CheckoutRequest(items=(CheckoutItem(p.id, 3),))
        )

        report = ReportAggregator(get_storage().reports).today()

        assert report.total_revenue == 10500
        assert report.top_product.name == "Indomie"


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class TestMemoryReports:
    @pytest.fixture
    def clock(self):
        return _Clock(datetime(2024, 5, 10, 10, 0))

    @pytest.fixture
    def store(self, clock):
        return MemoryStore(clock=clock)

    def _sell(self, store, *pairs):
        request = CheckoutRequest(items=tuple(CheckoutItem(p, q) for p, q in pairs))
        return CheckoutEngine(store).checkout(request)

    def test_range_and_today(self, store, clock):
        a = store.create_product({"name": "Indomie", "price": 3500, "stock": 50})
        b = store.create_product({"name": "Teh", "price": 5000, "stock": 50})

        clock.now = datetime(2024, 5, 9, 23, 59)
        self._sell(store, (a.id, 1))
        clock.now = datetime(2024, 5, 10, 0, 0)
        self._sell(store, (b.id, 4), (a.id, 1))

        today = ReportAggregator(store).today()
        assert today.total_transaction == 1
        assert today.total_revenue == 4 * 5000 + 3500
        assert today.top_product.name == "Teh"

        both = ReportAggregator(store).summary(date(2024, 5, 9), date(2024, 5, 10))
        assert both.total_transaction == 2
        assert both.total_revenue == 3500 + 20000 + 3500
        assert both.top_product.sold_qty == 4

    def test_tie_and_name_snapshot(self, store, clock):
        a = store.create_product({"name": "Kopi", "price": 100, "stock": 50})
        b = store.create_product({"name": "Gula", "price": 100, "stock": 50})
        self._sell(store, (b.id, 2), (a.id, 1))
        store.update_product(a.id, {"name": "Kopi Susu"})
        self._sell(store, (a.id, 1))

        report = ReportAggregator(store).today()

        # 2 each: lowest product id wins, with its most recent name
        assert report.top_product.name == "Kopi Susu"
        assert report.top_product.sold_qty == 2

    def test_empty(self, store):
        assert ReportAggregator(store).today().top_product is None


class TestDateParsing:
    @pytest.fixture
    def aggregator(self):
        return ReportAggregator(MemoryStore())

    def test_start_after_end(self, aggregator):
        with pytest.raises(ValidationError, match="start_date must be on or before end_date"):
            aggregator.summary("2024-02-02", "2024-02-01")

    @pytest.mark.parametrize("bad", ["2024-13-01", "01-02-2024", "yesterday"])
    def test_malformed_dates(self, aggregator, bad):
        with pytest.raises(ValidationError, match="start_date must be a date in YYYY-MM-DD format"):
            aggregator.summary(bad, "2024-02-01")

    @pytest.mark.parametrize("start,end,missing", [(None, "2024-01-01", "start_date"), ("2024-01-01", "", "end_date")])
    def test_missing_dates(self, aggregator, start, end, missing):
        with pytest.raises(ValidationError, match=f"{missing} is required"):
            aggregator.summary(start, end)
