"""Shared test fixtures for the ERP Insights test suite."""

import pytest
import tempfile
import os
from datetime import date, datetime

from sqlalchemy import (
    Column, Date, DateTime, Float, ForeignKey, Integer, MetaData, String, Table, create_engine,
)

# Add parent directory to path so we can import insights modules
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from insights.core import default_registry
from insights.db import StoreResponse, init_db


metadata = MetaData()

Table("items", metadata,
      Column("id", Integer, primary_key=True),
      Column("name", String(100)))

Table("categories", metadata,
      Column("id", Integer, primary_key=True),
      Column("name", String(100)))

Table("warehouses", metadata,
      Column("id", Integer, primary_key=True),
      Column("name", String(100)),
      Column("location", String(100)),
      Column("capacity", Integer),
      Column("updated_at", DateTime, default=datetime.utcnow))

Table("inventory", metadata,
      Column("id", Integer, primary_key=True),
      Column("item_id", Integer, ForeignKey("items.id")),
      Column("warehouse_id", Integer, ForeignKey("warehouses.id"), nullable=True),
      Column("quantity", Integer),
      Column("available_quantity", Integer),
      Column("updated_at", DateTime, default=datetime.utcnow))

Table("stock_transactions", metadata,
      Column("id", Integer, primary_key=True),
      Column("transaction_type", String(20)),
      Column("quantity", Integer),
      Column("reference_number", String(50)),
      Column("created_at", DateTime, default=datetime.utcnow))

Table("customers", metadata,
      Column("id", Integer, primary_key=True),
      Column("customer_name", String(100)))

Table("customer_issues", metadata,
      Column("id", Integer, primary_key=True),
      Column("issue_id", String(20)),
      Column("issue_type", String(50)),
      Column("status", String(20)),
      Column("updated_at", DateTime, default=datetime.utcnow))

Table("suppliers", metadata,
      Column("id", Integer, primary_key=True),
      Column("name", String(100)))

Table("purchase_orders", metadata,
      Column("id", Integer, primary_key=True),
      Column("po_number", String(20)),
      Column("supplier_id", Integer, ForeignKey("suppliers.id")),
      Column("status", String(20)),
      Column("total", Float),
      Column("order_date", Date))

# No foreign key on item_id: joins come from the module's join predicate
Table("purchase_order_items", metadata,
      Column("id", Integer, primary_key=True),
      Column("purchase_order_id", Integer),
      Column("item_id", Integer),
      Column("quantity", Integer),
      Column("price", Float),
      Column("created_at", DateTime, default=datetime.utcnow))

Table("goods_receipts", metadata,
      Column("id", Integer, primary_key=True),
      Column("gr_number", String(20)),
      Column("invoice_number", String(20)),
      Column("status", String(20)),
      Column("created_at", DateTime, default=datetime.utcnow))

Table("demand_forecasting", metadata,
      Column("id", Integer, primary_key=True),
      Column("forecast_id", String(20)),
      Column("predicted_demand", Float),
      Column("lead_time", Integer),
      Column("recommend_order_qty", Integer),
      Column("created_at", DateTime, default=datetime.utcnow))

Table("accounts_receivable", metadata,
      Column("id", Integer, primary_key=True),
      Column("invoice_id", String(20)),
      Column("customer_id", Integer, ForeignKey("customers.id")),
      Column("total_amount", Float),
      Column("payment_status", String(20)),
      Column("invoice_date", Date))

Table("sales_orders", metadata,
      Column("id", Integer, primary_key=True),
      Column("order_id", String(20)),
      Column("customer_id", Integer, ForeignKey("customers.id")),
      Column("total_amount", Float),
      Column("delivery_status", String(20)),
      Column("order_date", Date))

Table("projects", metadata,
      Column("id", Integer, primary_key=True),
      Column("project_code", String(20)),
      Column("project_name", String(100)),
      Column("project_cost", Float),
      Column("estimated_end_date", Date),
      Column("status", String(20)))

Table("departments", metadata,
      Column("id", Integer, primary_key=True),
      Column("name", String(100)))

# No foreign key on department_id either
Table("employees", metadata,
      Column("id", Integer, primary_key=True),
      Column("first_name", String(50)),
      Column("last_name", String(50)),
      Column("department_id", Integer),
      Column("position", String(50)),
      Column("salary", Float),
      Column("hire_date", Date))


SEED_ROWS = {
    "items": [
        {"id": 1, "name": "Widget"},
        {"id": 2, "name": "Gadget"},
        {"id": 3, "name": "Mouse ROG"},
    ],
    "warehouses": [
        {"id": 1, "name": "North", "location": "Montreal", "capacity": 1000},
        {"id": 2, "name": "South", "location": "Quebec", "capacity": 500},
    ],
    "inventory": [
        {"id": 1, "item_id": 1, "warehouse_id": 1, "quantity": 10, "available_quantity": 8},
        {"id": 2, "item_id": 2, "warehouse_id": 2, "quantity": 20, "available_quantity": 15},
        {"id": 3, "item_id": 3, "warehouse_id": None, "quantity": 5, "available_quantity": 5},
    ],
    "stock_transactions": [
        {"id": 1, "transaction_type": "in", "quantity": 10, "reference_number": "REF-1"},
        {"id": 2, "transaction_type": "out", "quantity": 2, "reference_number": "REF-2"},
    ],
    "customers": [
        {"id": 1, "customer_name": "Acme, Inc."},
        {"id": 2, "customer_name": 'Bob "The Builder"'},
    ],
    "customer_issues": [
        {"id": 1, "issue_id": "ISS-1", "issue_type": "billing", "status": "open"},
        {"id": 2, "issue_id": "ISS-2", "issue_type": "delivery", "status": "pending"},
        {"id": 3, "issue_id": "ISS-3", "issue_type": "billing", "status": "resolved"},
        {"id": 4, "issue_id": "ISS-4", "issue_type": "product", "status": "reopened"},
    ],
    "suppliers": [
        {"id": 1, "name": "Parts Co"},
    ],
    "purchase_orders": [
        {"id": 1, "po_number": "PO-1", "supplier_id": 1, "status": "approved", "total": 120.0,
         "order_date": date(2024, 4, 1)},
        {"id": 2, "po_number": "PO-2", "supplier_id": 1, "status": "pending", "total": 80.0,
         "order_date": date(2024, 4, 15)},
    ],
    "purchase_order_items": [
        {"id": 1, "purchase_order_id": 1, "item_id": 2, "quantity": 4, "price": 2.5},
    ],
    "demand_forecasting": [
        {"id": 1, "forecast_id": "FC-1", "predicted_demand": 300.0, "lead_time": 7, "recommend_order_qty": 50},
    ],
    "accounts_receivable": [
        {"id": 1, "invoice_id": "INV-1", "customer_id": 1, "total_amount": 100.0, "payment_status": "paid",
         "invoice_date": date(2024, 3, 1)},
        {"id": 2, "invoice_id": "INV-2", "customer_id": 2, "total_amount": 40.0, "payment_status": "unpaid",
         "invoice_date": date(2024, 3, 5)},
    ],
    "sales_orders": [
        {"id": 1, "order_id": "SO-1", "customer_id": 1, "total_amount": 100.0, "delivery_status": "complete",
         "order_date": date(2024, 4, 2)},
        {"id": 2, "order_id": "SO-2", "customer_id": 2, "total_amount": 50.0, "delivery_status": "pending",
         "order_date": date(2024, 4, 3)},
        {"id": 3, "order_id": "SO-3", "customer_id": 1, "total_amount": 25.5, "delivery_status": "complete",
         "order_date": date(2024, 4, 4)},
    ],
    "projects": [
        {"id": 1, "project_code": "PRJ-1", "project_name": "Warehouse revamp", "project_cost": 15000.0,
         "estimated_end_date": date(2024, 12, 31), "status": "active"},
    ],
    "departments": [
        {"id": 1, "name": "Engineering"},
    ],
    "employees": [
        {"id": 1, "first_name": "Ada", "last_name": "King", "department_id": 1, "position": "Engineer",
         "salary": 5000.0, "hire_date": date(2020, 1, 6)},
        {"id": 2, "first_name": "Alan", "last_name": "Moore", "department_id": 1, "position": "Lead",
         "salary": 7000.0, "hire_date": date(2019, 6, 3)},
    ],
}


@pytest.fixture
def test_db():
    """Create a temporary test database with the ERP tables and return the store."""
    # Create a temporary file for the test database
    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    url = f"sqlite:///{db_path}"

    engine = create_engine(url)
    metadata.create_all(engine)
    engine.dispose()

    # Initialize the store
    store = init_db(url)

    yield store

    # Cleanup
    store.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def seeded_db(test_db):
    """Store with the sample ERP rows loaded."""
    with test_db.engine.begin() as conn:
        for table in metadata.sorted_tables:
            rows = SEED_ROWS.get(table.name)
            if rows:
                conn.execute(table.insert(), rows)
    return test_db


@pytest.fixture
def registry():
    """The built-in module registry."""
    return default_registry()


class CannedQuery:
    """Query stand-in that returns a prepared response."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def select(self, *args, **kwargs):
        self.calls.append(("select", args, kwargs))
        return self

    def eq(self, column, value):
        self.calls.append(("eq", column, value))
        return self

    def order(self, column, ascending=True):
        self.calls.append(("order", column, ascending))
        return self

    def limit(self, count):
        self.calls.append(("limit", count))
        return self

    def execute(self):
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class CannedStore:
    """Store stand-in mapping table names to responses or exceptions."""

    def __init__(self, responses):
        self.responses = responses
        self.requested = []
        self.queries = []

    def table(self, name):
        self.requested.append(name)
        response = self.responses.get(name)
        if response is None:
            response = StoreResponse(data=[], count=0)
        query = CannedQuery(response)
        self.queries.append(query)
        return query


@pytest.fixture
def canned_store():
    """Factory for CannedStore instances."""
    return CannedStore
