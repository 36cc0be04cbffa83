"""
Database connection and schema management.

One process-wide DuckDB connection guarded by a re-entrant lock. Business
operations that touch more than one row run inside `transaction()`, which is
the only place multi-row consistency is guaranteed.

Tables:
- providers / customers / delivery_addresses: tenants, accounts, fixed addresses
- meals / orders: daily menu and orders against it
- subscriptions / subscription_requests / subscription_skips: auto-order setup
- payments: manual balance top-ups
- transactions: audit ledger of debits, refunds and payments
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import duckdb

from .exceptions import BaseApplicationError, ConcurrencyError, DatabaseError
from ..config.settings import settings

logger = logging.getLogger(__name__)

SCHEMA_SQL = r"""
CREATE SEQUENCE IF NOT EXISTS providers_id_seq;
CREATE TABLE IF NOT EXISTS providers (
  id INTEGER DEFAULT nextval('providers_id_seq') PRIMARY KEY,
  business_name TEXT NOT NULL,
  owner_name TEXT,
  contact_number TEXT,
  email TEXT,
  service_area TEXT,
  slug TEXT UNIQUE NOT NULL,
  account_status TEXT CHECK(account_status IN ('active','suspended')) DEFAULT 'active',
  delivery_mode TEXT CHECK(delivery_mode IN ('custom','fixed')) DEFAULT 'custom',
  password_hash TEXT,
  created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE SEQUENCE IF NOT EXISTS customers_id_seq;
CREATE TABLE IF NOT EXISTS customers (
  id INTEGER DEFAULT nextval('customers_id_seq') PRIMARY KEY,
  provider_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  mobile_number TEXT NOT NULL,
  email TEXT,
  address TEXT,
  current_balance_paise BIGINT DEFAULT 0,  -- negative: customer owes money
  has_subscription BOOLEAN DEFAULT FALSE,
  password_hash TEXT,
  created_at TIMESTAMP DEFAULT current_timestamp,
  UNIQUE(provider_id, mobile_number)
);

CREATE SEQUENCE IF NOT EXISTS delivery_addresses_id_seq;
CREATE TABLE IF NOT EXISTS delivery_addresses (
  id INTEGER DEFAULT nextval('delivery_addresses_id_seq') PRIMARY KEY,
  provider_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  address TEXT NOT NULL,
  created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE SEQUENCE IF NOT EXISTS meals_id_seq;
CREATE TABLE IF NOT EXISTS meals (
  id INTEGER DEFAULT nextval('meals_id_seq') PRIMARY KEY,
  provider_id INTEGER NOT NULL,
  date DATE NOT NULL,
  meal_type TEXT CHECK(meal_type IN ('breakfast','lunch','dinner')) NOT NULL,
  option_1 TEXT NOT NULL,
  option_2 TEXT,
  price_paise BIGINT NOT NULL,
  cut_off_time TIME NOT NULL,  -- provider-local wall clock
  created_at TIMESTAMP DEFAULT current_timestamp,
  UNIQUE(provider_id, date, meal_type)
);

CREATE SEQUENCE IF NOT EXISTS orders_id_seq;
CREATE TABLE IF NOT EXISTS orders (
  id INTEGER DEFAULT nextval('orders_id_seq') PRIMARY KEY,
  customer_id INTEGER NOT NULL,
  provider_id INTEGER NOT NULL,
  meal_id INTEGER NOT NULL,
  selected_option TEXT NOT NULL,
  delivery_address TEXT,
  status TEXT CHECK(status IN ('pending','confirmed','out_for_delivery','delivered','canceled')) NOT NULL,
  amount_paise BIGINT NOT NULL,
  notes TEXT,
  created_at TIMESTAMP DEFAULT current_timestamp,
  canceled_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id);
CREATE INDEX IF NOT EXISTS idx_orders_meal ON orders(meal_id);

CREATE SEQUENCE IF NOT EXISTS subscriptions_id_seq;
CREATE TABLE IF NOT EXISTS subscriptions (
  id INTEGER DEFAULT nextval('subscriptions_id_seq') PRIMARY KEY,
  customer_id INTEGER NOT NULL,
  provider_id INTEGER NOT NULL,
  meal_types_json TEXT NOT NULL,            -- ["lunch", "dinner"]
  delivery_address_ids_json TEXT,           -- {"lunch": 3, "dinner": 4}
  start_date DATE NOT NULL,
  end_date DATE NOT NULL,
  active BOOLEAN DEFAULT TRUE,
  auto_order BOOLEAN DEFAULT TRUE,
  created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE SEQUENCE IF NOT EXISTS subscription_requests_id_seq;
CREATE TABLE IF NOT EXISTS subscription_requests (
  id INTEGER DEFAULT nextval('subscription_requests_id_seq') PRIMARY KEY,
  customer_id INTEGER NOT NULL,
  provider_id INTEGER NOT NULL,
  status TEXT CHECK(status IN ('pending','approved','rejected')) NOT NULL,
  created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE SEQUENCE IF NOT EXISTS subscription_skips_id_seq;
CREATE TABLE IF NOT EXISTS subscription_skips (
  id INTEGER DEFAULT nextval('subscription_skips_id_seq') PRIMARY KEY,
  subscription_id INTEGER NOT NULL,
  customer_id INTEGER NOT NULL,
  skip_date DATE NOT NULL,
  meal_type TEXT NOT NULL,
  created_at TIMESTAMP DEFAULT current_timestamp,
  UNIQUE(subscription_id, skip_date, meal_type)
);

CREATE SEQUENCE IF NOT EXISTS payments_id_seq;
CREATE TABLE IF NOT EXISTS payments (
  id INTEGER DEFAULT nextval('payments_id_seq') PRIMARY KEY,
  customer_id INTEGER NOT NULL,
  provider_id INTEGER NOT NULL,
  amount_paise BIGINT NOT NULL,
  reference TEXT,
  status TEXT CHECK(status IN ('pending','paid','failed')) NOT NULL,
  created_at TIMESTAMP DEFAULT current_timestamp,
  settled_at TIMESTAMP
);

CREATE SEQUENCE IF NOT EXISTS transactions_id_seq;
CREATE TABLE IF NOT EXISTS transactions (
  id INTEGER DEFAULT nextval('transactions_id_seq') PRIMARY KEY,
  customer_id INTEGER NOT NULL,
  provider_id INTEGER NOT NULL,
  type TEXT CHECK(type IN ('debit','refund','payment')) NOT NULL,
  amount_paise BIGINT NOT NULL,
  order_id INTEGER,
  payment_id INTEGER,
  description TEXT,
  created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE INDEX IF NOT EXISTS idx_transactions_customer ON transactions(customer_id);
"""


class DatabaseManager:
    """Owns the DuckDB connection and wraps query/transaction helpers"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self._tx_depth = 0
        self.db_path = db_path or self._get_db_path_from_settings()

    def _get_db_path_from_settings(self) -> str:
        db_url = settings.database_url
        if db_url.startswith("duckdb://"):
            return db_url.replace("duckdb://", "", 1)
        return db_url

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            with self._lock:
                if self._connection is None:
                    if self.db_path != ":memory:":
                        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                    self._connection = duckdb.connect(self.db_path)
                    self._init_schema()
        return self._connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self.connection

    def _init_schema(self):
        try:
            self._connection.execute(SCHEMA_SQL)
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    def init_database(self):
        """Connect and create the schema if needed"""
        self.get_connection()
        logger.info("Database ready at %s", self.db_path)

    def close(self):
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        Run a block as one all-or-nothing unit.

        Nested calls join the outer transaction. Application errors raised
        inside the block roll back and propagate unchanged; driver errors are
        wrapped in DatabaseError (or ConcurrencyError for write conflicts).
        """
        with self._lock:
            conn = self.connection
            if self._tx_depth > 0:
                self._tx_depth += 1
                try:
                    yield conn
                finally:
                    self._tx_depth -= 1
                return

            conn.execute("BEGIN TRANSACTION")
            self._tx_depth = 1
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException as e:
                try:
                    conn.execute("ROLLBACK")
                except duckdb.Error:
                    logger.warning("Rollback failed", exc_info=True)
                if isinstance(e, BaseApplicationError) or not isinstance(e, Exception):
                    raise
                if "conflict" in str(e).lower():
                    raise ConcurrencyError() from e
                if isinstance(e, duckdb.Error):
                    raise DatabaseError(f"Database operation failed: {e}") from e
                raise
            finally:
                self._tx_depth = 0

    def execute(self, query: str, params: Optional[list] = None):
        """Execute a statement that returns nothing of interest"""
        with self._lock:
            try:
                self.connection.execute(query, params or [])
            except duckdb.Error as e:
                raise DatabaseError(f"Query execution failed: {e}") from e

    def fetch_all(self, query: str, params: Optional[list] = None) -> List[Dict[str, Any]]:
        """Run a query and return rows as dicts"""
        with self._lock:
            try:
                return rows_as_dicts(self.connection.execute(query, params or []))
            except duckdb.Error as e:
                raise DatabaseError(f"Query execution failed: {e}") from e

    def fetch_one(self, query: str, params: Optional[list] = None) -> Optional[Dict[str, Any]]:
        """Run a query and return the first row as a dict, or None"""
        with self._lock:
            try:
                return row_as_dict(self.connection.execute(query, params or []))
            except duckdb.Error as e:
                raise DatabaseError(f"Query execution failed: {e}") from e


def rows_as_dicts(cursor) -> List[Dict[str, Any]]:
    columns = [d[0] for d in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def row_as_dict(cursor) -> Optional[Dict[str, Any]]:
    row = cursor.fetchone()
    if row is None:
        return None
    columns = [d[0] for d in cursor.description]
    return dict(zip(columns, row))


# Process-wide manager
db_manager = DatabaseManager()


def get_db() -> DatabaseManager:
    """FastAPI dependency returning the active database manager"""
    return db_manager
