import dataclasses
import enum
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from loguru import logger
from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    event,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.pool import StaticPool

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATABASE_URL = f"sqlite:///{BASE_DIR / 'rental.db'}"

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(120), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("phone", String(32), nullable=False),
    Column("role", String(16), nullable=False, default="customer"),
    CheckConstraint("role IN ('admin', 'customer')", name="ck_users_role"),
)

vehicles = Table(
    "vehicles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("vehicle_name", String(120), nullable=False),
    Column("type", String(16), nullable=False),
    Column("registration_number", String(64), nullable=False, unique=True),
    Column("daily_rent_price", Float, nullable=False),
    Column("availability_status", String(16), nullable=False, default="available"),
    CheckConstraint("type IN ('car', 'bike', 'van', 'SUV')", name="ck_vehicles_type"),
    CheckConstraint(
        "availability_status IN ('available', 'booked')", name="ck_vehicles_availability"
    ),
    CheckConstraint("daily_rent_price > 0", name="ck_vehicles_price_positive"),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("vehicle_id", Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("rent_start_date", Date, nullable=False),
    Column("rent_end_date", Date, nullable=False),
    Column("total_price", Float, nullable=False),
    Column("status", String(16), nullable=False, default="active"),
    CheckConstraint("status IN ('active', 'cancelled', 'returned')", name="ck_bookings_status"),
    CheckConstraint("rent_end_date > rent_start_date", name="ck_bookings_dates"),
)


def _is_memory_sqlite(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _make_engine(url: str, echo: bool = False) -> Engine:
    parsed = make_url(url)
    kwargs: dict[str, Any] = {"echo": echo, "future": True}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(parsed):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    engine = create_engine(parsed, **kwargs)

    if parsed.get_backend_name() == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return engine


class Patch:
    """
    Base for typed partial-update structures (dataclasses with Optional fields).
    `changes()` returns only the fields that were actually provided.
    """

    def changes(self) -> dict:
        out = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = value.value if isinstance(value, enum.Enum) else value
        return out

    def is_empty(self) -> bool:
        return not self.changes()


def fetch_one(conn: Connection, table: Table, row_id: int, *, lock: bool = False) -> Optional[dict]:
    """Return a row of `table` as a plain dict, or None."""
    stmt = select(table).where(table.c.id == row_id)
    if lock:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def partial_update(conn: Connection, table: Table, row_id: int, changes: dict) -> int:
    """
    Rewrite only the given columns of one row. Column names are checked against
    the table metadata and values are always bound as parameters.
    Returns the affected row count.
    """
    unknown = set(changes) - set(table.c.keys())
    if unknown:
        raise ValueError(f"Unknown column(s) for {table.name}: {', '.join(sorted(unknown))}")
    if "id" in changes:
        raise ValueError("id is immutable")
    if not changes:
        return 0
    result = conn.execute(update(table).where(table.c.id == row_id).values(**changes))
    return result.rowcount


class Store:
    """
    Transactional store over a SQLAlchemy engine. Constructed explicitly and
    handed to the Flask app (and to services) rather than kept as a singleton.
    """

    def __init__(self, url: str | os.PathLike | None = None, *, echo: bool = False):
        self.url = str(url or DEFAULT_DATABASE_URL)
        self.engine = _make_engine(self.url, echo=echo)
        logger.info("[Store] Using database: {}", self.engine.url.render_as_string(hide_password=True))

    # ---------- Schema ----------
    def init_schema(self) -> None:
        """Create missing tables; never drops or alters existing ones."""
        metadata.create_all(self.engine)

    def clear(self) -> None:
        """Delete every row, children first."""
        with self.transaction() as conn:
            for table in reversed(metadata.sorted_tables):
                conn.execute(delete(table))
        logger.warning("[Store] All rows deleted")

    def dispose(self) -> None:
        self.engine.dispose()

    # ---------- Connections ----------
    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        BEGIN ... COMMIT around the block; any exception rolls back every
        statement executed on the yielded connection and is re-raised.
        """
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only access; the implicit transaction is rolled back on exit."""
        with self.engine.connect() as conn:
            yield conn

    # ---------- Bootstrap ----------
    def ensure_admin(self, name: str, email: str, password_hash: str, phone: str) -> Optional[int]:
        """
        Create the bootstrap admin account when no admin exists yet.
        Returns the new id, or None when an admin was already present.
        """
        with self.transaction() as conn:
            existing = conn.execute(select(users.c.id).where(users.c.role == "admin")).first()
            if existing:
                return None
            result = conn.execute(
                users.insert().values(
                    name=name,
                    email=email.lower(),
                    password_hash=password_hash,
                    phone=phone,
                    role="admin",
                )
            )
            uid = result.inserted_primary_key[0]
        logger.info("[Store] Bootstrap admin created: id={} email={}", uid, email.lower())
        return uid
