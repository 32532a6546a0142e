import copy
import logging
from typing import Sequence, Type
from uuid import UUID, uuid4

from pydantic import BaseModel

from shared.database import Database
from shared import models

logger = logging.getLogger(__name__)


class Repository:
    """CRUD over one table keyed by a generated UUID.

    ``fields`` are overwritten on update. ``links`` (foreign keys) and ``kept``
    (values never sent back to clients, such as passwords) are overwritten only
    when the update carries a value. ``fixed`` are written at creation only.
    """

    def __init__(self, db: Database, table: str, key: str, model: Type[BaseModel],
                 fields: Sequence[str], links: Sequence[str] = (), fixed: Sequence[str] = (),
                 kept: Sequence[str] = ()):
        self.db = db
        self.table = table
        self.key = key
        self.model = model
        self.fields = list(fields)
        self.links = list(links)
        self.fixed = list(fixed)
        self.kept = list(kept)

    @property
    def columns(self):
        return [self.key] + self.fields + self.links + self.kept + self.fixed

    def using(self, db: Database) -> "Repository":
        """Same repository running its queries through ``db``, e.g. a transaction."""
        bound = copy.copy(self)
        bound.db = db
        return bound

    async def all(self):
        sql = f"SELECT * FROM {self.table}"
        return await self.db.execute_to_model(self.model, sql)

    async def get(self, key_value: UUID):
        sql = f"SELECT * FROM {self.table} WHERE {self.key} = $1"
        result = await self.db.execute_to_model(self.model, sql, key_value)
        return result[0] if result else None

    async def find_by(self, column: str, value):
        if column not in self.columns:
            raise ValueError(f"{self.table} has no column {column}")
        sql = f"SELECT * FROM {self.table} WHERE {column} = $1"
        return await self.db.execute_to_model(self.model, sql, value)

    async def create(self, entity: BaseModel):
        values = entity.model_dump()
        values[self.key] = values.get(self.key) or uuid4()
        columns = self.columns
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        sql = f"""
            INSERT INTO {self.table} ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING *
        """
        result = await self.db.execute_to_model(self.model, sql, *[values.get(c) for c in columns])
        logger.debug(f"Inserted {self.table} {values[self.key]}")
        return result[0]

    async def update(self, key_value: UUID, entity: BaseModel):
        values = entity.model_dump()
        columns = self.fields + [c for c in self.links + self.kept if values.get(c) is not None]
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=1))
        sql = f"""
            UPDATE {self.table} SET {assignments}
            WHERE {self.key} = ${len(columns) + 1}
            RETURNING *
        """
        result = await self.db.execute_to_model(
            self.model, sql, *[values.get(c) for c in columns], key_value)
        return result[0] if result else None

    async def set(self, key_value: UUID, **values):
        """Overwrite selected columns, bypassing the update rules."""
        columns = list(values)
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=1))
        sql = f"UPDATE {self.table} SET {assignments} WHERE {self.key} = ${len(columns) + 1} RETURNING *"
        result = await self.db.execute_to_model(self.model, sql, *values.values(), key_value)
        return result[0] if result else None

    async def claim(self, key_value: UUID, column: str, value):
        """Set ``column`` to ``value`` unless it already holds it.

        Returns None when the row is missing or already claimed; the check and
        the write are one statement.
        """
        if column not in self.columns:
            raise ValueError(f"{self.table} has no column {column}")
        sql = f"""
            UPDATE {self.table} SET {column} = $1
            WHERE {self.key} = $2 AND {column} IS DISTINCT FROM $1
            RETURNING *
        """
        result = await self.db.execute_to_model(self.model, sql, value, key_value)
        return result[0] if result else None

    async def delete(self, key_value: UUID) -> bool:
        sql = f"DELETE FROM {self.table} WHERE {self.key} = $1 RETURNING {self.key}"
        result = await self.db.execute_query(sql, key_value)
        return bool(result)


def build_repositories(db: Database) -> dict:
    return {
        "airline": Repository(
            db, "airlines", "airline_id", models.Airline,
            fields=["name", "official_name", "official_email", "official_phone",
                    "address", "company_size", "logo", "status"]),
        "aircraft": Repository(
            db, "aircraft", "aircraft_id", models.Aircraft,
            fields=["aircraft_number", "type", "capacity", "configuration"],
            links=["airline_id"]),
        "airport": Repository(
            db, "airports", "airport_id", models.Airport,
            fields=["airport_code", "name", "city", "country"]),
        "flight": Repository(
            db, "flights", "flight_id", models.Flight,
            fields=["departure", "arrival", "price", "status"],
            links=["origin_airport_id", "destination_airport_id", "airline_id", "aircraft_id"]),
        "fare": Repository(
            db, "fares", "fare_id", models.Fare,
            fields=["seat_class", "base_price", "tax", "currency"]),
        "seat": Repository(
            db, "seats", "seat_id", models.Seat,
            fields=["seat_number", "seat_class", "seat_type", "seat_status"],
            links=["flight_id", "fare_id"]),
        "booking": Repository(
            db, "bookings", "booking_id", models.Booking,
            fields=["booking_status", "pnr_number"],
            fixed=["booking_time", "customer_id", "flight_id", "seat_id"]),
        "payment": Repository(
            db, "payments", "payment_id", models.Payment,
            fields=["amount", "method", "payment_status", "txn_reference"],
            links=["booking_id"]),
        "customer": Repository(
            db, "customers", "customer_id", models.Customer,
            fields=["name", "email", "phone", "address",
                    "wallet_balance", "loyalty_points", "role"],
            kept=["password"]),
        "employee": Repository(
            db, "employees", "employee_id", models.Employee,
            fields=["name", "email", "phone", "address", "employee_role", "status"],
            links=["airline_id"]),
        "notification": Repository(
            db, "notifications", "notification_id", models.Notification,
            fields=["type", "message", "status"],
            fixed=["sent_at", "customer_id"]),
        "feedback": Repository(
            db, "feedbacks", "feedback_id", models.FeedBack,
            fields=["rating", "comments"],
            links=["customer_id", "flight_id"],
            fixed=["created_at"]),
        "waitlist": Repository(
            db, "waitlists", "waitlist_id", models.WaitList,
            fields=["position", "status"],
            links=["customer_id", "flight_id"]),
    }
