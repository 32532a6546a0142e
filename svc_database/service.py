import os
import sys
import random
import string
import asyncio
import logging
from datetime import datetime, timezone
from uuid import UUID

import uvicorn
from asyncpg.exceptions import UniqueViolationError, ForeignKeyViolationError
from fastapi import FastAPI, APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.database import Database
from shared.event_handler import EventHandler
from shared.models import (
    Event, Airline, Aircraft, Airport, Flight, Fare, Seat, Booking, Payment,
    Customer, Employee, Notification, FeedBack, WaitList,
    BookingStatus, PaymentStatus, SeatStatus, EmployeeRole,
)
from svc_database.repository import build_repositories
from svc_database.schema import SCHEMA

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Database API")
db = Database()
event_handler = EventHandler(
    db=db,
    consumer_group="DatabaseService_group",
    service_name="DatabaseService",
    redis_host=os.getenv("REDIS_HOST", "localhost"),
    redis_port=int(os.getenv("REDIS_PORT", "6379")),
    redis_db=int(os.getenv("REDIS_DB", "0"))
)
repos = build_repositories(db)
router = APIRouter(prefix="/api/v1/db")

LABELS = {
    "airline": "Airline", "aircraft": "Aircraft", "airport": "Airport",
    "flight": "Flight", "fare": "Fare", "seat": "Seat", "booking": "Booking",
    "payment": "Payment", "customer": "Customer", "employee": "Employee",
    "notification": "Notification", "feedback": "Feedback", "waitlist": "WaitList",
}


def generate_pnr() -> str:
    return "".join(random.choice(string.ascii_uppercase + string.digits) for _ in range(6))


def now() -> datetime:
    return datetime.now(timezone.utc)


async def publish(entity: str, action: str, row: BaseModel):
    payload = row.model_dump(mode="json", exclude={"password"})
    await event_handler.publish_event(f"{LABELS[entity]}{action}", payload)


async def require(entity: str, key_value):
    row = await repos[entity].get(key_value) if key_value is not None else None
    if row is None:
        raise HTTPException(status_code=404, detail=f"{LABELS[entity]} not found")
    return row


async def store(entity: str, payload: BaseModel):
    created = await repos[entity].create(payload)
    await publish(entity, "Created", created)
    return created


def add_crud_routes(entity: str, update: bool = True, delete: bool = True):
    """List, get, update and delete routes; creation is declared per entity."""
    repo = repos[entity]
    model = repo.model

    async def list_all():
        return await repo.all()

    async def get_one(key: UUID):
        return await require(entity, key)

    async def update_one(key: UUID, payload: model):
        updated = await repo.update(key, payload)
        if updated is None:
            raise HTTPException(status_code=404, detail=f"{LABELS[entity]} not found")
        await publish(entity, "Updated", updated)
        return updated

    async def delete_one(key: UUID):
        row = await require(entity, key)
        await repo.delete(key)
        await publish(entity, "Deleted", row)
        return Response(status_code=204)

    router.add_api_route(f"/{entity}", list_all, methods=["GET"], response_model=list[model])
    router.add_api_route(f"/{entity}/{{key}}", get_one, methods=["GET"], response_model=model)
    if update:
        router.add_api_route(f"/{entity}/{{key}}", update_one, methods=["PUT"], response_model=model)
    if delete:
        router.add_api_route(f"/{entity}/{{key}}", delete_one, methods=["DELETE"], status_code=204)


@router.post("/airline/create", response_model=Airline, status_code=201)
async def create_airline(payload: Airline):
    return await store("airline", payload)


@router.get("/airline/{airline_id}/employees", response_model=list[Employee])
async def get_airline_employees(airline_id: UUID):
    await require("airline", airline_id)
    return await repos["employee"].find_by("airline_id", airline_id)


@router.post("/aircraft/create/{airline_id}", response_model=Aircraft, status_code=201)
async def create_aircraft(airline_id: UUID, payload: Aircraft):
    await require("airline", airline_id)
    return await store("aircraft", payload.model_copy(update={"airline_id": airline_id}))


@router.get("/aircraft/{aircraft_id}/flights", response_model=list[Flight])
async def get_aircraft_flights(aircraft_id: UUID):
    await require("aircraft", aircraft_id)
    return await repos["flight"].find_by("aircraft_id", aircraft_id)


@router.post("/airport/create", response_model=Airport, status_code=201)
async def create_airport(payload: Airport):
    return await store("airport", payload)


@router.post("/flight/create/{origin_id}/{destination_id}/{airline_id}/{aircraft_id}",
             response_model=Flight, status_code=201)
async def create_flight(origin_id: UUID, destination_id: UUID, airline_id: UUID,
                        aircraft_id: UUID, payload: Flight):
    await require("airport", origin_id)
    await require("airport", destination_id)
    await require("airline", airline_id)
    await require("aircraft", aircraft_id)
    return await store("flight", payload.model_copy(update={
        "origin_airport_id": origin_id,
        "destination_airport_id": destination_id,
        "airline_id": airline_id,
        "aircraft_id": aircraft_id,
    }))


@router.get("/flight/{flight_id}/seats", response_model=list[Seat])
async def get_flight_seats(flight_id: UUID):
    await require("flight", flight_id)
    return await repos["seat"].find_by("flight_id", flight_id)


@router.post("/fare/create", response_model=Fare, status_code=201)
async def create_fare(payload: Fare):
    return await store("fare", payload)


@router.post("/seat/create/{flight_id}/{fare_id}", response_model=Seat, status_code=201)
async def create_seat(flight_id: UUID, fare_id: UUID, payload: Seat):
    await require("flight", flight_id)
    await require("fare", fare_id)
    return await store("seat", payload.model_copy(update={
        "flight_id": flight_id,
        "fare_id": fare_id,
        "seat_status": payload.seat_status or SeatStatus.AVAILABLE.value,
    }))


@router.post("/booking/create", response_model=Booking, status_code=201)
async def create_booking(payload: Booking):
    if payload.customer_id is None or payload.flight_id is None or payload.seat_id is None:
        raise HTTPException(status_code=400, detail="customer_id, flight_id and seat_id are required")
    await require("customer", payload.customer_id)
    await require("flight", payload.flight_id)
    seat = await require("seat", payload.seat_id)

    payment = None
    async with db.transaction() as tx:
        # claiming the seat is the booking's lock; a second request finds it taken
        if await repos["seat"].using(tx).claim(seat.seat_id, "seat_status", SeatStatus.BOOKED.value) is None:
            raise HTTPException(status_code=409, detail=f"Seat {seat.seat_number} is already booked")

        booking = await repos["booking"].using(tx).create(payload.model_copy(update={
            "booking_time": now(),
            "pnr_number": payload.pnr_number or generate_pnr(),
            "booking_status": payload.booking_status or BookingStatus.PENDING.value,
        }))

        if payload.payment is not None:
            payment = await repos["payment"].using(tx).create(payload.payment.model_copy(update={
                "booking_id": booking.booking_id,
                "payment_status": payload.payment.payment_status or PaymentStatus.PENDING.value,
            }))
            booking = booking.model_copy(update={"payment": payment})

    if payment is not None:
        await publish("payment", "Created", payment)
    await publish("booking", "Created", booking)
    return booking


@router.put("/booking/{booking_id}", response_model=Booking)
async def update_booking(booking_id: UUID, payload: Booking):
    booking = await repos["booking"].update(booking_id, payload)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    if payload.payment is not None:
        existing = await repos["payment"].find_by("booking_id", booking_id)
        payment = payload.payment.model_copy(update={"booking_id": booking_id})
        if existing:
            payment = await repos["payment"].update(existing[0].payment_id, payment)
            await publish("payment", "Updated", payment)
        else:
            payment = await store("payment", payment)
        booking = booking.model_copy(update={"payment": payment})
    await publish("booking", "Updated", booking)
    return booking


@router.post("/payment/create/{booking_id}", response_model=Payment, status_code=201)
async def create_payment(booking_id: UUID, payload: Payment):
    await require("booking", booking_id)
    return await store("payment", payload.model_copy(update={
        "booking_id": booking_id,
        "payment_status": payload.payment_status or PaymentStatus.PENDING.value,
    }))


@router.post("/customer/create", response_model=Customer, status_code=201)
async def create_customer(payload: Customer):
    return await store("customer", payload)


@router.get("/customer/email/{email}", response_model=Customer)
async def get_customer_by_email(email: str):
    result = await repos["customer"].find_by("email", email)
    if not result:
        raise HTTPException(status_code=404, detail="Customer not found")
    return result[0]


@router.get("/customer/{customer_id}/bookings", response_model=list[Booking])
async def get_customer_bookings(customer_id: UUID):
    await require("customer", customer_id)
    return await repos["booking"].find_by("customer_id", customer_id)


@router.post("/employee/create/admin", response_model=Employee, status_code=201)
async def create_admin_employee(payload: Employee):
    if payload.airline_id is not None:
        await require("airline", payload.airline_id)
    return await store("employee", payload.model_copy(update={"employee_role": EmployeeRole.ADMIN.value}))


@router.post("/employee/create/{airline_id}", response_model=Employee, status_code=201)
async def create_employee(airline_id: UUID, payload: Employee):
    await require("airline", airline_id)
    return await store("employee", payload.model_copy(update={"airline_id": airline_id}))


@router.post("/notification/create/{customer_id}", response_model=Notification, status_code=201)
async def create_notification(customer_id: UUID, payload: Notification):
    await require("customer", customer_id)
    return await store("notification", payload.model_copy(update={
        "customer_id": customer_id,
        "sent_at": now(),
    }))


@router.post("/feedback/create/{customer_id}/{flight_id}", response_model=FeedBack, status_code=201)
async def create_feedback(customer_id: UUID, flight_id: UUID, payload: FeedBack):
    await require("customer", customer_id)
    await require("flight", flight_id)
    return await store("feedback", payload.model_copy(update={
        "customer_id": customer_id,
        "flight_id": flight_id,
        "created_at": now(),
    }))


@router.post("/waitlist/create/{customer_id}/{flight_id}", response_model=WaitList, status_code=201)
async def create_waitlist(customer_id: UUID, flight_id: UUID, payload: WaitList):
    await require("customer", customer_id)
    await require("flight", flight_id)
    return await store("waitlist", payload.model_copy(update={
        "customer_id": customer_id,
        "flight_id": flight_id,
    }))


@router.delete("/booking/{booking_id}", status_code=204)
async def delete_booking(booking_id: UUID):
    booking = await require("booking", booking_id)
    async with db.transaction() as tx:
        await repos["booking"].using(tx).delete(booking_id)
        if booking.seat_id is not None:
            await repos["seat"].using(tx).set(booking.seat_id, seat_status=SeatStatus.AVAILABLE.value)
    await publish("booking", "Deleted", booking)
    return Response(status_code=204)


for _entity in LABELS:
    if _entity == "booking":
        add_crud_routes(_entity, update=False, delete=False)
    else:
        add_crud_routes(_entity)
app.include_router(router)


@app.exception_handler(UniqueViolationError)
async def unique_violation_handler(request: Request, exc: UniqueViolationError):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"detail": "Record already exists"})


@app.exception_handler(ForeignKeyViolationError)
async def foreign_key_violation_handler(request: Request, exc: ForeignKeyViolationError):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": "Referenced record does not exist"})


async def process_event(event: Event):
    """Turn booking and payment activity into customer notifications."""
    logger.debug(f"Received event {event.event_type}")
    if event.event_type == "BookingCreated":
        customer_id = event.payload.get("customer_id")
        message = f"Booking {event.payload.get('pnr_number')} created"
    elif event.event_type == "PaymentUpdated":
        if not event.payload.get("booking_id"):
            return
        booking = await repos["booking"].get(UUID(event.payload["booking_id"]))
        if booking is None:
            return
        customer_id = booking.customer_id
        message = f"Payment for booking {booking.pnr_number} is {event.payload.get('payment_status')}"
    else:
        return

    if customer_id is None:
        return
    await store("notification", Notification(
        type="BOOKING" if event.event_type == "BookingCreated" else "PAYMENT",
        message=message,
        status="SENT",
        customer_id=customer_id,
        sent_at=now(),
    ))


@app.on_event("startup")
async def startup_event():
    await db.connect()
    await db.execute_script(SCHEMA)
    app.state.consumer = asyncio.create_task(event_handler.consume_events(process_event))
    app.state.consumer.add_done_callback(log_consumer_exit)


def log_consumer_exit(task: asyncio.Task):
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Event consumer stopped: {task.exception()!r}")


@app.on_event("shutdown")
async def shutdown_event():
    consumer = getattr(app.state, "consumer", None)
    if consumer is not None:
        consumer.cancel()
        await asyncio.gather(consumer, return_exceptions=True)
    await db.disconnect()
    await event_handler.close()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_database.service:app", host=host, port=int(port), reload=True, log_level="debug")
