import os
import sys
import logging

import uvicorn
from fastapi import FastAPI, APIRouter

from shared.connector import ServiceConnector, ServiceCallError, service_call_error_handler
from shared.models import Airline, AirlineDetails, Employee, EmployeeRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class DatabaseApiConnector(ServiceConnector):
    async def create_airline(self, airline: Airline) -> Airline:
        data = await self.post("/airline/create", json=airline.model_dump(mode="json"))
        return Airline(**data)

    async def create_admin(self, admin: Employee) -> Employee:
        data = await self.post("/employee/create/admin", json=admin.model_dump(mode="json"))
        return Employee(**data)


app = FastAPI(title="Airline API")
app.add_exception_handler(ServiceCallError, service_call_error_handler)
database_api = DatabaseApiConnector(os.getenv("DATABASE_API_URL", "http://localhost:8081/api/v1/db"))
router = APIRouter(prefix="/api/v1/airline")


def to_airline(details: AirlineDetails) -> Airline:
    return Airline(
        name=details.name,
        official_name=details.official_name,
        official_email=details.official_email,
        official_phone=details.official_phone,
        address=details.address,
        status="ACTIVE",
        logo="logo",
    )


def to_admin(details: AirlineDetails, airline: Airline) -> Employee:
    return Employee(
        name=details.admin_name,
        email=details.admin_email,
        phone=details.admin_phone,
        address=details.address,
        employee_role=EmployeeRole.ADMIN,
        status="ACTIVE",
        airline_id=airline.airline_id,
    )


@router.post("/register", response_model=Airline, status_code=201)
async def register_airline(details: AirlineDetails):
    airline = await database_api.create_airline(to_airline(details))
    try:
        admin = await database_api.create_admin(to_admin(details, airline))
    except ServiceCallError as e:
        logger.error(f"Airline {airline.airline_id} stored without an admin: {e.message}")
        raise
    logger.info(f"Registered airline {airline.airline_id} with admin {admin.employee_id}")
    return airline


app.include_router(router)


@app.on_event("shutdown")
async def shutdown_event():
    await database_api.close()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_airline.service:app", host=host, port=int(port), reload=True, log_level="debug")
