import os
import sys
import logging
from typing import Optional
from uuid import UUID

import uvicorn
from fastapi import FastAPI, APIRouter, HTTPException

from shared.connector import ServiceConnector, ServiceCallError, service_call_error_handler
from shared.models import Airline, Employee, EmployeeDetails, EmployeeRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class DatabaseApiConnector(ServiceConnector):
    async def get_airline(self, airline_id: UUID) -> Optional[Airline]:
        data = await self.get_or_none(f"/airline/{airline_id}")
        return Airline(**data) if data else None

    async def register_employee(self, employee: Employee, airline_id: UUID) -> Employee:
        data = await self.post(f"/employee/create/{airline_id}", json=employee.model_dump(mode="json"))
        return Employee(**data)


app = FastAPI(title="Employee API")
app.add_exception_handler(ServiceCallError, service_call_error_handler)
database_api = DatabaseApiConnector(os.getenv("DATABASE_API_URL", "http://localhost:8081/api/v1/db"))
router = APIRouter(prefix="/api/v1/airline/employee")


def to_employee(details: EmployeeDetails) -> Employee:
    try:
        role = EmployeeRole(details.employee_role.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown employee role: {details.employee_role}")
    return Employee(
        name=details.name,
        email=details.email,
        phone=details.phone,
        address=details.address,
        employee_role=role,
        status="ACTIVE",
        airline_id=details.airline_id,
    )


@router.post("/register", response_model=Employee, status_code=201)
async def register_employee(details: EmployeeDetails):
    airline = await database_api.get_airline(details.airline_id)
    if airline is None:
        raise HTTPException(status_code=404, detail=f"Airline not found with ID: {details.airline_id}")
    employee = await database_api.register_employee(to_employee(details), airline.airline_id)
    logger.info(f"Registered employee {employee.employee_id} for airline {airline.airline_id}")
    return employee


app.include_router(router)


@app.on_event("shutdown")
async def shutdown_event():
    await database_api.close()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_employee.service:app", host=host, port=int(port), reload=True, log_level="debug")
