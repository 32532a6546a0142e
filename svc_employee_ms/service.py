"""
Standalone employee service. Owns its own ``employee_ms.employees`` table and
does not go through the database service.
"""

import os
import sys
import logging
from typing import List, Optional

import uvicorn
from asyncpg.exceptions import UniqueViolationError
from fastapi import FastAPI, APIRouter, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, field_validator

from shared.database import Database

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SCHEMA = """
CREATE SCHEMA IF NOT EXISTS employee_ms;
CREATE TABLE IF NOT EXISTS employee_ms.employees (
    id BIGSERIAL PRIMARY KEY,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL,
    status TEXT NOT NULL
);
"""


class ResourceNotFoundError(Exception):
    pass


class BadRequestError(Exception):
    pass


class EmployeeDTO(BaseModel):
    id: Optional[int] = None
    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)
    email: EmailStr
    role: str
    status: str

    @field_validator("first_name", "last_name", "role", "status")
    @classmethod
    def not_blank(cls, value: str, info):
        if not value.strip():
            raise ValueError(f"{info.field_name} cannot be blank")
        return value


class EmployeeService:
    def __init__(self, db: Database):
        self.db = db

    async def create_employee(self, dto: EmployeeDTO) -> EmployeeDTO:
        await self._ensure_email_free(dto.email)
        sql = """
            INSERT INTO employee_ms.employees (first_name, last_name, email, role, status)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
        """
        result = await self.db.execute_to_model(
            EmployeeDTO, sql, dto.first_name, dto.last_name, dto.email, dto.role, dto.status)
        return result[0]

    async def get_employee_by_id(self, employee_id: int) -> EmployeeDTO:
        sql = "SELECT * FROM employee_ms.employees WHERE id = $1"
        result = await self.db.execute_to_model(EmployeeDTO, sql, employee_id)
        if not result:
            raise ResourceNotFoundError(f"Employee not found with id: {employee_id}")
        return result[0]

    async def get_all_employees(self) -> List[EmployeeDTO]:
        return await self.db.execute_to_model(EmployeeDTO, "SELECT * FROM employee_ms.employees ORDER BY id")

    async def update_employee(self, employee_id: int, dto: EmployeeDTO) -> EmployeeDTO:
        existing = await self.get_employee_by_id(employee_id)
        if existing.email != dto.email:
            await self._ensure_email_free(dto.email)
        sql = """
            UPDATE employee_ms.employees
            SET first_name = $1, last_name = $2, email = $3, role = $4, status = $5
            WHERE id = $6
            RETURNING *
        """
        result = await self.db.execute_to_model(
            EmployeeDTO, sql, dto.first_name, dto.last_name, dto.email, dto.role, dto.status, employee_id)
        return result[0]

    async def delete_employee(self, employee_id: int) -> None:
        sql = "DELETE FROM employee_ms.employees WHERE id = $1 RETURNING id"
        if not await self.db.execute_query(sql, employee_id):
            raise ResourceNotFoundError(f"Employee not found with id: {employee_id}")

    async def _ensure_email_free(self, email: str):
        sql = "SELECT id FROM employee_ms.employees WHERE email = $1"
        if await self.db.execute_query(sql, email):
            raise BadRequestError(f"Employee with email {email} already exists")


app = FastAPI(title="Employee Microservice")
db = Database(os.getenv("EMPLOYEE_MS_CONN_STRING") or os.getenv("POSTGRES_CONN_STRING"))
service = EmployeeService(db)
router = APIRouter(prefix="/api/employees")


@router.post("", response_model=EmployeeDTO, status_code=201)
async def create_employee(dto: EmployeeDTO):
    return await service.create_employee(dto)


@router.get("/{employee_id}", response_model=EmployeeDTO)
async def get_employee(employee_id: int):
    return await service.get_employee_by_id(employee_id)


@router.get("", response_model=List[EmployeeDTO])
async def get_all():
    return await service.get_all_employees()


@router.put("/{employee_id}", response_model=EmployeeDTO)
async def update_employee(employee_id: int, dto: EmployeeDTO):
    return await service.update_employee(employee_id, dto)


@router.delete("/{employee_id}", status_code=204)
async def delete_employee(employee_id: int):
    await service.delete_employee(employee_id)
    return Response(status_code=204)


app.include_router(router)


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(request: Request, exc: ResourceNotFoundError):
    return JSONResponse(status_code=404, content={"error": "NOT_FOUND", "message": str(exc)})


@app.exception_handler(BadRequestError)
async def bad_request_handler(request: Request, exc: BadRequestError):
    return JSONResponse(status_code=400, content={"error": "BAD_REQUEST", "message": str(exc)})


@app.exception_handler(UniqueViolationError)
async def unique_violation_handler(request: Request, exc: UniqueViolationError):
    # concurrent insert slipped past the email check
    return JSONResponse(status_code=400, content={"error": "BAD_REQUEST", "message": "Email already exists"})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "body"
        errors[field] = error["msg"]
    return JSONResponse(status_code=400, content=errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "INTERNAL_SERVER_ERROR", "message": str(exc)})


@app.on_event("startup")
async def startup_event():
    await db.connect()
    await db.execute_script(SCHEMA)


@app.on_event("shutdown")
async def shutdown_event():
    await db.disconnect()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_employee_ms.service:app", host=host, port=int(port), reload=True, log_level="debug")
