import os
import sys
import logging
from typing import List
from uuid import UUID

import uvicorn
from fastapi import FastAPI, APIRouter, Header

from shared.connector import ServiceCallError, service_call_error_handler
from shared.models import Customer, CustomerDetails, Role, TokenResponse
from svc_customer.connectors import DatabaseApiConnector, AuthApiConnector

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Customer API")
app.add_exception_handler(ServiceCallError, service_call_error_handler)
database_api = DatabaseApiConnector(os.getenv("DATABASE_API_URL", "http://localhost:8081/api/v1/db"))
auth_api = AuthApiConnector(os.getenv("AUTH_API_URL", "http://localhost:8082/api/v1/auth"))
router = APIRouter(prefix="/api/v1/customers")


def details(customer: Customer) -> CustomerDetails:
    return CustomerDetails(**customer.model_dump(exclude={"password"}))


def bearer_token(authorization: str) -> str:
    return authorization.replace("Bearer ", "").strip()


@router.post("/register", response_model=CustomerDetails, status_code=201)
async def register(customer: Customer):
    if customer.role is None:
        customer = customer.model_copy(update={"role": Role.CUSTOMER.value})
    created = await database_api.create_customer(customer)
    if customer.password is not None:
        try:
            await auth_api.register_in_auth(created)
        except ServiceCallError as e:
            logger.error(f"Customer {created.customer_id} stored but not registered with auth: {e.message}")
            raise
    logger.info(f"Registered customer {created.customer_id}")
    return details(created)


@router.get("/getAll", response_model=List[CustomerDetails])
async def get_all():
    return [details(c) for c in await database_api.get_all_customers()]


@router.get("/getById/{customer_id}", response_model=CustomerDetails)
async def get_by_id(customer_id: UUID):
    return details(await database_api.get_customer_by_id(customer_id))


@router.get("/email/{email}", response_model=CustomerDetails)
async def get_by_email(email: str):
    return details(await database_api.get_customer_by_email(email))


@router.put("/update/{customer_id}", response_model=CustomerDetails)
async def update(customer_id: UUID, customer: Customer):
    return details(await database_api.update_customer(customer_id, customer))


@router.delete("/delete/{customer_id}")
async def delete(customer_id: UUID) -> str:
    await database_api.delete_customer(customer_id)
    return f"Customer deleted with id: {customer_id}"


@router.post("/login", response_model=TokenResponse)
async def login(email: str, password: str):
    return await auth_api.login(email, password)


@router.get("/validate")
async def validate(authorization: str = Header()) -> bool:
    return await auth_api.validate_token(bearer_token(authorization))


@router.post("/logout")
async def logout(authorization: str = Header()) -> str:
    return await auth_api.logout(bearer_token(authorization))


app.include_router(router)


@app.on_event("shutdown")
async def shutdown_event():
    await database_api.close()
    await auth_api.close()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_customer.service:app", host=host, port=int(port), reload=True, log_level="debug")
