import os
import sys
import hmac
import logging
from typing import Optional
from urllib.parse import quote

import uvicorn
from fastapi import FastAPI, APIRouter, Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.connector import ServiceConnector, ServiceCallError, service_call_error_handler
from shared.models import (
    Customer, CustomerDetails, LoginRequest, Role, TokenResponse, UserDetails,
)
from svc_auth import tokens

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class DatabaseApiConnector(ServiceConnector):
    async def get_customer_by_email(self, email: str) -> Optional[Customer]:
        data = await self.get_or_none(f"/customer/email/{quote(email, safe='@')}")
        return Customer(**data) if data else None


app = FastAPI(title="Auth API")
app.add_exception_handler(ServiceCallError, service_call_error_handler)
database_api = DatabaseApiConnector(os.getenv("DATABASE_API_URL", "http://localhost:8081/api/v1/db"))
router = APIRouter(prefix="/api/v1/auth")
bearer = HTTPBearer(auto_error=False)


async def validate_token(token: str) -> bool:
    """A token is valid when it verifies and its password matches the stored customer."""
    subject = tokens.read_token(token)
    if subject is None:
        return False
    customer = await database_api.get_customer_by_email(subject.email)
    if customer is None or customer.password is None:
        return False
    return hmac.compare_digest(customer.password.encode(), subject.password.encode())


async def current_subject(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> tokens.Subject:
    if credentials is None or not await validate_token(credentials.credentials):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return tokens.read_token(credentials.credentials)


@router.post("/token")
async def generate_token(payload: UserDetails) -> str:
    return tokens.generate_token(payload.email, payload.password, payload.role.value)


@router.get("/validate")
async def validate(authorization: Optional[str] = Header(default=None)) -> str:
    token = tokens.strip_bearer(authorization)
    if token is not None and await validate_token(token):
        return "Valid Token"
    return "Invalid Token"


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest):
    customer = await database_api.get_customer_by_email(payload.email)
    if customer is None or customer.password is None or \
            not hmac.compare_digest(customer.password.encode(), payload.password.encode()):
        logger.info(f"Rejected login for {payload.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    role = customer.role or Role.CUSTOMER.value
    return TokenResponse(token=tokens.generate_token(payload.email, payload.password, role))


@router.post("/register")
async def register(payload: Customer) -> str:
    # Credentials live with the customer record in the database service;
    # registration only checks that the record is usable for login.
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="email and password are required")
    stored = await database_api.get_customer_by_email(payload.email)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Customer {payload.email} not found")
    return f"Credentials registered for {payload.email}"


@router.post("/logout")
async def logout(subject: tokens.Subject = Depends(current_subject)) -> str:
    # Tokens are stateless; the client discards its copy.
    return f"Logged out {subject.email}"


@router.get("/access/{email}", response_model=CustomerDetails)
async def check_access(email: str, subject: tokens.Subject = Depends(current_subject)):
    customer = await database_api.get_customer_by_email(email)
    if customer is None or customer.role != Role.ADMIN.value:
        raise HTTPException(status_code=403, detail=f"{email} has no admin access")
    return CustomerDetails(**customer.model_dump(exclude={"password"}))


app.include_router(router)


@app.on_event("shutdown")
async def shutdown_event():
    await database_api.close()


if __name__ == "__main__":
    host, port = sys.argv[1].split(":")
    uvicorn.run("svc_auth.service:app", host=host, port=int(port), reload=True, log_level="debug")
