from typing import List, Optional
from urllib.parse import quote
from uuid import UUID

from shared.connector import ServiceConnector
from shared.models import Customer, TokenResponse


class DatabaseApiConnector(ServiceConnector):
    async def create_customer(self, customer: Customer) -> Customer:
        data = await self.post("/customer/create", json=customer.model_dump(mode="json"))
        return Customer(**data)

    async def get_all_customers(self) -> List[Customer]:
        data = await self.get("/customer")
        return [Customer(**item) for item in data]

    async def get_customer_by_id(self, customer_id: UUID) -> Customer:
        return Customer(**await self.get(f"/customer/{customer_id}"))

    async def get_customer_by_email(self, email: str) -> Customer:
        return Customer(**await self.get(f"/customer/email/{quote(email, safe='@')}"))

    async def update_customer(self, customer_id: UUID, customer: Customer) -> Customer:
        data = await self.put(f"/customer/{customer_id}", json=customer.model_dump(mode="json"))
        return Customer(**data)

    async def delete_customer(self, customer_id: UUID) -> None:
        await self.delete(f"/customer/{customer_id}")


class AuthApiConnector(ServiceConnector):
    async def login(self, email: str, password: str) -> TokenResponse:
        data = await self.post("/login", json={"email": email, "password": password})
        return TokenResponse(**data)

    async def validate_token(self, token: str) -> bool:
        data = await self.get("/validate", headers={"Authorization": f"Bearer {token}"})
        return data == "Valid Token"

    async def logout(self, token: str) -> Optional[str]:
        return await self.post("/logout", headers={"Authorization": f"Bearer {token}"})

    async def register_in_auth(self, customer: Customer) -> Optional[str]:
        return await self.post("/register", json=customer.model_dump(mode="json"))
