from typing import Optional
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    CUSTOMER = "customer"
    CLERK = "clerk"
    MANAGER = "manager"
    TRAVEL_COMPANY = "travel-company"


STAFF_ROLES = (Role.CLERK, Role.MANAGER)


class Principal(BaseModel):
    """Verified identity handed over by the auth gateway (trusted input)."""
    user_id: str
    role: Role
    customer_id: Optional[int] = None
    company_id: Optional[int] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    @property
    def is_travel_company(self) -> bool:
        return self.role == Role.TRAVEL_COMPANY


SYSTEM_PRINCIPAL = Principal(user_id="system", role=Role.MANAGER)
