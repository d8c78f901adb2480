"""
Identity and role dependencies.
The auth gateway has already verified the caller; it forwards the identity in headers.
"""
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, status
from pydantic import ValidationError

from schemas.auth import Principal, Role
from utils.logging_utils import log_event


def get_current_principal(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_customer_id: Optional[int] = Header(None),
    x_company_id: Optional[int] = Header(None),
) -> Principal:
    """
    Builds the Principal from the gateway headers

    Raises:
        HTTPException: 401 if the identity is missing or the role is unknown
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    try:
        return Principal(
            user_id=x_user_id,
            role=x_user_role,
            customer_id=x_customer_id,
            company_id=x_company_id,
        )
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )


def require_roles(allowed_roles: List[Role]):
    """
    Dependency factory that restricts a route to the given roles

    Usage:
        principal: Principal = Depends(require_roles([Role.MANAGER]))
    """
    def check_role(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed_roles:
            log_event(
                "auth",
                principal.user_id,
                "Unauthorized access attempt",
                f"role={principal.role.value} allowed={[r.value for r in allowed_roles]}",
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Allowed roles: {', '.join(r.value for r in allowed_roles)}",
            )
        return principal

    return check_role


require_staff = require_roles([Role.CLERK, Role.MANAGER])
require_manager = require_roles([Role.MANAGER])
require_travel_company = require_roles([Role.TRAVEL_COMPANY])
