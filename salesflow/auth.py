from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from salesflow.models import UserRole


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    role: UserRole
    active: bool


def get_current_principal(request: Request) -> Principal:
    principal: Principal | None = getattr(request.state, 'principal', None)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not principal.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='User is inactive')
    return principal


def require_role(*allowed: UserRole):
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
        return principal

    return _dep


def assert_budget_scope(principal: Principal, vendor_id: int) -> None:
    # Vendors only act on their own budgets; other roles are unrestricted.
    if principal.role == UserRole.VENDOR and principal.id != vendor_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
