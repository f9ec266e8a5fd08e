from typing import Optional

from fastapi import Depends, Header

from ptoflow.api.deps import get_services
from ptoflow.core.rbac import require_admin
from ptoflow.services.container import Services


async def get_authorization(authorization: Optional[str] = Header(None)) -> Optional[str]:
    # Sessions belong to the host platform; the header is forwarded as-is
    return authorization


async def get_current_user(
    authorization: Optional[str] = Depends(get_authorization),
    services: Services = Depends(get_services),
) -> dict:
    return await services.users.get_or_create_current_user(authorization)


async def get_admin_user(current_user: dict = Depends(get_current_user)) -> dict:
    require_admin(current_user)
    return current_user
