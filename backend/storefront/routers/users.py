# storefront/routers/users.py
from fastapi import APIRouter, Depends

from storefront.core.auth import get_principal
from storefront.schemas.principal import Principal

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=Principal)
def get_my_profile(principal: Principal = Depends(get_principal)):
    """Display fields of the caller as issued by Firebase Authentication."""
    return principal
