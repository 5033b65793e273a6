# storefront/core/deps.py
from fastapi import Depends

from storefront.config import Settings, get_db, get_settings
from storefront.core.auth import get_principal
from storefront.repositories.store import StoreClient
from storefront.schemas.principal import Principal


def get_store(settings: Settings = Depends(get_settings)) -> StoreClient:
    """Anonymous store client (catalog reads)."""
    return StoreClient(get_db(), settings)


def get_user_store(
    principal: Principal = Depends(get_principal),
    store: StoreClient = Depends(get_store),
) -> StoreClient:
    """Store client scoped to the authenticated caller."""
    return store.scoped(principal.uid)
