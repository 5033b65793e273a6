"""
storefront/schemas/principal.py
Authenticated caller model.
"""
from typing import Optional
from pydantic import BaseModel, Field


class Principal(BaseModel):
    uid: str = Field(..., description="Firebase UID")
    email: Optional[str] = Field(None, description="E-mail (if any)")
    display_name: Optional[str] = Field(None, description="Display name (if any)")
    provider: Optional[str] = Field(None, description="Firebase sign-in provider")
