"""Caller identity model."""
from pydantic import BaseModel


class CallerScope(BaseModel):
    """The authenticated caller and the tenant it acts for."""

    user_id: str
    tenant_id: str
