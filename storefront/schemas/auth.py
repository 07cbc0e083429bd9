from pydantic import BaseModel

from ..enums import UserRole

class CurrentUser(BaseModel):
    """Verified caller identity attached to the request upstream"""
    id: int
    role: UserRole = UserRole.CUSTOMER
