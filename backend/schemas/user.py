from pydantic import BaseModel, ConfigDict
from typing import Optional

# Operator as seen by the API (accounts are managed by the login front-end)
class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)
