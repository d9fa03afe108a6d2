from typing import Optional
from pydantic import BaseModel


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str
    reason: Optional[str] = None
