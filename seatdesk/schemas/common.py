from typing import Optional
from pydantic import BaseModel


# Body of every seating error response; extra context keys ride alongside
class ErrorResponse(BaseModel):
    error: str
    message: str
    seat_number: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        extra = "allow"
