"""Common schemas (error envelope, messages)."""
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error envelope trả về bởi mọi endpoint khi lỗi."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Short error message")
    details: str = Field("", description="Extra context for the error")


class MessageResponse(BaseModel):
    """Simple message response."""

    success: bool = True
    message: str = Field(..., description="Message text")
