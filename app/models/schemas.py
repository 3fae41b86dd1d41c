"""
Pydantic schemas for the declaration record and request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime


# Declaration Schemas
class Purchaser(BaseModel):
    """A declarant: name plus national identity card number."""

    name: str = ""
    ic: str = ""

    model_config = ConfigDict(frozen=True)


class DeclarationRecord(BaseModel):
    """
    Canonical declaration data produced by the payload normalizer.

    Attribute names are snake_case; the camelCase aliases are the names the
    upstream senders and the validation report use.
    """

    purchasers: Tuple[Purchaser, ...] = ()
    address: str = ""
    property: str = ""
    bank: str = ""
    bank_address: str = Field("", alias="bankAddress")
    branch_address: str = Field("", alias="branchAddress")
    facility: str = ""
    date: str = ""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def first_purchaser(self) -> Purchaser:
        """Return the purchaser named on the document (empty if none)."""
        return self.purchasers[0] if self.purchasers else Purchaser()


class DeclarationForm(BaseModel):
    """Schema for the declaration form submitted by the frontend."""

    purchasers: List[Purchaser] = Field(default_factory=list)
    address: str = ""
    property: str = ""
    bank: str = ""
    bank_address: str = Field("", alias="bankAddress")
    branch_address: str = Field("", alias="branchAddress")
    facility: str = ""
    date: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


# Error Schemas
class MissingFieldsResponse(BaseModel):
    """Schema for a rejected declaration."""

    detail: str
    missing_fields: List[str]


class ErrorResponse(BaseModel):
    """Schema for generic error responses."""

    detail: str
    error: Optional[str] = None
    path: Optional[str] = None
    timestamp: datetime


# Health Schemas
class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    environment: str
    pdf_backend: str
    message: str = "API is running successfully"
    timestamp: datetime
    version: str = "1.0.0"


# Proxy Schemas
class ProxyResponse(BaseModel):
    """Schema for responses relayed from the n8n extraction webhook."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    status: Optional[int] = None
    raw_response: Optional[str] = Field(None, alias="rawResponse")

    model_config = ConfigDict(populate_by_name=True)


# Debug Schemas
class RequestDebugInfo(BaseModel):
    """What the service saw of an incoming request."""

    method: str
    content_type: str = Field(..., alias="contentType")
    body_type: str = Field(..., alias="bodyType")
    body_value: Any = Field(None, alias="bodyValue")
    headers: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime
    environment: str

    model_config = ConfigDict(populate_by_name=True)


class DebugEchoResponse(BaseModel):
    """Schema for the request echo endpoint."""

    success: bool
    debug: RequestDebugInfo
    message: str = "Test endpoint working - check logs for debug info"
