"""Schema models for the statutory declaration service."""
from app.models.schemas import (
    Purchaser,
    DeclarationRecord,
    DeclarationForm,
    MissingFieldsResponse,
    ErrorResponse,
    HealthCheckResponse,
    ProxyResponse,
    RequestDebugInfo,
    DebugEchoResponse,
)

__all__ = [
    # Declaration data
    "Purchaser",
    "DeclarationRecord",
    "DeclarationForm",
    # Pydantic response schemas
    "MissingFieldsResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "ProxyResponse",
    "RequestDebugInfo",
    "DebugEchoResponse",
]
