"""
Strict Base Models for Request/Response Validation

This module provides base classes with strict validation settings for the
records exchanged with the hosted backend and the processing function.

Usage:
    # For request bodies (strictest validation)
    class ItemCreate(StrictRequest):
        name: str

    # For rows coming back from PostgREST (extra columns ignored)
    class ItemRow(StrictResponse):
        id: str
        name: str

    # For the processing function's camelCase wire format
    class FunctionReply(CamelModel):
        summary_id: str  # serialized as "summaryId"

Architecture:
    Caller → StrictRequest (extra="forbid") → Service → PostgREST
    PostgREST row → StrictResponse (extra="ignore") → Caller
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictRequest(BaseModel):
    """
    Base model for outgoing payloads with strict validation.

    Rejects any fields not explicitly declared in the model, catching
    typos at construction time rather than as a backend 400.

    Features:
        - extra="forbid": Unknown fields raise ValidationError
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        validate_default=True,  # Validate defaults
        str_strip_whitespace=True,  # Clean string inputs
    )


class StrictResponse(BaseModel):
    """
    Base model for rows returned by the backend.

    More lenient than StrictRequest: tables may carry more columns than a
    given model needs.

    Features:
        - extra="ignore": Silently ignores extra fields
        - validate_default=True: Validates default values
        - from_attributes=True: Allows conversion from plain objects
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class CamelModel(BaseModel):
    """
    Base model for the processing function's JSON contract.

    Fields are declared in snake_case and serialized as camelCase.
    Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
