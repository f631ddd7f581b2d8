"""
Base Pydantic schemas
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from uuid import UUID


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
    )


class IDSchema(BaseSchema):
    """Schema with ID field"""
    id: UUID


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields"""
    created_at: datetime
