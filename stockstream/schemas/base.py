"""
Base schemas with common functionality.
"""
from typing import Type, TypeVar, Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar('T', bound='BaseSchema')

class BaseSchema(BaseModel):
    """Base schema for API payloads: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @classmethod
    def from_orm_model(cls: Type[T], orm_model: Any) -> T:
        """Create a schema instance from an ORM model"""
        return cls.model_validate(orm_model)
