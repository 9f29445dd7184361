"""
Shared model base - camelCase on the wire, snake_case in Python.
"""

from typing import Any, Dict
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)
