"""
backend/forbet/models/common.py

Purpose:
    Shared Pydantic V2 base for models that travel as camelCase JSON (cache
    payloads and API responses) while keeping snake_case attributes in Python.

Dependencies:
    - pydantic
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
