"""Base model with camelCase serialization for API and cache output."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base class for wire-facing models; serializes field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self, **kwargs: Any) -> dict[str, Any]:
        """JSON-safe dict using camelCase aliases (datetimes as ISO-8601)."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)
