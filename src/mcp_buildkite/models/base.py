"""Base model for Buildkite API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationInfo, field_validator


class BuildkiteModel(BaseModel):
    """Base model with common behavior for all Buildkite API models."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Both APIs send null for unset strings and objects.
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def update_from(self, data: dict[str, Any]) -> None:
        """Overwrite, in place, every field present in *data*."""
        echoed = type(self).model_validate(data)
        for name in echoed.model_fields_set:
            setattr(self, name, getattr(echoed, name))
