"""Result record returned by every conversion path."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConversionResult(BaseModel):
    """Outcome of one conversion.

    `metadata` always carries `processMethod` and `templateApplied`; strategies
    and fallback tiers may add `message`, `outputFile` and service details.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def process_method(self) -> str:
        return self.metadata.get("processMethod", "")

    def to_dict(self) -> dict:
        return self.model_dump()


def success(process_method: str, template_id: str, **extra) -> ConversionResult:
    metadata = {"processMethod": process_method, "templateApplied": template_id}
    metadata.update({key: value for key, value in extra.items() if value is not None})
    return ConversionResult(success=True, metadata=metadata)
