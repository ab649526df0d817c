"""Cardinality API response schemas.

Models are strict: every field is required and counts must be non-negative
JSON integers. Unknown fields are ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class _CardinalitySchema(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")


class LabelValueCardinality(_CardinalitySchema):
    """Series count for a single label value."""

    label_value: str
    series_count: int = Field(..., ge=0)


class LabelValuesLabel(_CardinalitySchema):
    """Breakdown of one label name into its values."""

    label_name: str
    label_values_count: int = Field(..., ge=0)
    series_count: int = Field(..., ge=0)
    cardinality: list[LabelValueCardinality]


class LabelValuesResponse(_CardinalitySchema):
    """Response of the label_values cardinality endpoint."""

    series_count_total: int = Field(..., ge=0)
    labels: list[LabelValuesLabel]


class LabelNameCardinality(_CardinalitySchema):
    """Number of distinct values for a single label name."""

    label_name: str
    label_values_count: int = Field(..., ge=0)


class LabelNamesResponse(_CardinalitySchema):
    """Response of the label_names cardinality endpoint."""

    label_values_count_total: int = Field(..., ge=0)
    label_names_count: int = Field(..., ge=0)
    cardinality: list[LabelNameCardinality]
