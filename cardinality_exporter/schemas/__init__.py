"""Response schemas for the cardinality API."""

from cardinality_exporter.schemas.cardinality import (
    LabelNameCardinality,
    LabelNamesResponse,
    LabelValueCardinality,
    LabelValuesLabel,
    LabelValuesResponse,
)

__all__ = [
    "LabelNameCardinality",
    "LabelNamesResponse",
    "LabelValueCardinality",
    "LabelValuesLabel",
    "LabelValuesResponse",
]
