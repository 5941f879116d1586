from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

VariantName = Literal["eleven-interval", "all-trichord", "ten-trichord"]


class VariantInfo(BaseModel):
    name: VariantName
    result_key: str
    description: str
    row_length: int = Field(ge=1)
    domain: list[int]
    default_filename: str


class RowCheckRequest(BaseModel):
    variant: VariantName
    row: list[int] = Field(min_length=11, max_length=12)


class RowCheckResponse(BaseModel):
    variant: VariantName
    row: list[int]
    valid: bool
    failure_index: int = Field(ge=-1)
    partial_sums: list[int] = Field(default_factory=list)
    trichord_classes: list[int] = Field(default_factory=list)
    realized_row: list[int] = Field(default_factory=list)


class SearchRequest(BaseModel):
    variant: VariantName
    prefix: list[int] = Field(default_factory=list, max_length=11)

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, value: list[int]) -> list[int]:
        if len(set(value)) != len(value):
            raise ValueError("Prefix must not repeat a pitch class or interval.")
        if any(symbol < 0 or symbol > 11 for symbol in value):
            raise ValueError("Prefix symbols must lie between 0 and 11.")
        return value


class SearchResponse(BaseModel):
    variant: VariantName
    result_key: str
    prefix: list[int] = Field(default_factory=list)
    count: int = Field(ge=0)
    rows: list[list[int]]
    candidates_tested: int = Field(ge=0)
    duration_ms: int = Field(ge=0)
    cache_hit: bool = False
