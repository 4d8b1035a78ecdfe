"""Pydantic models for creature merge endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreaturePairRequest(BaseModel):
    """Body naming the surviving and the consumed creature."""

    model_config = ConfigDict(populate_by_name=True)

    creature1_id: str = Field(alias="creature1Id", min_length=1, max_length=64)
    creature2_id: str = Field(alias="creature2Id", min_length=1, max_length=64)

    @field_validator("creature1_id", "creature2_id")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        if not value.strip():
            msg = "creature id must not be blank"
            raise ValueError(msg)
        return value.strip()
