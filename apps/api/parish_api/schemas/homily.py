"""Homily (podcast episode) schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateHomilyRequest(BaseModel):
    slug: str = Field(min_length=1)
    title: str = Field(min_length=1)
    cloudinary_public_id: str = Field(min_length=1, alias="cloudinaryPublicId")

    model_config = ConfigDict(populate_by_name=True)


class UpdateHomilyRequest(BaseModel):
    slug: str | None = Field(default=None, min_length=1)
    title: str | None = Field(default=None, min_length=1)
    cloudinary_public_id: str | None = Field(default=None, min_length=1, alias="cloudinaryPublicId")

    model_config = ConfigDict(populate_by_name=True)


class Homily(BaseModel):
    id: str
    slug: str
    title: str
    cloudinary_public_id: str = Field(alias="cloudinaryPublicId")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)
