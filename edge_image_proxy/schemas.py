"""Pydantic schemas for ingestion responses."""

from pydantic import BaseModel, ConfigDict, Field, RootModel


class ImageResultEntry(BaseModel):
    """Location metadata for one ingested image."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "path": "https://img.example.com/images/86Rf07xd4z.png",
                    "etag": "\"d41d8cd98f00b204e9800998ecf8427e\"",
                    "content_type": "image/png",
                }
            ]
        }
    )

    path: str = Field(..., description="Public URL of the stored image")
    etag: str = Field(..., description="Integrity tag assigned by storage at write time")
    content_type: str = Field(..., description="MIME type stored with the image")


class IngestionResponse(RootModel[dict[str, ImageResultEntry]]):
    """Result entries keyed by source URL or uploaded filename."""
