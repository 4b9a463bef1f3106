"""Pydantic schemas for entries persisted by the record store."""

from pydantic import BaseModel, ConfigDict, Field


class StoredRecordMetadata(BaseModel):
    """
    Metadata entry written before a record's chunks.

    Serialized with camelCase keys so entries stay readable by other
    wallet implementations sharing the same backend.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    format: str
    total_chunks: int = Field(alias="totalChunks", ge=1)
    total_size: int = Field(alias="totalSize", ge=0)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
