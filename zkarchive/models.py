from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Archive(BaseModel):
    """Metadata of one uploaded (client-side encrypted) blob. Serialized in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    size: int = PydanticField(ge=0)
    mime_type: str
    hash: str
    wallet_address: Optional[str] = None
    storage_path: str
    created_at: str = PydanticField(default_factory=utc_now_iso)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class ArchiveRow(SQLModel, table=True):
    __tablename__ = "archive"

    id: str = Field(primary_key=True)
    position: int = Field(index=True)  # 0 is the newest record
    name: str
    size: int
    mime_type: str
    hash: str
    wallet_address: Optional[str] = Field(default=None, nullable=True)
    storage_path: str
    created_at: str

    @classmethod
    def from_archive(cls, archive: Archive, position: int) -> "ArchiveRow":
        return cls(position=position, **archive.model_dump())

    def to_archive(self) -> Archive:
        return Archive(
            id=self.id,
            name=self.name,
            size=self.size,
            mime_type=self.mime_type,
            hash=self.hash,
            wallet_address=self.wallet_address,
            storage_path=self.storage_path,
            created_at=self.created_at,
        )
