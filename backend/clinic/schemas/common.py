from pydantic import BaseModel


class RecordModel(BaseModel):
    """Base for records persisted to key-value storage under camelCase keys."""

    class Config:
        populate_by_name = True
        frozen = True

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
