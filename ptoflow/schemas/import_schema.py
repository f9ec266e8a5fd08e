from pydantic import BaseModel, Field


class ImportIn(BaseModel):
    records: list[dict] = Field(default_factory=list)
    check_identity: bool = False
    skip_validation: bool = False


class RestoreIn(BaseModel):
    # collection name -> full list of records
    snapshot: dict[str, list[dict]]
