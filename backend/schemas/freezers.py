from pydantic import BaseModel


class FreezerRead(BaseModel):
    freezer_id: int
    name: str


class FreezerCreate(BaseModel):
    name: str


class FreezerUpdate(BaseModel):
    name: str
