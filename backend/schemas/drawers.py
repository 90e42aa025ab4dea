from pydantic import BaseModel
from typing import Optional


class DrawerRead(BaseModel):
    drawer_id: int
    name: str
    freezer_id: int


class DrawerCreate(BaseModel):
    name: str
    freezer_id: int


class DrawerUpdate(BaseModel):
    name: Optional[str] = None
    freezer_id: Optional[int] = None
