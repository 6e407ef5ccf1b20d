# postapi/models/posts.py

from typing import Optional

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    published: bool = False


class PostOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    published: bool


class HealthOut(BaseModel):
    data: str
