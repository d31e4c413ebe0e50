from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class UserBase(BaseModel):
    username: str = Field(min_length=3, max_length=50)


class UserCreate(UserBase):
    password: str = Field(min_length=6)
    name: Optional[str] = None
    email: Optional[str] = None
    roll_number: Optional[str] = None


class UserOut(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
    roll_number: Optional[str] = None
