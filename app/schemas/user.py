from pydantic import BaseModel, ConfigDict, EmailStr
from typing import List, Optional
from datetime import datetime


# Shared properties
class UserBase(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


# Profile handed over by the identity provider after a successful sign-in
class ExternalProfile(BaseModel):
    external_id: str
    email: EmailStr
    name: Optional[str] = None
    avatar_url: Optional[str] = None


# Properties to return to client
class UserRead(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    created_at: Optional[datetime] = None


class EmailLookup(BaseModel):
    emails: List[str] = []
