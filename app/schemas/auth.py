from typing import Optional
from pydantic import BaseModel


class TokenData(BaseModel):
    # Subject of the token: the user's id
    sub: Optional[str] = None
