from pydantic import BaseModel

from clinic.schemas.user import CurrentUserResponse

class LoginRequest(BaseModel):
    email: str
    password: str

    class Config:
        extra = "forbid"

class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    user: CurrentUserResponse
