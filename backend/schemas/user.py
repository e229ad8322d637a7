from pydantic import BaseModel, ConfigDict

# Schema for user authentication credentials
class UserLogin(BaseModel):
    username: str
    password: str

# Output schema for user profile details
class UserResponse(BaseModel):
    id: int
    username: str
    role: str

    model_config = ConfigDict(from_attributes=True)

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
