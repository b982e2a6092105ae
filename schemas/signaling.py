from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class Member(BaseModel):
    """One connection's participation in a room. Serialized as {id, name}."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    connection_id: str = Field(alias="id")
    display_name: str = Field(alias="name")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

class UserDisconnected(BaseModel):
    user_id: str = Field(alias="userId")

    model_config = ConfigDict(populate_by_name=True)

class SignalRequest(BaseModel):
    to: str = Field(min_length=1)
    data: Any = None

class SignalMessage(BaseModel):
    from_: str = Field(alias="from")
    data: Any = None

    model_config = ConfigDict(populate_by_name=True)

class ConnectedMessage(BaseModel):
    id: str

class Envelope(BaseModel):
    event: str
    data: Optional[Any] = None

class HealthResponse(BaseModel):
    status: str
    service: str
    port: int

class ErrorResponse(BaseModel):
    status: str = "error"
    detail: str
