"""Chat schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import MESSAGE_TYPES


class MessageCreate(BaseModel):
    content: Optional[str] = None
    messageType: str = "text"

    @field_validator("messageType")
    @classmethod
    def check_message_type(cls, v):
        if v not in MESSAGE_TYPES:
            raise ValueError(f"messageType must be one of: {', '.join(MESSAGE_TYPES)}")
        return v
