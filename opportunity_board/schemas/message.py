from pydantic import BaseModel, Field


class DirectMessageCreate(BaseModel):
    recipient_id: int
    message: str = Field(..., min_length=1, max_length=2000)


class ConversationReply(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
