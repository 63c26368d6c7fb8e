from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Request model for ranked message search"""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str | None = Field(
        default=None,
        alias="conversationId",
        description="Conversation whose messages are searched",
    )
    query: str | None = Field(default=None, description="Free-text search query")
    message_count: int | None = Field(
        default=None,
        alias="messageCount",
        description="How many of the most recent messages to consider",
    )
    db_path: str | None = Field(
        default=None, description="Local message store override"
    )


class FilterRequest(BaseModel):
    """Request model for date/keyword/sender message filtering"""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str | None = Field(default=None, alias="conversationId")
    filters: str | None = Field(
        default=None, description="Filter expression, e.g. `after=2024-05-01, keyword=standup`"
    )
    message_count: int = Field(
        default=200,
        alias="messageCount",
        description="Maximum number of matches to return; the most recent are kept",
    )
    db_path: str | None = None
