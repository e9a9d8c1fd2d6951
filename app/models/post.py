# app/models/post.py


from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostSummary(BaseModel):
    """
    Display fields of the post a notification refers to.

    Attributes:
        post_id (str): The unique identifier for the post.
        content (Optional[str]): The post text, None when the post is gone.
    """

    model_config = ConfigDict(populate_by_name=True)

    post_id: str = Field(..., alias="_id")
    content: str | None = None

    @field_validator("post_id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)
