# app/models/user.py


from pydantic import BaseModel, ConfigDict, Field, field_validator


class SenderProfile(BaseModel):
    """
    Display fields of the user who triggered a notification.

    Attributes:
        user_id (str): The unique identifier for the user.
        username (Optional[str]): The username of the user.
        profile_picture (Optional[str]): Reference to the user's profile picture.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="_id")
    username: str | None = None
    profile_picture: str | None = Field(default=None, alias="profilePicture")

    @field_validator("user_id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)
