import re
import uuid
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in Python."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class UserSummary(CamelModel):
    id: uuid.UUID
    name: str
    username: str
    avatar: Optional[str] = None
    is_influencer: bool = False


def check_url(value: Optional[str]) -> Optional[str]:
    if value is not None and not re.match(r"^https?://\S+$|^/\S+$", value):
        raise ValueError("Must be a valid URL")
    return value
