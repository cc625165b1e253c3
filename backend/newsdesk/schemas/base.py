from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for request and response bodies: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(APIModel):
    message: str


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` items at ``limit`` per page."""
    if limit <= 0:
        return 0
    return (total + limit - 1) // limit
