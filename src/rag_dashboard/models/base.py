from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Base class for payloads exchanged with tools and HTTP services.

    Fields are snake_case in Python and camelCase on the wire; unknown
    keys sent by a producer are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


RecordId = str | int
