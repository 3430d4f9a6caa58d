"""Base pydantic model for camelCase JSON payloads."""

from flask import request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self, **kwargs):
        return self.model_dump(by_alias=True, **kwargs)


def load_json(schema, data=None):
    """Validate the request body (or ``data``) against ``schema``.

    Raises pydantic's ``ValidationError``; the app turns it into a 400.
    """
    if data is None:
        data = request.get_json(silent=True) or {}
    return schema.model_validate(data)
