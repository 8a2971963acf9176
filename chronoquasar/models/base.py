"""
ChronoQuasar — shared base for in-memory entities.

Entities serialise with camelCase keys (``isTracking``, ``focusGroupId``)
for the dashboard client and accept snake_case on input too.
"""

import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


class Entity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
