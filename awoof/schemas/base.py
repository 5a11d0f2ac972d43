"""Schema Base — camelCase wire format for every request and response model.

Invariants:
    - JSON keys are camelCase (clients send `universityId`, not `university_id`)
    - snake_case field names also accepted (populate_by_name) for admin tooling and tests
    - Unknown fields ignored, never echoed back
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )
