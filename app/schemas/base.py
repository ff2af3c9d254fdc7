"""
Base Pydantic schemas with common configuration.

Wire JSON uses camelCase keys; Python code uses snake_case attributes.
"""

from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    """
    Base schema for every request/response and agent payload.

    Accepts both `companyName` and `company_name` on input and
    serializes with camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_wire(self) -> dict:
        """Return a JSON-serializable dict using camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


def validate_http_url(value: str) -> str:
    """Validate an absolute http(s) URL and return it trimmed, otherwise unchanged."""
    text = (value or "").strip()
    try:
        _http_url.validate_python(text)
    except ValidationError:
        raise ValueError("Please enter a valid URL.") from None
    return text
