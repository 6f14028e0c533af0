"""Test factories for generating request payloads."""

from tests.factories.documents import number_field, string_field
from tests.factories.tenant import ProvisionPayloadFactory


__all__ = [
    "ProvisionPayloadFactory",
    "number_field",
    "string_field",
]
