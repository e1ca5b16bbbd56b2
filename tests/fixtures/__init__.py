from .push_fixtures import (
    FakePushProvider,
    chat_payload,
    generic_payload,
    record_fields,
)

__all__ = [
    "FakePushProvider",
    "chat_payload",
    "generic_payload",
    "record_fields",
]
