"""JSON snapshot format, with digests written as hex strings."""

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ..core import Snapshot
from ..errors import DecodeError, EncodeError


class JsonFormat:
    """Indented JSON encoding, meant to be read and diffed by humans."""

    name = "json"
    suffix = ".json"

    def __init__(self, indent: int = 2):
        self.indent = indent

    def encode(self, snapshot: Snapshot) -> bytes:
        try:
            text = snapshot.model_dump_json(indent=self.indent)
        except (PydanticSerializationError, ValueError) as e:
            raise EncodeError(self.name, str(e)) from e
        return text.encode("utf-8") + b"\n"

    def decode(self, data: bytes) -> Snapshot:
        try:
            return Snapshot.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(self.name, str(e)) from e
