"""CBOR snapshot format, with digests stored as raw byte strings."""

import cbor2
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ..core import Snapshot
from ..errors import DecodeError, EncodeError


class CborFormat:
    """Compact binary encoding (RFC 8949)."""

    name = "cbor"
    suffix = ".cbor"

    def encode(self, snapshot: Snapshot) -> bytes:
        # Python mode keeps digests as bytes, which CBOR stores natively
        try:
            return cbor2.dumps(snapshot.model_dump(mode="python"))
        except (cbor2.CBOREncodeError, PydanticSerializationError, ValueError) as e:
            raise EncodeError(self.name, str(e)) from e

    def decode(self, data: bytes) -> Snapshot:
        try:
            payload = cbor2.loads(data)
        except (cbor2.CBORDecodeError, ValueError) as e:
            raise DecodeError(self.name, str(e)) from e

        try:
            return Snapshot.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(self.name, str(e)) from e
