"""DidRecord — the flat DID document stored in the world state.

A record carries exactly one authentication descriptor and one service
descriptor, each flattened into plain string fields. The stored form is
compact UTF-8 JSON with camelCase keys in a fixed order::

    {"id":"did:example:123","authenticationId":"did:example:123#keys-1",
     "authenticationType":"RsaVerificationKey2018",
     "authenticationController":"did:example:123",
     "authenticationPublicKeyPerm":"-----BEGIN PUBLIC KEY...",
     "serviceId":"did:example:123#vcs",
     "serviceType":"VerifiableCredentialService",
     "serviceEndPoint":"https://example.com/vc/"}

Absent fields are represented by the empty string, never by ``null``.
"""
from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from did_ledger.errors import SerializationFault

# Wire names in serialization order.
WIRE_FIELDS: tuple[str, ...] = (
    "id",
    "authenticationId",
    "authenticationType",
    "authenticationController",
    "authenticationPublicKeyPerm",
    "serviceId",
    "serviceType",
    "serviceEndPoint",
)


class DidRecord(BaseModel):
    """A DID document with a single authentication key and a single service.

    Parameters
    ----------
    id:
        The document's own DID. Independent of the storage key.
    authentication_id:
        Identifier of the authentication key (e.g. ``<did>#keys-1``).
    authentication_type:
        Verification key type (e.g. ``"RsaVerificationKey2018"``).
    authentication_controller:
        DID controlling the authentication key.
    authentication_public_key_perm:
        PEM-encoded public key material.
    service_id:
        Identifier of the advertised service.
    service_type:
        Service type string (e.g. ``"VerifiableCredentialService"``).
    service_end_point:
        URL of the service.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = ""
    authentication_id: str = Field(default="", alias="authenticationId")
    authentication_type: str = Field(default="", alias="authenticationType")
    authentication_controller: str = Field(default="", alias="authenticationController")
    authentication_public_key_perm: str = Field(
        default="", alias="authenticationPublicKeyPerm"
    )
    service_id: str = Field(default="", alias="serviceId")
    service_type: str = Field(default="", alias="serviceType")
    service_end_point: str = Field(default="", alias="serviceEndPoint")

    @classmethod
    def empty(cls) -> "DidRecord":
        """Return the zero-valued record (every field is the empty string)."""
        return cls()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, str]:
        """Return the wire mapping (camelCase keys, fixed order)."""
        return self.model_dump(by_alias=True)

    def to_bytes(self) -> bytes:
        """Serialize to the compact JSON bytes stored in the world state."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes, key: str | None = None) -> "DidRecord":
        """Decode stored bytes into a record.

        Parameters
        ----------
        data:
            Bytes as produced by :meth:`to_bytes`.
        key:
            Storage key the bytes were read from; used in error messages.

        Returns
        -------
        DidRecord
            The decoded record. Fields missing from the stored object are
            empty strings; unknown fields are ignored.

        Raises
        ------
        SerializationFault
            If the bytes are not a JSON object of string fields.
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as exc:
            reasons = "; ".join(error["msg"] for error in exc.errors())
            raise SerializationFault(key, reasons) from exc
        except UnicodeDecodeError as exc:
            raise SerializationFault(key, f"invalid UTF-8: {exc}") from exc


@dataclass(frozen=True)
class QueryResult:
    """A storage key paired with the record read from it.

    Produced only by read operations and never written back to the store.
    """

    key: str
    record: DidRecord

    def to_dict(self) -> dict[str, object]:
        """Serialize to the ``{"Key": ..., "Record": {...}}`` result shape."""
        return {"Key": self.key, "Record": self.record.to_dict()}
