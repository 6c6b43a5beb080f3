"""Example DID records written by ``InitLedger``."""
from __future__ import annotations

from did_ledger.record.model import DidRecord

_EXAMPLE_PUBLIC_KEY = "-----BEGIN PUBLIC KEY...END PUBLIC KEY-----\r\n"

SEED_DIDS: tuple[DidRecord, ...] = (
    DidRecord(
        id="did:example:12346789abcdefghi",
        authentication_id="did:example:12346789abcdefghi#keys-1",
        authentication_type="RsaVerificationKey2018",
        authentication_controller="did:example:12346789abcdefghi",
        authentication_public_key_perm=_EXAMPLE_PUBLIC_KEY,
        service_id="did:example:12346789abcdefghi#vcs",
        service_type="VerifiableCredentialService",
        service_end_point="https://example.com/vc/",
    ),
    DidRecord(
        id="did:example:12346789asdfghjkl",
        authentication_id="did:example:12346789asdfghjkl#keys-1",
        authentication_type="RsaVerificationKey2018",
        authentication_controller="did:example:12346789asdfghjkl",
        authentication_public_key_perm=_EXAMPLE_PUBLIC_KEY,
        # The service id differs from the DID ("aasdf"); kept as published.
        service_id="did:example:12346789aasdfghjkl#vcs",
        service_type="VerifiableCredentialService",
        service_end_point="https://example2.com/vc/",
    ),
)
