"""
Credential issuance.

Real issuance (sign a VC JWT, encrypt it at rest, hash it) is not built yet.
Until then every issued record carries placeholder opaque values and the
result says so through its status.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.schemas.schemas import CredentialIssuanceStatus

logger = logging.getLogger(__name__)

PLACEHOLDER_VC_JWT = "encrypted.jwt.payload"
PLACEHOLDER_VC_HASH = "hash-placeholder"


@dataclass
class CredentialIssuance:
    status: CredentialIssuanceStatus
    credential: Dict[str, Any]

    @property
    def signed(self) -> bool:
        return self.status is CredentialIssuanceStatus.signed


def issue_credential(db: Session, subject_user_id: str, credential_type: str, payload: Any = None) -> CredentialIssuance:
    """Insert one credential row and report it as pending signature."""
    # TODO: sign the payload as a VC JWT and store the encrypted token + hash
    result = db.execute(
        text("""
            INSERT INTO credentials (id, subject_user_id, type, vc_jwt_encrypted, vc_hash, expiry)
            VALUES (:id, :subject_user_id, :type, :vc_jwt, :vc_hash, NULL)
            RETURNING id, subject_user_id, type, vc_jwt_encrypted, vc_hash, expiry, created_at
        """),
        {
            "id": str(uuid.uuid4()),
            "subject_user_id": subject_user_id,
            "type": credential_type,
            "vc_jwt": PLACEHOLDER_VC_JWT,
            "vc_hash": PLACEHOLDER_VC_HASH,
        },
    )
    row = dict(result.mappings().one())
    logger.info("Issued unsigned %s credential %s for %s", credential_type, row["id"], subject_user_id)
    return CredentialIssuance(status=CredentialIssuanceStatus.pending_signature, credential=row)
