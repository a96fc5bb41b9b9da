import logging
import secrets
from typing import List
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from app.config import settings
from app.crud import academics as academics_crud
from app.crud import tokens as tokens_crud
from app.exceptions import TermNotFound, ValidationError
from app.models.all_models import RedemptionToken
from app.services.audit import AuditRecorder
from app.utils.store import retry_once
from app.utils.system_utils import local_now

logger = logging.getLogger(__name__)

# no 0/O or 1/I, codes get typed in by hand from a printed card
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_GROUP_LENGTH = 4


def generate_code() -> str:
    groups = ("".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_GROUP_LENGTH)) for _ in range(2))
    return "-".join(groups)


class TokenService:
    """Issues batches of redemption tokens for a term"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.audit = AuditRecorder(db_session)

    @retry_once
    def generate_tokens(self, term_id: UUID, quantity: int, actor_id: UUID) -> List[RedemptionToken]:
        if quantity < 1 or quantity > settings.TOKEN_BATCH_LIMIT:
            raise ValidationError(f"quantity must be between 1 and {settings.TOKEN_BATCH_LIMIT}")
        if academics_crud.get_term(self.db, term_id) is None:
            raise TermNotFound()

        codes = self._fresh_codes(quantity)
        now = local_now()
        tokens = [
            RedemptionToken(id=uuid4(), code=code, term_id=term_id, is_used=False, created_at=now)
            for code in codes
        ]
        try:
            self.db.add_all(tokens)
            self.db.flush()
            for token in tokens:
                self.audit.record_insert(actor_id, token, reason="Token batch generated")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Generated {quantity} tokens for term {term_id} by {actor_id}")
        return tokens

    def _fresh_codes(self, quantity: int) -> List[str]:
        codes = set()
        while len(codes) < quantity:
            wanted = {generate_code() for _ in range(quantity - len(codes))}
            wanted -= set(tokens_crud.codes_in_use(self.db, list(wanted)))
            codes |= wanted
        return sorted(codes)
