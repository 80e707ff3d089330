from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from controlclin.core.config import settings
from controlclin.core.exceptions import AuthenticationFailed, InitializationError, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.security import get_password_hash, verify_password
from controlclin.core.utils import normalize_email, utcnow_aware
from controlclin.db.models import Credential


class IdentityProvider:
    """
    Email/password sign-in. Holds credentials only; the clinic profile of a
    user lives in the state and points here through ``credential_ref``.
    """

    def __init__(self, url: str = settings.IDENTITY_STORE_URL):
        try:
            self.engine = create_engine(url, echo=False)
            SQLModel.metadata.create_all(self.engine, tables=[Credential.__table__])
        except SQLAlchemyError as e:
            raise InitializationError(f"Identity storage unavailable at {url}: {e}") from e

    def get_by_email(self, email: str) -> Optional[Credential]:
        with Session(self.engine) as session:
            stmt = select(Credential).where(Credential.email == normalize_email(email))
            return session.exec(stmt).first()

    def register(self, email: str, password: str) -> Credential:
        if not password:
            raise ValidationFailed("Password is required")
        if self.get_by_email(email):
            raise ValidationFailed(f"Email {email} already has a login")
        credential = Credential(email=normalize_email(email), password_hash=get_password_hash(password))
        with Session(self.engine) as session:
            session.add(credential)
            session.commit()
            session.refresh(credential)
        logger.info(f"Registered credential {credential.uid}")
        return credential

    def sign_in(self, email: str, password: str) -> Credential:
        credential = self.get_by_email(email)
        if not credential or credential.disabled:
            raise AuthenticationFailed()
        if not verify_password(password, credential.password_hash):
            raise AuthenticationFailed()

        with Session(self.engine) as session:
            stored = session.get(Credential, credential.uid)
            stored.last_sign_in_at = utcnow_aware()
            session.add(stored)
            session.commit()
            session.refresh(stored)
            return stored

    def disable(self, uid: str) -> None:
        with Session(self.engine) as session:
            credential = session.get(Credential, uid)
            if credential is None:
                return
            credential.disabled = True
            session.add(credential)
            session.commit()
