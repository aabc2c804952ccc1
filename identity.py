# Session token and external account lookups
import logging
import secrets

from models import Profile, SessionToken
from views import Viewer

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Maps session tokens to external accounts and accounts to profiles.

    Lookups never raise for missing rows; absence is returned as None and
    the caller decides whether that means "unauthenticated" or
    "unregistered".
    """

    def __init__(self, session):
        self.session = session

    def issue_token(self, external_account_id):
        token = secrets.token_hex(32)
        self.session.add(SessionToken(token=token, external_account_id=external_account_id))
        self.session.commit()
        logger.info("Issued session token for account %s", external_account_id)
        return token

    def resolve_account(self, token):
        if not token:
            return None
        row = self.session.query(SessionToken.external_account_id)\
            .filter(SessionToken.token == token)\
            .first()
        return row.external_account_id if row else None

    def resolve_profile(self, external_account_id):
        if not external_account_id:
            return None
        return self.session.query(Profile)\
            .filter(Profile.external_account_id == external_account_id)\
            .first()

    def authenticate(self, token):
        account_id = self.resolve_account(token)
        if account_id is None:
            return Viewer()
        return Viewer(account_id=account_id, profile=self.resolve_profile(account_id))
