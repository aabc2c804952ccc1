# Domain errors raised by the stores


class StoreError(Exception):
    """Base class for business-rule failures surfaced by the stores."""


class ProfileConflict(StoreError):
    """A profile could not be created because a unique key is already in use."""


class ProfileExists(ProfileConflict):
    def __init__(self, external_account_id):
        super().__init__(f"Account {external_account_id!r} already has a profile")
        self.external_account_id = external_account_id


class UsernameTaken(ProfileConflict):
    def __init__(self, username):
        super().__init__(f"Username {username!r} is already taken")
        self.username = username
