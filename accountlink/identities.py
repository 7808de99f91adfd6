"""
External identity records linked through OAuth.

The external identifier is supplied by the identity provider and acts as
the primary key, so the storage layer rejects a second insert for the same
identity.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

from .errors import DecodeError, DuplicateIdentityError, DuplicateRecordError
from .logging_config import log_action
from .storage import StorageInterface, StorageRecord


logger = logging.getLogger("accountlink.identities")

IDENTITIES_TABLE = "discord_user"
AVATAR_CDN_URL = "https://cdn.discordapp.com/avatars"


@dataclass
class ExternalIdentity(StorageRecord):
    """Identity on the external provider (a Discord user)"""
    id: str
    global_name: Optional[str] = None
    avatar: Optional[str] = None
    last_sign_in: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    datetime_fields = ("last_sign_in",)

    @property
    def avatar_url(self) -> Optional[str]:
        """CDN link for the avatar hash, if the user has one"""
        if not self.avatar:
            return None
        return f"{AVATAR_CDN_URL}/{self.id}/{self.avatar}.png"

    @classmethod
    def from_profile(cls, payload: Any) -> 'ExternalIdentity':
        """
        Decode a provider profile payload.

        Raises:
            DecodeError: if the payload is not an object or has no usable id
        """
        if not isinstance(payload, dict):
            raise DecodeError("profile payload is not a JSON object")

        identity_id = payload.get("id")
        if isinstance(identity_id, int) and not isinstance(identity_id, bool):
            identity_id = str(identity_id)
        if not isinstance(identity_id, str) or not identity_id:
            raise DecodeError("profile payload is missing an id")

        global_name = payload.get("global_name")
        avatar = payload.get("avatar")
        if global_name is not None and not isinstance(global_name, str):
            raise DecodeError("profile global_name must be a string")
        if avatar is not None and not isinstance(avatar, str):
            raise DecodeError("profile avatar must be a string")

        return cls(id=identity_id, global_name=global_name, avatar=avatar)

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "global_name": self.global_name,
            "avatar": self.avatar,
            "avatar_url": self.avatar_url,
            "last_sign_in": self.last_sign_in.isoformat(),
        }


class IdentityDirectory:
    """Existence checks and inserts for external identities"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def identity_exists(self, identity_id: str) -> bool:
        return self.storage.exists(IDENTITIES_TABLE, identity_id)

    def get_identity(self, identity_id: str) -> Optional[ExternalIdentity]:
        data = self.storage.load(IDENTITIES_TABLE, identity_id)
        if data is None:
            return None
        return ExternalIdentity.from_dict(data)

    def create_identity(self, identity: ExternalIdentity) -> None:
        """
        Insert a new identity.

        Raises:
            DuplicateIdentityError: if a row with this id was inserted first
        """
        try:
            self.storage.insert(IDENTITIES_TABLE, identity.id, identity.to_dict())
        except DuplicateRecordError as e:
            raise DuplicateIdentityError(identity.id) from e

        log_action(logger, "info", "External identity created", action="create_identity",
                   resource=f"discord_user/{identity.id}")
