"""
Account Directory Module

Create, read, list and delete account records. Each account gets a
server-assigned integer id and a distinct public account number that is
reserved permanently, so it is never handed out again after deletion.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import List, Optional
import logging
import secrets

from .errors import DuplicateRecordError
from .logging_config import log_action
from .storage import StorageInterface, StorageRecord


logger = logging.getLogger("accountlink.accounts")

ACCOUNTS_TABLE = "account"
ACCOUNT_NUMBERS_TABLE = "account_number"
ACCOUNT_ID_SEQUENCE = "account_id"

# Public account numbers are drawn from [NUMBER_MIN, NUMBER_MAX)
NUMBER_MIN = 100_000_000
NUMBER_MAX = 1_000_000_000
MAX_NUMBER_ATTEMPTS = 20


@dataclass
class Account(StorageRecord):
    """Bank-like account record. Balance is held in integer minor units."""
    id: int
    first_name: str
    last_name: str
    number: int
    balance: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    datetime_fields = ("created_at",)


class AccountDirectory:
    """CRUD operations over account records"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def create_account(self, first_name: str, last_name: str) -> Account:
        """Create an account with a fresh id and a never-used account number"""
        number = self._reserve_number()
        account = Account(
            id=self.storage.next_sequence(ACCOUNT_ID_SEQUENCE),
            first_name=first_name,
            last_name=last_name,
            number=number,
        )
        self.storage.insert(ACCOUNTS_TABLE, str(account.id), account.to_dict())

        log_action(logger, "info", "Account created", action="create_account",
                   resource=f"account/{account.id}", account_number=account.number)
        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        """Return the account, or None when no account has this id"""
        data = self.storage.load(ACCOUNTS_TABLE, str(account_id))
        if data is None:
            return None
        return Account.from_dict(data)

    def list_accounts(self) -> List[Account]:
        return [Account.from_dict(data) for data in self.storage.load_all(ACCOUNTS_TABLE)]

    def delete_account(self, account_id: int) -> bool:
        deleted = self.storage.delete(ACCOUNTS_TABLE, str(account_id))
        if deleted:
            log_action(logger, "info", "Account deleted", action="delete_account",
                       resource=f"account/{account_id}")
        return deleted

    def update_account(self, account: Account) -> None:
        """
        Declared for interface completeness; intentionally does nothing.

        No mutation path exists for accounts, so callers must not rely on
        this persisting any change.
        """
        log_action(logger, "debug", "Account update ignored", action="update_account",
                   resource=f"account/{account.id}")

    def _reserve_number(self) -> int:
        for _ in range(MAX_NUMBER_ATTEMPTS):
            number = NUMBER_MIN + secrets.randbelow(NUMBER_MAX - NUMBER_MIN)
            try:
                self.storage.insert(ACCOUNT_NUMBERS_TABLE, str(number), {"number": number})
            except DuplicateRecordError:
                continue
            return number
        raise RuntimeError("could not allocate a unique account number")
