"""Demo data for the bank core

Creates two CLIENT users with two verified accounts each and one ADMIN user.
On empty registries the counters are reset first so the generated IDs are
stable:

- users 1 and 2 are clients, user 3 is the admin
- accounts 1000 and 1001 belong to user 1, 1002 and 1003 to user 2

Registries that already hold users or accounts keep their numbering and the
demo data continues from the current counters.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from .accounts import Account, reset_account_numbers
from .logging_config import get_logger
from .registry import AccountRegistry
from .sessions import UserRegistry
from .users import Role, User, reset_user_ids


logger = get_logger("bank_core.seed")

DEMO_USERS: List[Tuple[str, Role, str, str, str, List[Decimal]]] = [
    ("Hady", Role.CLIENT, "hady@gmail.com", "1234", "555-0101",
     [Decimal('1000.0'), Decimal('2500.50')]),
    ("Jane Smith", Role.CLIENT, "jane.smith@email.com", "password456", "555-0202",
     [Decimal('500.0'), Decimal('3000.75')]),
    ("Admin User", Role.ADMIN, "admin@bank.com", "admin123", "555-0000", []),
]


def initialize_demo_data(
    user_registry: UserRegistry,
    account_registry: AccountRegistry,
    account_number_start: Optional[int] = None,
    user_id_start: Optional[int] = None
) -> List[User]:
    """
    Populate the registries with demo users and verified accounts

    Raises ValueError, before changing anything, if a demo email is already
    registered.
    """
    taken = [email for _, _, email, _, _, _ in DEMO_USERS
             if user_registry.get_user_by_email(email) is not None]
    if taken:
        raise ValueError(f"Demo users already registered: {', '.join(taken)}")

    if not user_registry.get_all_users() and not account_registry.get_all_accounts():
        reset_user_ids(user_id_start)
        reset_account_numbers(account_number_start)
    else:
        logger.info("Registries not empty; demo data continues the current numbering")

    users = []
    for name, role, email, password, phone, balances in DEMO_USERS:
        user = User(name=name, email=email, password=password, phone=phone, role=role)
        if not user_registry.add_user(user):
            raise ValueError(f"Demo user {email} could not be added")

        for balance in balances:
            account = Account(balance)
            user.add_account(account)
            if not account_registry.register_account(account):
                raise ValueError(f"Account number {account.account_number} is already registered")
            account.verify()

        users.append(user)

    user_registry.logout()
    logger.info(f"Seeded {len(users)} users and {len(account_registry.get_all_accounts())} accounts")
    return users
