"""
Banking System Context

Wires the audit trail, registries and admin gate together.
"""

from typing import Optional

from .admin import AdminGate
from .audit import AuditTrail
from .config import BankCoreConfig, get_config
from .registry import AccountRegistry
from .seed import initialize_demo_data
from .sessions import UserRegistry


class BankingSystem:
    """Bank core with all components initialized"""

    def __init__(self, config: Optional[BankCoreConfig] = None, seed: Optional[bool] = None):
        self.config = config or get_config()

        self.audit_trail = AuditTrail(enabled=self.config.enable_audit_logging)
        self.account_registry = AccountRegistry(
            self.audit_trail,
            record_transactions=self.config.record_transactions
        )
        self.user_registry = UserRegistry(self.audit_trail, self.account_registry)
        self.admin = AdminGate(self.user_registry, self.account_registry, self.audit_trail)

        should_seed = self.config.seed_demo_data if seed is None else seed
        if should_seed:
            initialize_demo_data(
                self.user_registry,
                self.account_registry,
                account_number_start=self.config.account_number_start,
                user_id_start=self.config.user_id_start
            )
