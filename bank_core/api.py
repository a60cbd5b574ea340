"""
FastAPI REST API Module

Thin HTTP surface over the bank core. Each client gets its own session,
identified by the token returned from /session/register or /session/login
and sent back in the X-Session-Token header. Runs on port 8090 by default.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from pydantic import BaseModel, Field
import uvicorn

from .accounts import Account
from .config import get_config
from .logging_config import setup_logging
from .sessions import Session
from .system import BankingSystem
from .users import User


# Pydantic models for API requests
class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateAccountRequest(BaseModel):
    initial_balance: str = Field("0", description="Decimal amount as string")


class AmountRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")


class TransferRequest(BaseModel):
    from_account_number: int
    to_account_number: int
    amount: str = Field(..., description="Decimal amount as string")


ADMIN_ACTIONS = ("verify", "suspend", "appeal", "close")


# Dependencies
def get_banking_system(request: Request) -> BankingSystem:
    return request.app.state.banking_system


def get_session(
    x_session_token: Optional[str] = Header(None),
    system: BankingSystem = Depends(get_banking_system)
) -> Session:
    session = system.user_registry.get_session(x_session_token)
    if session is None or not session.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")
    return session


def get_admin_session(session: Session = Depends(get_session)) -> Session:
    if not session.user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return session


def _owned_account(system: BankingSystem, session: Session, account_number: int) -> Account:
    account = system.account_registry.find_account(account_number)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    if not session.user.owns(account) and not session.user.is_admin:
        raise HTTPException(status_code=403, detail="Account belongs to another user")
    return account


def _session_response(session: Session, user: User) -> dict:
    return {"session_token": session.session_id, "user": user.to_dict()}


def create_app(system: Optional[BankingSystem] = None) -> FastAPI:
    """Build the API around a banking system (a fresh one by default)"""
    app = FastAPI(
        title="Bank Core API",
        description="Accounts, verification lifecycle and money movement",
        version="1.0.0"
    )
    app.state.banking_system = system or BankingSystem()

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    # Session endpoints

    @app.post("/session/register", status_code=status.HTTP_201_CREATED)
    async def register(request: RegisterRequest, system: BankingSystem = Depends(get_banking_system)):
        """Register a client and open a session for them"""
        registry = system.user_registry
        session = registry.open_session()
        if not registry.register_user(request.name, request.email, request.password,
                                      request.phone, session=session):
            registry.close_session(session.session_id)
            if registry.get_user_by_email(request.email) is not None:
                raise HTTPException(status_code=409, detail="Email already registered")
            raise HTTPException(status_code=400, detail="Invalid registration details")
        return _session_response(session, session.user)

    @app.post("/session/login")
    async def login(request: LoginRequest, system: BankingSystem = Depends(get_banking_system)):
        registry = system.user_registry
        session = registry.open_session()
        if not registry.login(request.email, request.password, session=session):
            registry.close_session(session.session_id)
            raise HTTPException(status_code=401, detail="Invalid email or password")
        return _session_response(session, session.user)

    @app.post("/session/logout")
    async def logout(
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        system.user_registry.logout(session)
        system.user_registry.close_session(session.session_id)
        return {"logged_out": True}

    @app.get("/session/me")
    async def whoami(session: Session = Depends(get_session)):
        return session.user.to_dict()

    # Account endpoints

    @app.post("/accounts", status_code=status.HTTP_201_CREATED)
    async def create_account(
        request: CreateAccountRequest,
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        """Open an account for the logged-in user"""
        if not system.user_registry.create_account(request.initial_balance, session=session):
            raise HTTPException(status_code=400, detail="Invalid initial balance")
        return session.user.accounts[-1].to_dict()

    @app.get("/accounts")
    async def list_accounts(
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        accounts = system.account_registry.get_current_user_accounts(session)
        return {"accounts": [account.to_dict() for account in accounts]}

    @app.post("/accounts/{account_number}/deposit")
    async def deposit(
        account_number: int,
        request: AmountRequest,
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        account = _owned_account(system, session, account_number)
        if not system.account_registry.deposit(account, request.amount):
            raise HTTPException(status_code=400, detail="Deposit rejected")
        return account.to_dict()

    @app.post("/accounts/{account_number}/withdraw")
    async def withdraw(
        account_number: int,
        request: AmountRequest,
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        account = _owned_account(system, session, account_number)
        if not system.account_registry.withdraw(account, request.amount):
            raise HTTPException(status_code=400, detail="Withdrawal rejected")
        return account.to_dict()

    @app.post("/transfers")
    async def transfer(
        request: TransferRequest,
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        """Transfer from one of the caller's accounts to any account"""
        source = _owned_account(system, session, request.from_account_number)
        if system.account_registry.find_account(request.to_account_number) is None:
            raise HTTPException(status_code=404, detail="Target account not found")
        if not system.account_registry.transfer(
            request.from_account_number, request.to_account_number, request.amount
        ):
            raise HTTPException(status_code=400, detail="Transfer rejected")
        return source.to_dict()

    @app.get("/accounts/{account_number}/transactions")
    async def transaction_history(
        account_number: int,
        session: Session = Depends(get_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        account = _owned_account(system, session, account_number)
        history = system.account_registry.get_transaction_history(account)
        return {"transactions": [transaction.to_dict() for transaction in history]}

    # Admin endpoints

    @app.post("/admin/accounts/{account_number}/{action}")
    async def admin_account_action(
        account_number: int,
        action: str,
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        """Apply verify, suspend, appeal or close to an account"""
        if action not in ADMIN_ACTIONS:
            raise HTTPException(status_code=404, detail=f"Unknown action {action}")
        account = system.account_registry.find_account(account_number)
        if account is None:
            raise HTTPException(status_code=404, detail="Account not found")

        operation = getattr(system.admin, f"{action}_account")
        if not operation(account_number, actor_id=session.user.user_id):
            raise HTTPException(
                status_code=409,
                detail=f"Cannot {action} an account that is {account.status.value}"
            )
        return account.to_dict()

    @app.get("/admin/accounts/unverified")
    async def unverified_accounts(
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        return {"accounts": [a.to_dict() for a in system.admin.get_unverified_accounts()]}

    @app.get("/admin/transactions/pending")
    async def pending_transactions(
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        return {"transactions": [t.to_dict() for t in system.admin.get_pending_transactions()]}

    @app.post("/admin/transactions/{transaction_id}/approve")
    async def approve_transaction(
        transaction_id: str,
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        if not system.admin.approve_transaction(transaction_id, actor_id=session.user.user_id):
            raise HTTPException(status_code=404, detail="No pending transaction with that ID")
        return {"transaction_id": transaction_id, "status": "success"}

    @app.post("/admin/transactions/{transaction_id}/reject")
    async def reject_transaction(
        transaction_id: str,
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        if not system.admin.reject_transaction(transaction_id, actor_id=session.user.user_id):
            raise HTTPException(status_code=404, detail="No pending transaction with that ID")
        return {"transaction_id": transaction_id, "status": "failed"}

    @app.get("/admin/users")
    async def list_users(
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        return {"users": [u.to_dict() for u in system.admin.get_all_users().values()]}

    @app.get("/audit/integrity")
    async def audit_integrity(
        session: Session = Depends(get_admin_session),
        system: BankingSystem = Depends(get_banking_system)
    ):
        return system.audit_trail.verify_integrity()

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format)
    uvicorn.run(
        create_app(),
        host=host or config.api_host,
        port=port or config.api_port,
        log_level="debug" if debug else "info"
    )
