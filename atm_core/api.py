"""
FastAPI REST API Module

HTTP front for the teller: login/logout with JWT bearer tokens, balance
query, deposits, withdrawals, daily limit management and the dark-mode
preference. Every mutating endpoint goes through the session host; domain
rejections come back as HTTP errors carrying the outcome code.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from . import __version__
from .config import AtmConfig, get_config
from .events import EventDispatcher
from .logging_config import setup_logging
from .preferences import PreferenceStore
from .session import AtmSession, rejection_message
from .state import Action, Outcome, TransitionResult
from .storage import StorageInterface, create_storage


# Request models
class LoginRequest(BaseModel):
    identity: str = Field(..., min_length=1, description="Opaque identity of the customer")


class AmountRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")


class DailyLimitRequest(BaseModel):
    limit: str = Field(..., description="New daily withdrawal limit as string")


# Teller system context
class AtmSystem:
    """Session, storage and preference cache wired together"""

    def __init__(self, cfg: Optional[AtmConfig] = None, storage: Optional[StorageInterface] = None):
        self.config = cfg or get_config()
        self.storage = storage or create_storage(self.config.session_store_path)
        self.dispatcher = EventDispatcher()
        self.preferences = PreferenceStore(self.storage)
        self.session = AtmSession.restore(
            self.preferences,
            defaults=self.config.account_defaults(),
            dispatcher=self.dispatcher,
            session_id=self.config.session_id,
            max_amount_length=self.config.max_amount_length,
        )

    def close(self) -> None:
        self.preferences.detach(self.dispatcher)
        self.storage.close()


_atm_system: Optional[AtmSystem] = None


def get_atm_system() -> AtmSystem:
    """Get the process-wide teller system, creating it on first use"""
    global _atm_system
    if _atm_system is None:
        _atm_system = AtmSystem()
    return _atm_system


def set_atm_system(system: Optional[AtmSystem]) -> None:
    """Replace the process-wide teller system"""
    global _atm_system
    _atm_system = system


_startup_config = get_config()
logger = setup_logging(
    _startup_config.log_level, "atm",
    log_format=_startup_config.log_format, log_file=_startup_config.log_file
)

security = HTTPBearer(auto_error=False)

OUTCOME_STATUS = {
    Outcome.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    Outcome.INSUFFICIENT_FUNDS: status.HTTP_409_CONFLICT,
    Outcome.DAILY_LIMIT_EXCEEDED: status.HTTP_409_CONFLICT,
    Outcome.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
}


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"outcome": Outcome.NOT_AUTHENTICATED.value, "message": message},
    )


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: AtmSystem = Depends(get_atm_system)
) -> Optional[str]:
    """Dependency that validates the bearer token against the live session"""
    state = system.session.state
    if not system.config.auth_enabled:
        # The state machine itself rejects financial actions when logged out
        return state.identity

    if not credentials:
        raise _unauthorized("Not authenticated")
    try:
        payload = jwt.decode(
            credentials.credentials,
            system.config.jwt_secret,
            algorithms=[system.config.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    identity = payload.get("sub")
    if not identity:
        raise _unauthorized("Invalid token")
    if not state.is_authenticated or state.identity != identity:
        raise _unauthorized("Session is not active for this token")
    return identity


def issue_token(identity: str, cfg: AtmConfig) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=cfg.jwt_expiry_hours)
    token = jwt.encode(
        {"sub": identity, "sid": cfg.session_id, "iat": now, "exp": expires_at},
        cfg.jwt_secret,
        algorithm=cfg.jwt_algorithm,
    )
    return {"access_token": token, "token_type": "bearer", "expires_at": expires_at.isoformat()}


def _account_view(result: TransitionResult, action: Action) -> Dict[str, Any]:
    """Account snapshot for accepted results, HTTP error otherwise"""
    if not result.accepted:
        raise HTTPException(
            status_code=OUTCOME_STATUS[result.outcome],
            detail={"outcome": result.outcome.value, "message": rejection_message(result, action)},
        )
    return result.state.to_dict()


def _submit(system: AtmSystem, action: Action) -> Dict[str, Any]:
    return _account_view(system.session.dispatch(action), action)


def _currency_args(system: AtmSystem) -> Dict[str, Any]:
    return {
        "currency": system.session.defaults.currency,
        "max_length": system.session.max_amount_length,
    }


# Create FastAPI app
app = FastAPI(
    title="ATM Teller API",
    description="Simulated automated-teller session with daily withdrawal limits",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/")
async def root():
    """Root endpoint with system information"""
    return {
        "system": "ATM Teller",
        "version": __version__,
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "auth": "/auth",
            "account": "/account",
            "preferences": "/preferences",
        }
    }


# Session endpoints
@app.post("/auth/login")
async def login(request: LoginRequest, system: AtmSystem = Depends(get_atm_system)):
    """Start a session for the identity and return a bearer token"""
    action = Action.login(request.identity)
    _submit(system, action)
    response = issue_token(request.identity, system.config)
    response["message"] = "Login successful"
    return response


@app.post("/auth/logout")
async def logout(
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """End the session and reset the account to its defaults"""
    _submit(system, Action.logout())
    return {"message": "Logout successful"}


# Account endpoints
@app.get("/account")
async def get_account(
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """Balance, daily limit and how much of it is used"""
    state = system.session.state
    if not state.is_authenticated:
        raise _unauthorized("Please log in.")
    return state.to_dict()


@app.post("/account/deposit")
async def deposit(
    request: AmountRequest,
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """Deposit funds"""
    return _submit(system, Action.deposit(request.amount, **_currency_args(system)))


@app.post("/account/withdraw")
async def withdraw(
    request: AmountRequest,
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """Withdraw funds within balance and the daily limit"""
    return _submit(system, Action.withdraw(request.amount, **_currency_args(system)))


@app.put("/account/daily-limit")
async def set_daily_limit(
    request: DailyLimitRequest,
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """Change the daily withdrawal limit"""
    return _submit(system, Action.set_daily_limit(request.limit, **_currency_args(system)))


@app.post("/account/daily-limit/reset")
async def reset_daily_limit(
    identity: Optional[str] = Depends(get_current_identity),
    system: AtmSystem = Depends(get_atm_system)
):
    """Restore the default daily withdrawal limit"""
    return _submit(system, Action.reset_daily_limit())


# Preferences
@app.post("/preferences/dark-mode/toggle")
async def toggle_dark_mode(system: AtmSystem = Depends(get_atm_system)):
    """Flip the dark-mode preference"""
    state = _submit(system, Action.toggle_dark_mode())
    return {"dark_mode": state["dark_mode"]}


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "atm_core.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
