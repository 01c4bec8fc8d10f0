"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quickpe.core.crypto import MAX_PASSWORD_BYTES

# Raw JSON value; converted to paise by quickpe.modules.transfers.parse_amount.
AmountField = Optional[Union[int, float, str, bool]]


def _check_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        return _check_password_length(value)


class SigninRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    user_id: str
    username: str
    role: str


class UserResponse(BaseModel):
    id: str
    username: str
    first_name: str
    last_name: str
    quickpe_id: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(Token):
    user: UserResponse


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

    @field_validator("new_password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        return _check_password_length(value)


class UserSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    username: str
    quickpe_id: str

    model_config = ConfigDict(from_attributes=True)


class UserDirectoryResponse(BaseModel):
    users: list[UserSummary]


class BalanceResponse(BaseModel):
    balance_paise: int
    balance: str
    currency: str = "INR"


class DepositRequest(BaseModel):
    amount: AmountField = None
    description: Optional[str] = Field(None, max_length=500)


class DepositResponse(BaseModel):
    success: bool = True
    message: str = "Money added successfully"
    transaction_id: str
    new_balance_paise: int
    new_balance: str


class TransferRequest(BaseModel):
    to: Optional[str] = None
    amount: AmountField = None
    description: Optional[str] = Field(None, max_length=500)
    idempotency_key: Optional[str] = Field(None, max_length=100)


class TransferResponse(BaseModel):
    success: bool = True
    message: str = "Transfer successful"
    transaction_id: str
    new_balance_paise: int
    new_balance: str
    replayed: bool = False


class CounterpartyResponse(BaseModel):
    user_id: str
    name: str
    quickpe_id: str


class TransactionResponse(BaseModel):
    id: int
    transaction_id: str
    type: str
    category: str
    amount_paise: int
    amount: str
    balance_after_paise: int
    description: Optional[str] = None
    counterparty: Optional[CounterpartyResponse] = None
    created_at: datetime


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    pagination: PaginationResponse


class MoneyRequestCreate(BaseModel):
    to: Optional[str] = None
    amount: AmountField = None
    description: Optional[str] = Field(None, max_length=500)


class MoneyRequestReject(BaseModel):
    reason: Optional[str] = Field(None, max_length=200)


class MoneyRequestResponse(BaseModel):
    id: str
    request_id: str
    requester_id: str
    requester_name: str
    requester_quickpe_id: str
    requestee_id: str
    requestee_name: str
    requestee_quickpe_id: str
    amount_paise: int
    description: Optional[str] = None
    status: str
    transaction_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    responded_at: Optional[datetime] = None
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MoneyRequestActionResponse(BaseModel):
    success: bool = True
    message: str
    request: MoneyRequestResponse


class MoneyRequestApprovalResponse(MoneyRequestActionResponse):
    transaction_id: str
    new_balance_paise: int
    new_balance: str
    replayed: bool = False


class MoneyRequestListResponse(BaseModel):
    requests: list[MoneyRequestResponse]
    pagination: PaginationResponse


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    transaction_id: Optional[str] = None
    read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class AdminUserResponse(UserResponse):
    balance_paise: Optional[int] = None
    balance: Optional[str] = None


class AdminUserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: PaginationResponse


class AnalyticsResponse(BaseModel):
    total_users: int
    active_users: int
    total_transfers: int
    transfer_volume_paise: int
    deposit_volume_paise: int
    transfers_last_24h: int


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    environment: str
    version: str
    database: Literal["ok", "unavailable"]
