from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details,
                },
            },
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details,
        )


class AuthorizationError(BaseAPIException):
    """Authorization related errors"""

    def __init__(self, message: str = "Access forbidden", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTH_002",
            message=message,
            details=details,
        )


class OAuthError(BaseAPIException):
    """OAuth related errors"""

    def __init__(self, message: str = "OAuth error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="OAUTH_001",
            message=message,
            details=details,
        )


class ValidationError(BaseAPIException):
    """Validation errors"""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details,
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""

    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict] = None,
        error_code: str = "NOT_FOUND_001",
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            message=message,
            details=details,
        )


class ConflictError(BaseAPIException):
    """Resource conflict errors"""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict] = None,
        error_code: str = "CONFLICT_001",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            details=details,
        )


class BusinessLogicError(BaseAPIException):
    """Business logic errors"""

    def __init__(self, error_code: str, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details,
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details,
        )


class TransientStoreError(BaseAPIException):
    """일시적인 저장소 장애 (재시도 가능)"""

    def __init__(self, message: str = "Store temporarily unavailable", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="STORE_001",
            message=message,
            details=details,
        )


# ============================================================================
# 포인트 / 정산
# ============================================================================


class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""

    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message,
            details=details,
        )


class InvalidAmountError(BusinessLogicError):
    def __init__(self, message: str = "Invalid amount", details: Optional[Dict] = None):
        super().__init__("AMOUNT_001", message, details)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Any):
        super().__init__(f"User not found: {user_id}", {"user_id": user_id}, "USER_002")


# ============================================================================
# 태스크
# ============================================================================


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: Any):
        super().__init__(f"Task not found: {task_id}", {"task_id": task_id}, "TASK_404")


class CompletionNotFoundError(NotFoundError):
    def __init__(self, completion_id: Any):
        super().__init__(
            f"Task completion not found: {completion_id}",
            {"completion_id": completion_id},
            "TASK_COMPLETION_404",
        )


class WrongTaskTypeError(BusinessLogicError):
    def __init__(self, message: str = "Task requires a different verification flow", details: Optional[Dict] = None):
        super().__init__("TASK_001", message, details)


class TaskNotEligibleError(BusinessLogicError):
    def __init__(self, message: str = "Task is inactive, missing, or not auto-verifiable", details: Optional[Dict] = None):
        super().__init__("TASK_002", message, details)


class AlreadySubmittedError(ConflictError):
    def __init__(self, message: str = "Proof already submitted for this task", details: Optional[Dict] = None):
        super().__init__(message, details, "TASK_003")


class AlreadyCompletedError(ConflictError):
    """이미 완료된 링크 태스크 - 호출 측은 그래도 redirect_url로 이동"""

    def __init__(self, redirect_url: Optional[str], message: str = "Task already completed"):
        self.redirect_url = redirect_url
        super().__init__(message, {"redirect_url": redirect_url}, "TASK_004")


class AlreadyProcessedError(ConflictError):
    def __init__(self, message: str = "Submission already processed", details: Optional[Dict] = None):
        super().__init__(message, details, "TASK_005")


# ============================================================================
# 클레임 코드
# ============================================================================


class InvalidCodeError(NotFoundError):
    def __init__(self, message: str = "Code is invalid or inactive", details: Optional[Dict] = None):
        super().__init__(message, details, "CODE_001")


class AlreadyUsedError(ConflictError):
    def __init__(self, message: str = "Code already redeemed by this user", details: Optional[Dict] = None):
        super().__init__(message, details, "CODE_002")


class ExpiredError(BaseAPIException):
    def __init__(self, message: str = "Code has expired", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_410_GONE,
            error_code="CODE_003",
            message=message,
            details=details,
        )


class MaxClaimsReachedError(ConflictError):
    def __init__(self, message: str = "Code has reached its claim limit", details: Optional[Dict] = None):
        super().__init__(message, details, "CODE_004")


# ============================================================================
# 팁
# ============================================================================


class SelfTipError(BusinessLogicError):
    def __init__(self, message: str = "Cannot tip yourself", details: Optional[Dict] = None):
        super().__init__("TIP_001", message, details)


class RecipientNotFoundError(NotFoundError):
    def __init__(self, username: str):
        super().__init__(f"Recipient not found: {username}", {"username": username}, "TIP_404")


# ============================================================================
# 래플
# ============================================================================


class RaffleNotFoundError(NotFoundError):
    def __init__(self, raffle_id: Any):
        super().__init__(f"Raffle not found: {raffle_id}", {"raffle_id": raffle_id}, "RAFFLE_404")


class NoActiveRaffleError(BusinessLogicError):
    def __init__(self, message: str = "No active raffle to join", details: Optional[Dict] = None):
        super().__init__("RAFFLE_001", message, details)


class AlreadyDrawnError(ConflictError):
    def __init__(self, message: str = "Raffle already drawn", details: Optional[Dict] = None):
        super().__init__(message, details, "RAFFLE_002")


class InvalidWinnerError(BusinessLogicError):
    def __init__(self, message: str = "Winner must be a participant of this raffle", details: Optional[Dict] = None):
        super().__init__("RAFFLE_003", message, details)
