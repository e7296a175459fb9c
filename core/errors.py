from typing import Optional


class BalanceCheckError(Exception):
    """Base error for balance checks and key pool operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BalanceCheckError):
    """Missing or empty input; raised before any network call."""

    status_code = 400


class UnsupportedProvider(BalanceCheckError):
    """Provider tag outside the supported enumeration."""

    status_code = 400

    def __init__(self, provider):
        super().__init__(f"不支持的平台: {provider}")
        self.provider = provider


class ProviderError(BalanceCheckError):
    """Upstream billing API answered with a non-2xx status."""

    def __init__(self, label: str, http_status: Optional[int] = None, message: Optional[str] = None):
        super().__init__(message or f"{label} API 错误: {http_status}")
        self.label = label
        self.http_status = http_status


class NetworkError(BalanceCheckError):
    """Transport-level failure talking to a provider or the backend."""


class StoreError(BalanceCheckError):
    """Failure from the persistence layer, message passed through verbatim."""
