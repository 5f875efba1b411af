"""
오류 분류 체계

- ValidationError: 호출자 입력 오류 (네트워크 호출 전에 로컬에서 검출)
- ComponentError: 풀 컴포넌트 주소를 사용할 수 없음 (없음 / 타입 불일치 / 필드 누락)
- NFTError: 유동성 영수증 NFT 조회/해석 실패
- DataError: 요청한 state version이 원장 범위를 벗어남
- MalformedData: 숫자/구조로 해석되어야 할 값이 해석되지 않음
- GatewayError: 분류되지 않은 Gateway 전송 오류
"""

from typing import Any, Dict, List, Optional


class RedemptionError(Exception):
    """패키지 오류의 기본 클래스"""

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(RedemptionError, ValueError):
    """호출자 입력 오류"""
    pass


class MalformedData(RedemptionError, ValueError):
    """원격 데이터가 기대한 숫자/구조 형식이 아님"""
    pass


class ComponentError(RedemptionError):
    """풀 컴포넌트 오류"""

    NOT_FOUND = "not_found"
    WRONG_TYPE = "wrong_type"
    MISSING_FIELD = "missing_field"

    def __init__(self, message: str, reason: str, address: Optional[str] = None):
        super().__init__(message, reason)
        self.address = address

    @classmethod
    def not_found(cls, address: str) -> "ComponentError":
        return cls(f"Component not found: {address}", cls.NOT_FOUND, address)

    @classmethod
    def wrong_type(cls, address: str, found: Optional[str] = None) -> "ComponentError":
        detail = f" (found {found})" if found else ""
        return cls(
            f"Address is not a C9 pool component: {address}{detail}",
            cls.WRONG_TYPE,
            address,
        )

    @classmethod
    def missing_field(cls, address: str, field_name: str) -> "ComponentError":
        return cls(
            f"Component {address} is missing required field '{field_name}'",
            cls.MISSING_FIELD,
            address,
        )


class NFTError(RedemptionError):
    """유동성 영수증 NFT 오류"""

    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    BURNED = "burned"
    NO_ACTIVE_TICK = "no_active_tick"

    def __init__(self, message: str, reason: str, nft_id: Optional[str] = None):
        super().__init__(message, reason)
        self.nft_id = nft_id

    @classmethod
    def not_found(cls, nft_id: str) -> "NFTError":
        return cls(f"NFT not found: {nft_id}", cls.NOT_FOUND, nft_id)

    @classmethod
    def malformed(cls, nft_id: str, detail: str) -> "NFTError":
        return cls(f"Malformed NFT {nft_id}: {detail}", cls.MALFORMED, nft_id)

    @classmethod
    def burned(cls, nft_id: str) -> "NFTError":
        return cls(f"NFT has been burned: {nft_id}", cls.BURNED, nft_id)

    @classmethod
    def no_active_tick(cls) -> "NFTError":
        return cls("Pool has no active tick; redemption split is undefined", cls.NO_ACTIVE_TICK)


class DataError(RedemptionError):
    """state version 범위 오류"""

    STATE_VERSION_TOO_HIGH = "state_version_too_high"
    STATE_VERSION_TOO_LOW = "state_version_too_low"

    def __init__(self, message: str, reason: str, state_version: Optional[int] = None):
        super().__init__(message, reason)
        self.state_version = state_version

    @classmethod
    def state_version_too_high(cls, requested: int, current: Optional[int] = None) -> "DataError":
        detail = f" (current {current})" if current is not None else ""
        return cls(
            f"State version {requested} is beyond the ledger's current state{detail}",
            cls.STATE_VERSION_TOO_HIGH,
            requested,
        )

    @classmethod
    def state_version_too_low(cls, requested: int) -> "DataError":
        return cls(
            f"State version {requested} precedes the ledger history available",
            cls.STATE_VERSION_TOO_LOW,
            requested,
        )


class GatewayError(RedemptionError):
    """Gateway 전송/응답 오류

    Gateway ErrorResponse의 ``details.type`` 을 ``error_type`` 으로 보존하여
    classify_gateway_error()가 세부 분류에 사용합니다.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_type)
        self.status_code = status_code
        self.error_type = error_type
        self.details = details or {}

    @property
    def validation_paths(self) -> List[str]:
        """InvalidRequestError의 validation_errors 경로 목록"""
        errors = self.details.get("validation_errors") or []
        return [str(e.get("path", "")) for e in errors if isinstance(e, dict)]


def classify_gateway_error(
    error: GatewayError,
    subject: str,
    identifier: str,
    state_version: Optional[int] = None,
) -> RedemptionError:
    """Gateway 오류를 가장 구체적인 오류 종류로 변환

    Args:
        error: 협력자가 던진 GatewayError
        subject: "component" 또는 "nft"
        identifier: 컴포넌트 주소 또는 NFT ID
        state_version: 요청에 사용한 state version

    Returns:
        분류된 오류. 분류할 수 없으면 원래 error를 그대로 반환
    """
    paths = error.validation_paths
    if state_version is not None and any("at_ledger_state" in p for p in paths):
        message = (error.message or "").lower()
        if "future" in message or "beyond" in message or "higher" in message:
            return DataError.state_version_too_high(state_version)
        return DataError.state_version_too_low(state_version)

    if error.error_type == "EntityNotFoundError" or error.status_code == 404:
        if subject == "component":
            return ComponentError.not_found(identifier)
        return NFTError.not_found(identifier)

    if error.error_type in ("InvalidRequestError", "InvalidEntityError"):
        if subject == "component":
            return ComponentError.wrong_type(identifier)
        return NFTError.malformed(identifier, error.message)

    return error
