"""
Redemption Math - 영수증 상환 수량 계산

영수증의 틱별 claim을 풀 스냅샷의 bin_map에 대응시켜 상환 시 받을
토큰 수량을 계산합니다.

핵심 공식:
    share = claim / total_claim
    tick < current : Δy = share * bin.amount          # 활성 가격 아래 bin은 token Y만 보유
    tick > current : Δx = share * bin.amount          # 활성 가격 위 bin은 token X만 보유
    tick = current : Δx = active_x * claim / active_total_claim
                     Δy = active_y * claim / active_total_claim

모든 연산은 유효숫자 100자리 decimal.Decimal로 수행합니다. 덧셈과 곱셈은
정확하고, 1/3 같은 무한소수 몫만 100번째 자리에서 반올림됩니다.
"""

from decimal import Context, Decimal, localcontext
from typing import Iterable, Tuple

from ..constants import DECIMAL_PRECISION
from ..data.types import Claim, PoolSnapshot, RedemptionAmounts
from ..errors import NFTError

ZERO = Decimal(0)


def _context() -> Context:
    return Context(prec=DECIMAL_PRECISION)


def format_decimal(value: Decimal) -> str:
    """Decimal → 지수 표기 없는 문자열 (불필요한 0 제거)

    >>> format_decimal(Decimal("100.000"))
    '100'
    """
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def claim_share(claim: Decimal, total_claim: Decimal) -> Decimal:
    """bin 전체 claim 중 claim이 차지하는 비율 (total_claim == 0 이면 0)"""
    if total_claim == 0:
        return ZERO
    with localcontext(_context()):
        return claim / total_claim


def calculate_amounts(snapshot: PoolSnapshot, claims: Iterable[Claim]) -> Tuple[Decimal, Decimal]:
    """claim 목록의 (x, y) 합계를 Decimal로 계산

    Args:
        snapshot: 풀 스냅샷 (current_tick 필수)
        claims: 영수증 claim 목록

    Returns:
        (amount_x, amount_y) Decimal 튜플

    Raises:
        NFTError: 스냅샷에 활성 틱이 없을 때
    """
    if snapshot.current_tick is None:
        raise NFTError.no_active_tick()
    current = snapshot.current_tick

    amount_x = ZERO
    amount_y = ZERO
    with localcontext(_context()):
        for claim in claims:
            if claim.tick == current:
                if snapshot.active_total_claim == 0:
                    continue
                share = claim.claim / snapshot.active_total_claim
                amount_x += snapshot.active_x * share
                amount_y += snapshot.active_y * share
                continue

            bin_ = snapshot.get_bin(claim.tick)
            if bin_ is None or bin_.is_empty:
                # 이미 모두 인출된 bin
                continue
            share = claim.claim / bin_.total_claim
            if claim.tick < current:
                amount_y += share * bin_.amount
            else:
                amount_x += share * bin_.amount

    return amount_x, amount_y


def calculate_redemption(snapshot: PoolSnapshot, claims: Iterable[Claim]) -> RedemptionAmounts:
    """영수증 상환 수량 계산

    Args:
        snapshot: 풀 스냅샷
        claims: 영수증 claim 목록 (순서 무관, 같은 틱이 여러 번 나오면 각각 합산)

    Returns:
        RedemptionAmounts (정확한 십진수 문자열)
    """
    amount_x, amount_y = calculate_amounts(snapshot, claims)
    return RedemptionAmounts(
        x_token=format_decimal(amount_x),
        y_token=format_decimal(amount_y),
    )
