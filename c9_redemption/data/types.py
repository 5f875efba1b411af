"""
C9 풀 데이터 타입 정의

Gateway에서 읽어 온 풀 상태와 유동성 영수증을 Python dataclass로 정의.
모든 수량 필드는 Scrypto Decimal 정밀도를 위해 decimal.Decimal 사용.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .sbor import Entries, FieldNode, Fields, Leaf, first_value, parse_decimal, parse_int
from ..constants import FIELD_BIN_AMOUNT, FIELD_BIN_TOTAL_CLAIM, FIELD_LIQUIDITY_CLAIMS
from ..errors import MalformedData, NFTError


@dataclass(frozen=True)
class Bin:
    """bin_map의 한 칸

    - amount: bin에 남아 있는 단일 토큰 보유량
    - total_claim: bin에 대한 전체 claim 합계
    """
    amount: Decimal
    total_claim: Decimal

    @property
    def is_empty(self) -> bool:
        return self.total_claim == 0

    @classmethod
    def from_node(cls, node: FieldNode) -> "Bin":
        if not isinstance(node, Fields):
            raise MalformedData(f"Bin value must be a tuple, got {node.kind}")
        values = {child.field_name: child for child in node.fields}
        amount = values.get(FIELD_BIN_AMOUNT)
        total_claim = values.get(FIELD_BIN_TOTAL_CLAIM)
        if not isinstance(amount, Leaf) or not isinstance(total_claim, Leaf):
            raise MalformedData("Bin value is missing 'amount' or 'total_claim'")
        bin_ = cls(
            amount=parse_decimal(amount.value, "bin amount"),
            total_claim=parse_decimal(total_claim.value, "bin total_claim"),
        )
        if bin_.total_claim < 0 or bin_.amount < 0:
            raise MalformedData(f"Bin amounts must be non-negative: {bin_}")
        return bin_


def tick_from_key(node: FieldNode) -> int:
    """bin_map 키 노드 (Tick(u32) 튜플 또는 스칼라) → 틱 번호"""
    return parse_int(first_value(node), "bin tick")


@dataclass(frozen=True)
class PoolSnapshot:
    """한 state version에서의 풀 + bin_map 상태 (불변)

    - bin_map: {tick: Bin}, 키는 bin 하한 틱
    - current_tick: 활성 bin의 틱 (없으면 None)
    - active_x / active_y: 활성 bin의 토큰 보유량
    - active_total_claim: 활성 bin 전체 claim
    - bin_span: bin 폭 (틱 단위, > 0)
    """
    component_address: str
    bin_map: Mapping[int, Bin]
    current_tick: Optional[int]
    active_x: Decimal
    active_y: Decimal
    active_total_claim: Decimal
    bin_span: int
    receipt_manager_address: str
    state_version: Optional[int] = None

    def __post_init__(self):
        if self.bin_span <= 0:
            raise MalformedData(f"bin_span must be positive, got {self.bin_span}")
        if self.active_total_claim < 0:
            raise MalformedData(
                f"active_total_claim must be non-negative, got {self.active_total_claim}"
            )
        if not isinstance(self.bin_map, MappingProxyType):
            object.__setattr__(self, "bin_map", MappingProxyType(dict(self.bin_map)))

    def get_bin(self, tick: int) -> Optional[Bin]:
        return self.bin_map.get(tick)


@dataclass(frozen=True)
class Claim:
    """영수증의 틱별 claim"""
    tick: int
    claim: Decimal


@dataclass(frozen=True)
class LiquidityReceipt:
    """유동성 영수증 NFT

    liquidity_claims Map의 각 (tick, claim) 항목을 Claim으로 보관합니다.
    """
    receipt_id: str
    claims: Tuple[Claim, ...] = field(default_factory=tuple)

    @classmethod
    def from_node(cls, receipt_id: str, node: FieldNode) -> "LiquidityReceipt":
        if not isinstance(node, Fields):
            raise NFTError.malformed(receipt_id, "NFT data is not a struct")

        claims_node = None
        for child in node.fields:
            if child.field_name == FIELD_LIQUIDITY_CLAIMS:
                claims_node = child
                break
        if not isinstance(claims_node, Entries):
            raise NFTError.malformed(receipt_id, "no liquidity claims found")

        claims = []
        try:
            for key, value in claims_node.entries:
                claims.append(Claim(
                    tick=parse_int(first_value(key), "claim tick"),
                    claim=parse_decimal(first_value(value), "claim amount"),
                ))
        except MalformedData as e:
            raise NFTError.malformed(receipt_id, e.message)
        if any(c.claim < 0 for c in claims):
            raise NFTError.malformed(receipt_id, "negative claim amount")

        return cls(receipt_id=receipt_id, claims=tuple(claims))


@dataclass(frozen=True)
class RedemptionAmounts:
    """영수증 상환 시 받을 토큰 수량 (정확한 십진수 문자열)"""
    x_token: str = "0"
    y_token: str = "0"

    def to_dict(self) -> Dict[str, str]:
        return {"xToken": self.x_token, "yToken": self.y_token}
