"""
원장 조회 협력자 인터페이스

SnapshotAssembler / RedemptionService가 의존하는 추상 인터페이스와
응답 타입. 구현체는 GatewayClient (HTTP) 이며, 테스트에서는 인메모리
구현을 주입합니다. 모든 값 트리는 이미 FieldNode로 디코딩된 상태입니다.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .sbor import FieldNode


@dataclass(frozen=True)
class EntityDetails:
    """엔티티 상세 정보

    - entity_type: Gateway details.type ("Component", "FungibleResource" ...)
    - state: 컴포넌트 상태 트리 (컴포넌트가 아니면 None)
    """
    address: str
    entity_type: Optional[str]
    state: Optional[FieldNode] = None
    blueprint_name: Optional[str] = None


@dataclass(frozen=True)
class StoreKey:
    """key-value store 키 (raw_hex는 값 조회 요청에 그대로 사용)"""
    raw_hex: str
    key: Optional[FieldNode] = None


@dataclass(frozen=True)
class KeyPage:
    """키 목록 한 페이지"""
    items: List[StoreKey] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class StoreEntry:
    """key-value store 항목"""
    key: FieldNode
    value: FieldNode


@dataclass(frozen=True)
class NonFungibleItem:
    """NFT 데이터 (소각된 NFT는 data가 None)"""
    non_fungible_id: str
    data: Optional[FieldNode]
    is_burned: bool = False


class LedgerQuery(Protocol):
    """원장 조회 협력자"""

    async def get_current_state_version(self) -> int:
        ...

    async def get_entity_details(
        self, address: str, state_version: Optional[int] = None
    ) -> Optional[EntityDetails]:
        ...

    async def list_store_keys(
        self,
        store_address: str,
        state_version: Optional[int] = None,
        cursor: Optional[str] = None,
        page_size: int = 100,
    ) -> KeyPage:
        ...

    async def get_store_values(
        self,
        store_address: str,
        keys: Sequence[StoreKey],
        state_version: Optional[int] = None,
    ) -> List[StoreEntry]:
        ...

    async def get_non_fungible_data(
        self,
        resource_address: str,
        ids: Sequence[str],
        state_version: Optional[int] = None,
    ) -> List[NonFungibleItem]:
        ...
