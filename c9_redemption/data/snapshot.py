"""
Snapshot Assembler - 풀 스냅샷 조립

C9 풀 컴포넌트 상태와 bin_map key-value store 전체를 한 state version에서
읽어 불변 PoolSnapshot으로 조립합니다.

    1. state version 범위 확인 (state 고정 조회 전에)
    2. 컴포넌트 상세 조회 및 필드 추출
    3. bin_map 키 목록 페이지네이션 (순차)
    4. 키 청크 단위 값 조회 (청크 간 동시 실행)
    5. (키, 값) → {tick: Bin} 변환
"""

import asyncio
from typing import Dict, Iterator, List, Optional, Sequence, TypeVar

from .ledger import LedgerQuery, StoreEntry, StoreKey
from .sbor import Fields, FieldNode, field_value, find_field, first_value, parse_decimal, parse_int, variant_payload
from .types import Bin, PoolSnapshot, tick_from_key
from ..constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PAGE_SIZE,
    FIELD_ACTIVE_TOTAL_CLAIM,
    FIELD_ACTIVE_X,
    FIELD_ACTIVE_Y,
    FIELD_BIN_MAP,
    FIELD_BIN_SPAN,
    FIELD_CURRENT_TICK,
    FIELD_RECEIPT_MANAGER,
    FIELD_TICK_INDEX,
)
from ..errors import ComponentError, DataError, GatewayError, MalformedData, classify_gateway_error
from ..log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

COMPONENT_ENTITY_TYPE = "Component"


def chunked(items: Sequence[T], chunk_size: int) -> Iterator[List[T]]:
    """items를 chunk_size 크기 리스트로 분할"""
    if chunk_size <= 0:
        raise ValueError("Chunk size must be greater than 0.")
    for i in range(0, len(items), chunk_size):
        yield list(items[i:i + chunk_size])


class SnapshotAssembler:
    """C9 풀 스냅샷 조립기

    사용법:
        assembler = SnapshotAssembler(client)
        snapshot = await assembler.assemble("component_rdx1...", state_version=123)
    """

    def __init__(
        self,
        ledger: LedgerQuery,
        page_size: int = DEFAULT_PAGE_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Args:
            ledger: 원장 조회 협력자
            page_size: 키 목록 페이지 크기
            chunk_size: 값 조회 요청당 키 개수
        """
        if page_size <= 0 or chunk_size <= 0:
            raise ValueError("page_size and chunk_size must be positive")
        self.ledger = ledger
        self.page_size = page_size
        self.chunk_size = chunk_size

    async def check_state_version(self, state_version: Optional[int]) -> None:
        """요청 state version이 원장의 현재 state를 넘지 않는지 확인

        Raises:
            DataError: state_version > 현재 state version
        """
        if state_version is None:
            return
        current = await self.ledger.get_current_state_version()
        if state_version > current:
            raise DataError.state_version_too_high(state_version, current)

    async def assemble(
        self,
        component_address: str,
        state_version: Optional[int] = None,
    ) -> PoolSnapshot:
        """풀 스냅샷 조립

        Args:
            component_address: C9 풀 컴포넌트 주소
            state_version: 조회할 state version (None이면 최신)

        Returns:
            PoolSnapshot

        Raises:
            DataError: state version 범위 오류
            ComponentError: 컴포넌트 없음 / 타입 불일치 / 필드 누락
            MalformedData: 필드나 bin 값 해석 실패
        """
        await self.check_state_version(state_version)

        try:
            details = await self.ledger.get_entity_details(component_address, state_version)
        except GatewayError as e:
            raise classify_gateway_error(e, "component", component_address, state_version)
        if details is None:
            raise ComponentError.not_found(component_address)
        if details.entity_type != COMPONENT_ENTITY_TYPE or not isinstance(details.state, Fields):
            raise ComponentError.wrong_type(component_address, details.entity_type)

        state = details.state
        bin_map_address = self._required(state, FIELD_BIN_MAP, component_address)
        receipt_manager = self._required(state, FIELD_RECEIPT_MANAGER, component_address)
        active_x = self._required(state, FIELD_ACTIVE_X, component_address)
        active_y = self._required(state, FIELD_ACTIVE_Y, component_address)
        active_total_claim = self._required(state, FIELD_ACTIVE_TOTAL_CLAIM, component_address)
        bin_span = parse_int(self._required(state, FIELD_BIN_SPAN, component_address), "bin_span")

        try:
            keys = await self.list_all_keys(bin_map_address, state_version)
            entries = await self.fetch_values(bin_map_address, keys, state_version)
        except GatewayError as e:
            raise classify_gateway_error(e, "component", component_address, state_version)

        snapshot = PoolSnapshot(
            component_address=component_address,
            bin_map=self.decode_bin_map(entries),
            current_tick=self.current_tick(state),
            active_x=parse_decimal(active_x, FIELD_ACTIVE_X),
            active_y=parse_decimal(active_y, FIELD_ACTIVE_Y),
            active_total_claim=parse_decimal(active_total_claim, FIELD_ACTIVE_TOTAL_CLAIM),
            bin_span=bin_span,
            receipt_manager_address=receipt_manager,
            state_version=state_version,
        )
        logger.info(
            "Assembled snapshot for %s at %s: %d bins, current tick %s",
            component_address, state_version or "latest",
            len(snapshot.bin_map), snapshot.current_tick,
        )
        return snapshot

    @staticmethod
    def _required(state: FieldNode, name: str, component_address: str) -> str:
        value = field_value(state, name)
        if not value:
            raise ComponentError.missing_field(component_address, name)
        return value

    @staticmethod
    def current_tick(state: FieldNode) -> Optional[int]:
        """tick_index.current (Option<Tick>) → 현재 틱, 없으면 None"""
        current = find_field(find_field(state, FIELD_TICK_INDEX), FIELD_CURRENT_TICK)
        if current is None:
            return None
        if isinstance(current, Fields) and current.kind == "Enum":
            current = variant_payload(current, "Some")
            if current is None:
                return None
        return parse_int(first_value(current), "current tick")

    async def list_all_keys(
        self,
        store_address: str,
        state_version: Optional[int] = None,
    ) -> List[StoreKey]:
        """key-value store 전체 키 목록 (커서 페이지네이션)

        각 페이지의 커서가 이전 응답에 의존하므로 순차 실행합니다.
        """
        logger.debug("Fetching all keys for KVS %s at %s", store_address, state_version or "latest")

        all_keys: List[StoreKey] = []
        cursor: Optional[str] = None
        while True:
            page = await self.ledger.list_store_keys(
                store_address,
                state_version=state_version,
                cursor=cursor,
                page_size=self.page_size,
            )
            all_keys.extend(page.items)
            if not page.next_cursor:
                break
            cursor = page.next_cursor

        logger.debug("Found %d keys for KVS %s", len(all_keys), store_address)
        return all_keys

    async def fetch_values(
        self,
        store_address: str,
        keys: Sequence[StoreKey],
        state_version: Optional[int] = None,
    ) -> List[StoreEntry]:
        """키 청크 단위 값 조회

        청크 요청은 동시에 실행되고 모두 끝난 뒤 한 번에 합쳐집니다.
        하나라도 실패하면 남은 청크 요청을 취소하고 전체가 실패합니다.
        """
        tasks = [
            asyncio.ensure_future(self.ledger.get_store_values(store_address, chunk, state_version))
            for chunk in chunked(keys, self.chunk_size)
        ]
        try:
            chunk_results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [entry for entries in chunk_results for entry in entries]

    @staticmethod
    def decode_bin_map(entries: Sequence[StoreEntry]) -> Dict[int, Bin]:
        """(키, 값) 항목 → {tick: Bin}

        Raises:
            MalformedData: 키나 값 하나라도 해석할 수 없을 때
        """
        bin_map: Dict[int, Bin] = {}
        for entry in entries:
            try:
                bin_map[tick_from_key(entry.key)] = Bin.from_node(entry.value)
            except MalformedData as e:
                raise MalformedData(f"Unreadable bin_map entry: {e.message}")
        return bin_map
