"""
Redemption Service - 단일/배치 상환 수량 계산

    1. 입력 검증 (네트워크 호출 전)
    2. 배치 전체에서 공유할 풀 스냅샷 1회 조립
    3. 영수증 NFT를 청크 단위로 조회 (청크 안에서는 동시, 청크 사이에는 대기)
    4. 영수증별 계산, 실패한 영수증은 로그를 남기고 결과에서 제외
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Settings, settings as default_settings
from .data.ledger import LedgerQuery
from .data.snapshot import SnapshotAssembler, chunked
from .data.types import LiquidityReceipt, PoolSnapshot, RedemptionAmounts
from .errors import DataError, GatewayError, MalformedData, NFTError, classify_gateway_error
from .log import get_logger
from .math.redemption_math import calculate_redemption
from .schemas import RedemptionValueInput, RedemptionValuesInput, parse_input

logger = get_logger(__name__)

# 배치에서 영수증 하나만 실패시키는 오류
RECEIPT_ERRORS = (NFTError, MalformedData, GatewayError)


class RedemptionService:
    """유동성 영수증 상환 수량 계산 서비스

    사용법:
        async with GatewayClient() as client:
            service = RedemptionService(client)
            amounts = await service.calculate_redemption_value("component_rdx1...", "#1#", 123)
            batch = await service.calculate_redemption_values("component_rdx1...", ["#1#", "#2#"])
    """

    def __init__(
        self,
        ledger: LedgerQuery,
        settings: Optional[Settings] = None,
        page_size: Optional[int] = None,
        chunk_size: Optional[int] = None,
        chunk_delay: Optional[float] = None,
    ):
        """
        Args:
            ledger: 원장 조회 협력자
            settings: 설정 객체. None이면 전역 settings
            page_size: 키 목록 페이지 크기
            chunk_size: 요청당 키 / NFT 개수
            chunk_delay: NFT 청크 사이 대기 (초)
        """
        self.ledger = ledger
        self.settings = settings or default_settings
        self.chunk_size = self.settings.CHUNK_SIZE if chunk_size is None else chunk_size
        self.chunk_delay = self.settings.CHUNK_DELAY if chunk_delay is None else chunk_delay
        self.assembler = SnapshotAssembler(
            ledger,
            page_size=self.settings.PAGE_SIZE if page_size is None else page_size,
            chunk_size=self.chunk_size,
        )

    async def fetch_receipt(self, snapshot: PoolSnapshot, nft_id: str) -> LiquidityReceipt:
        """스냅샷과 같은 state version에서 영수증 NFT 조회

        Raises:
            NFTError: NFT 없음 / 소각됨 / 형식 오류
            DataError: state version 범위 오류
        """
        try:
            items = await self.ledger.get_non_fungible_data(
                snapshot.receipt_manager_address, [nft_id], snapshot.state_version
            )
        except GatewayError as e:
            raise classify_gateway_error(e, "nft", nft_id, snapshot.state_version)

        item = next((i for i in items if i.non_fungible_id == nft_id), None)
        if item is None and len(items) == 1:
            # Gateway가 ID 표기를 정규화해서 돌려줄 수 있음
            item = items[0]
        if item is None:
            raise NFTError.not_found(nft_id)
        if item.is_burned:
            raise NFTError.burned(nft_id)
        if item.data is None:
            raise NFTError.not_found(nft_id)
        return LiquidityReceipt.from_node(nft_id, item.data)

    async def redeem(self, snapshot: PoolSnapshot, nft_id: str) -> RedemptionAmounts:
        """영수증 하나의 상환 수량"""
        receipt = await self.fetch_receipt(snapshot, nft_id)
        return calculate_redemption(snapshot, receipt.claims)

    async def calculate_redemption_value(
        self,
        component_address: str,
        nft_id: str,
        state_version: Optional[int] = None,
        price_bounds: Optional[Tuple[float, float]] = None,
    ) -> RedemptionAmounts:
        """단일 영수증 상환 수량 계산

        Args:
            component_address: C9 풀 컴포넌트 주소
            nft_id: 유동성 영수증 NFT ID
            state_version: 조회할 state version (None이면 최신)
            price_bounds: (하한, 상한) 가격. 검증만 하고 계산에는 쓰지 않음

        Returns:
            RedemptionAmounts

        Raises:
            ValidationError, ComponentError, DataError, NFTError, MalformedData
        """
        request = parse_input(
            RedemptionValueInput,
            component_address=component_address,
            nft_id=nft_id,
            state_version=state_version,
            price_bounds=price_bounds,
        )
        snapshot = await self.assembler.assemble(request.component_address, request.state_version)
        if snapshot.current_tick is None:
            raise NFTError.no_active_tick()
        return await self.redeem(snapshot, request.nft_id)

    async def calculate_redemption_values(
        self,
        component_address: str,
        nft_ids: Sequence[str],
        state_version: Optional[int] = None,
        price_bounds: Optional[Tuple[float, float]] = None,
    ) -> Dict[str, RedemptionAmounts]:
        """여러 영수증 상환 수량 계산

        영수증 하나의 실패(NFT 없음, 형식 오류, 전송 오류)는 배치를 중단시키지
        않고 해당 영수증만 결과에서 빠집니다. 모두 실패하면 빈 dict를 반환합니다.

        Returns:
            {nft_id: RedemptionAmounts}

        Raises:
            ValidationError, ComponentError, DataError
        """
        request = parse_input(
            RedemptionValuesInput,
            component_address=component_address,
            nft_ids=nft_ids,
            state_version=state_version,
            price_bounds=price_bounds,
        )
        snapshot = await self.assembler.assemble(request.component_address, request.state_version)
        if snapshot.current_tick is None:
            logger.warning("Pool %s has no active tick; no receipt can be redeemed",
                           request.component_address)
            return {}

        results: Dict[str, RedemptionAmounts] = {}
        chunks: List[List[str]] = list(chunked(request.nft_ids, self.chunk_size))
        for index, chunk in enumerate(chunks):
            outcomes = await asyncio.gather(
                *(self.redeem(snapshot, nft_id) for nft_id in chunk),
                return_exceptions=True,
            )
            for nft_id, outcome in zip(chunk, outcomes):
                if isinstance(outcome, DataError):
                    raise outcome
                if isinstance(outcome, RECEIPT_ERRORS):
                    logger.warning("Failed to get redemption value for NFT %s: %s", nft_id, outcome)
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                results[nft_id] = outcome

            if index < len(chunks) - 1:
                await asyncio.sleep(self.chunk_delay)

        logger.info("Calculated %d/%d redemption values for %s",
                    len(results), len(request.nft_ids), request.component_address)
        return results


async def calculate_redemption_value(
    ledger: LedgerQuery,
    component_address: str,
    nft_id: str,
    state_version: Optional[int] = None,
    price_bounds: Optional[Tuple[float, float]] = None,
) -> RedemptionAmounts:
    """RedemptionService(ledger).calculate_redemption_value 단축 함수"""
    return await RedemptionService(ledger).calculate_redemption_value(
        component_address, nft_id, state_version, price_bounds
    )


async def calculate_redemption_values(
    ledger: LedgerQuery,
    component_address: str,
    nft_ids: Sequence[str],
    state_version: Optional[int] = None,
    price_bounds: Optional[Tuple[float, float]] = None,
) -> Dict[str, RedemptionAmounts]:
    """RedemptionService(ledger).calculate_redemption_values 단축 함수"""
    return await RedemptionService(ledger).calculate_redemption_values(
        component_address, nft_ids, state_version, price_bounds
    )
