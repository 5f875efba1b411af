"""
Radix Gateway API 클라이언트

Babylon Gateway에서 풀 컴포넌트, key-value store, NFT 데이터를 조회하는
LedgerQuery 구현체. 응답의 programmatic_json은 여기서 FieldNode로 디코딩됩니다.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .ledger import EntityDetails, KeyPage, NonFungibleItem, StoreEntry, StoreKey
from .sbor import decode_node
from ..config import Settings, settings as default_settings
from ..errors import GatewayError, MalformedData
from ..log import get_logger

logger = get_logger(__name__)


def ledger_state_selector(state_version: Optional[int]) -> Optional[Dict[str, int]]:
    """at_ledger_state 선택자 (None이면 최신 상태)"""
    if state_version is None:
        return None
    return {"state_version": state_version}


class GatewayClient:
    """Radix Gateway API 클라이언트

    사용법:
        async with GatewayClient(network="mainnet") as client:
            version = await client.get_current_state_version()
            details = await client.get_entity_details("component_rdx1...")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        network: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Gateway URL. None이면 설정/네트워크 기본값
            network: 네트워크 이름 (mainnet, stokenet)
            timeout: 요청 타임아웃 (초)
            max_retries: 전송 오류 / 5xx 최대 시도 횟수
            retry_delay: 재시도 간격 기준값 (초)
            settings: 설정 객체. None이면 전역 settings
            transport: httpx 전송 계층 (테스트용 MockTransport 등)
        """
        self.settings = settings or default_settings
        self.base_url = (base_url or self.settings.gateway_url(network)).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.GATEWAY_TIMEOUT
        self.max_retries = max(1, max_retries if max_retries is not None
                               else self.settings.GATEWAY_MAX_RETRIES)
        self.retry_delay = (retry_delay if retry_delay is not None
                            else self.settings.GATEWAY_RETRY_DELAY)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Content-Type": "application/json",
                "RDX-App-Name": self.settings.APPLICATION_NAME,
            },
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Gateway POST 요청 실행

        타임아웃, 연결 오류, 5xx 응답은 재시도하고 4xx 응답은 즉시 GatewayError로
        보고합니다.

        Raises:
            GatewayError: 요청 실패 시
            MalformedData: 응답이 JSON 객체가 아닐 때
        """
        body = {k: v for k, v in payload.items() if v is not None}

        last_error: Optional[GatewayError] = None
        for attempt in range(self.max_retries):
            try:
                response = await self._client.post(path, json=body)
            except httpx.TimeoutException:
                last_error = GatewayError(f"Request timed out ({self.timeout}s): {path}")
            except httpx.TransportError as e:
                last_error = GatewayError(f"Network error on {path}: {e}")
            else:
                if response.status_code >= 500:
                    last_error = self._error_from_response(path, response)
                elif response.status_code >= 400:
                    raise self._error_from_response(path, response)
                else:
                    try:
                        data = response.json()
                    except ValueError:
                        raise MalformedData(f"Response from {path} is not JSON")
                    if not isinstance(data, dict):
                        raise MalformedData(f"Response from {path} is not a JSON object")
                    return data

            if attempt < self.max_retries - 1:
                logger.warning("%s (attempt %d/%d), retrying",
                               last_error, attempt + 1, self.max_retries)
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        raise last_error

    @staticmethod
    def _error_from_response(path: str, response: httpx.Response) -> GatewayError:
        """Gateway ErrorResponse → GatewayError"""
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        details = data.get("details") if isinstance(data.get("details"), dict) else {}
        message = data.get("message") or response.reason_phrase or "Gateway error"
        return GatewayError(
            f"Gateway {response.status_code} on {path}: {message}",
            status_code=response.status_code,
            error_type=details.get("type"),
            details=details,
        )

    async def get_current_state_version(self) -> int:
        """Gateway가 동기화한 최신 state version"""
        data = await self._post("/status/gateway-status", {})
        try:
            return int(data["ledger_state"]["state_version"])
        except (KeyError, TypeError, ValueError):
            raise MalformedData("gateway-status response has no ledger_state.state_version")

    async def get_entity_details(
        self, address: str, state_version: Optional[int] = None
    ) -> Optional[EntityDetails]:
        """엔티티 상세 조회

        Returns:
            EntityDetails 또는 None (해당 state에 엔티티가 없을 때)
        """
        data = await self._post("/state/entity/details", {
            "addresses": [address],
            "aggregation_level": "Vault",
            "at_ledger_state": ledger_state_selector(state_version),
        })
        items = data.get("items") or []
        if not items or not isinstance(items[0], dict):
            return None
        details = items[0].get("details")
        if not isinstance(details, dict):
            return None

        state = details.get("state")
        return EntityDetails(
            address=items[0].get("address", address),
            entity_type=details.get("type"),
            state=decode_node(state) if state is not None else None,
            blueprint_name=details.get("blueprint_name"),
        )

    async def list_store_keys(
        self,
        store_address: str,
        state_version: Optional[int] = None,
        cursor: Optional[str] = None,
        page_size: int = 100,
    ) -> KeyPage:
        """key-value store 키 목록 한 페이지 조회"""
        data = await self._post("/state/key-value-store/keys", {
            "key_value_store_address": store_address,
            "at_ledger_state": ledger_state_selector(state_version),
            "cursor": cursor,
            "limit_per_page": page_size,
        })
        items = []
        for item in data.get("items") or []:
            key = item.get("key") if isinstance(item, dict) else None
            if not isinstance(key, dict) or not key.get("raw_hex"):
                raise MalformedData("key-value store key item has no raw_hex")
            programmatic = key.get("programmatic_json")
            items.append(StoreKey(
                raw_hex=key["raw_hex"],
                key=decode_node(programmatic) if programmatic is not None else None,
            ))
        return KeyPage(items=items, next_cursor=data.get("next_cursor") or None)

    async def get_store_values(
        self,
        store_address: str,
        keys: Sequence[StoreKey],
        state_version: Optional[int] = None,
    ) -> List[StoreEntry]:
        """key-value store 값 조회 (한 요청)"""
        data = await self._post("/state/key-value-store/data", {
            "key_value_store_address": store_address,
            "keys": [{"key_hex": k.raw_hex} for k in keys],
            "at_ledger_state": ledger_state_selector(state_version),
        })
        entries = []
        for entry in data.get("entries") or []:
            try:
                key_json = entry["key"]["programmatic_json"]
                value_json = entry["value"]["programmatic_json"]
            except (KeyError, TypeError):
                raise MalformedData("key-value store entry has no programmatic_json")
            entries.append(StoreEntry(key=decode_node(key_json), value=decode_node(value_json)))
        return entries

    async def get_non_fungible_data(
        self,
        resource_address: str,
        ids: Sequence[str],
        state_version: Optional[int] = None,
    ) -> List[NonFungibleItem]:
        """NFT 데이터 조회 (응답에 없는 ID는 결과에서 빠짐)"""
        data = await self._post("/state/non-fungible/data", {
            "resource_address": resource_address,
            "non_fungible_ids": list(ids),
            "at_ledger_state": ledger_state_selector(state_version),
        })
        results = []
        for item in data.get("non_fungible_ids") or []:
            if not isinstance(item, dict) or "non_fungible_id" not in item:
                raise MalformedData("non-fungible data item has no non_fungible_id")
            nft_data = item.get("data")
            programmatic = nft_data.get("programmatic_json") if isinstance(nft_data, dict) else None
            results.append(NonFungibleItem(
                non_fungible_id=item["non_fungible_id"],
                data=decode_node(programmatic) if programmatic is not None else None,
                is_burned=bool(item.get("is_burned", False)),
            ))
        return results
