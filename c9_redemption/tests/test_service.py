"""
Redemption Service 테스트

단일/배치 계산, 입력 검증, 배치 실패 격리, state version 오류를 테스트합니다.
"""

import asyncio

import pytest

from .. import service as service_module
from ..errors import ComponentError, DataError, GatewayError, NFTError, ValidationError
from ..schemas import RedemptionValueOutput
from ..service import RedemptionService, calculate_redemption_value, calculate_redemption_values
from .fakes import POOL, FakeLedger, not_found_error, tuple_


def make_service(ledger, **kwargs):
    kwargs.setdefault("chunk_delay", 0)
    return RedemptionService(ledger, **kwargs)


@pytest.fixture
def receipts(ledger):
    ledger.add_receipt("#1#", [(100, "10")])                       # 활성 bin → x 100, y 200
    ledger.add_receipt("#2#", [(80, "5")])                         # 아래 bin → y 50
    ledger.add_receipt("#3#", [(110, "7"), (80, "5"), (90, "3")])  # x 70, y 50 (90은 빈 bin)
    return ledger


class TestSingleRedemption:
    """calculate_redemption_value 테스트"""

    @pytest.mark.asyncio
    async def test_success(self, receipts):
        result = await make_service(receipts).calculate_redemption_value(POOL, "#1#", 900)
        assert result.to_dict() == {"xToken": "100", "yToken": "200"}

    @pytest.mark.asyncio
    async def test_receipt_read_at_same_state(self, receipts):
        await make_service(receipts).calculate_redemption_value(POOL, "#2#", 900)
        nft_calls = [args for name, args in receipts.calls if name == "get_non_fungible_data"]
        assert nft_calls[0][2] == 900

    @pytest.mark.asyncio
    async def test_module_function(self, receipts):
        result = await calculate_redemption_value(receipts, POOL, "#3#")
        assert (result.x_token, result.y_token) == ("70", "50")

    @pytest.mark.asyncio
    async def test_output_schema(self, receipts):
        result = await make_service(receipts).calculate_redemption_value(POOL, "#1#")
        output = RedemptionValueOutput.from_amounts(result)
        assert output.model_dump(by_alias=True) == {"xToken": "100", "yToken": "200"}

    @pytest.mark.asyncio
    async def test_nft_not_found(self, receipts):
        with pytest.raises(NFTError) as exc_info:
            await make_service(receipts).calculate_redemption_value(POOL, "#404#")
        assert exc_info.value.reason == NFTError.NOT_FOUND

    @pytest.mark.asyncio
    async def test_gateway_not_found_classified(self, receipts):
        receipts.nft_errors["#9#"] = not_found_error()
        with pytest.raises(NFTError):
            await make_service(receipts).calculate_redemption_value(POOL, "#9#")

    @pytest.mark.asyncio
    async def test_burned_receipt(self, receipts):
        receipts.add_receipt("#5#", [], burned=True)
        with pytest.raises(NFTError) as exc_info:
            await make_service(receipts).calculate_redemption_value(POOL, "#5#")
        assert exc_info.value.reason == NFTError.BURNED

    @pytest.mark.asyncio
    async def test_receipt_without_claims(self, receipts):
        receipts.add_raw_receipt("#6#", tuple_([], type_name="LiquidityReceipt"))
        with pytest.raises(NFTError) as exc_info:
            await make_service(receipts).calculate_redemption_value(POOL, "#6#")
        assert exc_info.value.reason == NFTError.MALFORMED

    @pytest.mark.asyncio
    async def test_empty_claims_is_zero(self, receipts):
        receipts.add_receipt("#7#", [])
        result = await make_service(receipts).calculate_redemption_value(POOL, "#7#")
        assert result.to_dict() == {"xToken": "0", "yToken": "0"}

    @pytest.mark.asyncio
    async def test_no_active_tick(self):
        ledger = FakeLedger()
        ledger.add_pool(current_tick=None)
        ledger.add_receipt("#1#", [(100, "10")])
        with pytest.raises(NFTError) as exc_info:
            await make_service(ledger).calculate_redemption_value(POOL, "#1#")
        assert exc_info.value.reason == NFTError.NO_ACTIVE_TICK
        assert ledger.count("get_non_fungible_data") == 0

    @pytest.mark.asyncio
    async def test_component_error_propagates(self, receipts):
        with pytest.raises(ComponentError):
            await make_service(receipts).calculate_redemption_value("component_rdx1missing", "#1#")


class TestValidation:
    """네트워크 호출 전 입력 검증 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address, message", [
        (123, "Component address must be a string"),
        (None, "Component address must be a string"),
        ("", "Component address"),
        ("account_rdx1abc", "Component address"),
    ])
    async def test_bad_component_address(self, receipts, address, message):
        with pytest.raises(ValidationError, match=message):
            await make_service(receipts).calculate_redemption_value(address, "#1#")
        assert receipts.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nft_id", [1, None, ""])
    async def test_bad_nft_id(self, receipts, nft_id):
        with pytest.raises(ValidationError, match="NFT ID"):
            await make_service(receipts).calculate_redemption_value(POOL, nft_id)
        assert receipts.calls == []

    @pytest.mark.asyncio
    async def test_non_string_nft_id_message(self, receipts):
        with pytest.raises(ValidationError, match="NFT ID must be a string"):
            await make_service(receipts).calculate_redemption_value(POOL, 42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nft_ids", [[], "#1#", None, ["#1#", 2], ["#1#", ""]])
    async def test_bad_nft_id_list(self, receipts, nft_ids):
        with pytest.raises(ValidationError):
            await make_service(receipts).calculate_redemption_values(POOL, nft_ids)
        assert receipts.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state_version", [0, -5, True, "900", 900.0])
    async def test_bad_state_version(self, receipts, state_version):
        with pytest.raises(ValidationError, match="State version"):
            await make_service(receipts).calculate_redemption_value(POOL, "#1#", state_version)
        assert receipts.calls == []

    @pytest.mark.asyncio
    async def test_bad_price_bounds(self, receipts):
        with pytest.raises(ValidationError, match="Price bounds"):
            await make_service(receipts).calculate_redemption_value(POOL, "#1#", price_bounds=(2.0, 1.0))

    @pytest.mark.asyncio
    async def test_price_bounds_do_not_filter(self, receipts):
        result = await make_service(receipts).calculate_redemption_value(
            POOL, "#1#", price_bounds=(0.5, 1.5)
        )
        assert result.to_dict() == {"xToken": "100", "yToken": "200"}


class TestServiceConfig:
    """명시적 페이지/청크 크기 테스트"""

    @pytest.mark.parametrize("option", ["chunk_size", "page_size"])
    def test_zero_size_rejected(self, ledger, option):
        with pytest.raises(ValueError):
            RedemptionService(ledger, **{option: 0})

    def test_explicit_sizes_kept(self, ledger):
        service = RedemptionService(ledger, page_size=7, chunk_size=3)
        assert service.chunk_size == 3
        assert service.assembler.page_size == 7
        assert service.assembler.chunk_size == 3


class TestBatchRedemption:
    """calculate_redemption_values 테스트"""

    @pytest.mark.asyncio
    async def test_success(self, receipts):
        result = await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#2#", "#3#"], 900)
        assert {k: v.to_dict() for k, v in result.items()} == {
            "#1#": {"xToken": "100", "yToken": "200"},
            "#2#": {"xToken": "0", "yToken": "50"},
            "#3#": {"xToken": "70", "yToken": "50"},
        }

    @pytest.mark.asyncio
    async def test_single_snapshot_per_batch(self, receipts):
        await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#2#", "#3#"])
        assert receipts.count("get_entity_details") == 1
        assert receipts.count("list_store_keys") == 1
        assert receipts.count("get_non_fungible_data") == 3

    @pytest.mark.asyncio
    async def test_malformed_receipt_isolated(self, receipts):
        """2번째 영수증이 형식 오류여도 나머지 2개는 계산"""
        receipts.add_raw_receipt("#bad#", tuple_([], type_name="LiquidityReceipt"))
        result = await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#bad#", "#2#"])
        assert set(result) == {"#1#", "#2#"}

    @pytest.mark.asyncio
    async def test_missing_and_transport_failures_isolated(self, receipts):
        receipts.nft_errors["#timeout#"] = GatewayError("Request timed out (30s)")
        result = await make_service(receipts).calculate_redemption_values(
            POOL, ["#1#", "#404#", "#timeout#", "#3#"]
        )
        assert set(result) == {"#1#", "#3#"}

    @pytest.mark.asyncio
    async def test_all_failed_returns_empty(self, receipts):
        result = await make_service(receipts).calculate_redemption_values(POOL, ["#404#", "#405#"])
        assert result == {}

    @pytest.mark.asyncio
    async def test_module_function(self, receipts):
        result = await calculate_redemption_values(receipts, POOL, ["#2#"])
        assert result["#2#"].y_token == "50"

    @pytest.mark.asyncio
    async def test_duplicate_ids_fetched_once(self, receipts):
        result = await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#1#"])
        assert list(result) == ["#1#"]
        assert receipts.count("get_non_fungible_data") == 1

    @pytest.mark.asyncio
    async def test_no_active_tick_returns_empty(self):
        ledger = FakeLedger()
        ledger.add_pool(current_tick=None)
        ledger.add_receipt("#1#", [(100, "10")])
        result = await make_service(ledger).calculate_redemption_values(POOL, ["#1#"])
        assert result == {}

    @pytest.mark.asyncio
    async def test_component_error_aborts(self, receipts):
        with pytest.raises(ComponentError):
            await make_service(receipts).calculate_redemption_values("component_rdx1missing", ["#1#"])

    @pytest.mark.asyncio
    async def test_chunk_delay_between_chunks(self, receipts, monkeypatch):
        for i in range(5):
            receipts.add_receipt(f"#{10 + i}#", [(80, "1")])
        sleeps = []
        real_sleep = asyncio.sleep

        async def fake_sleep(delay, *args, **kwargs):
            sleeps.append(delay)
            await real_sleep(0)

        monkeypatch.setattr(service_module.asyncio, "sleep", fake_sleep)
        service = RedemptionService(receipts, chunk_size=2, chunk_delay=1.5)
        result = await service.calculate_redemption_values(POOL, [f"#{10 + i}#" for i in range(5)])

        assert len(result) == 5
        assert sleeps == [1.5, 1.5]


class TestStateVersion:
    """state version 범위 오류 테스트"""

    @pytest.mark.asyncio
    async def test_single_future_state(self, receipts):
        with pytest.raises(DataError):
            await make_service(receipts).calculate_redemption_value(POOL, "#1#", 5_000)
        assert receipts.count("list_store_keys") == 0

    @pytest.mark.asyncio
    async def test_batch_future_state(self, receipts):
        with pytest.raises(DataError):
            await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#2#"], 5_000)
        assert receipts.count("list_store_keys") == 0
        assert receipts.count("get_non_fungible_data") == 0

    @pytest.mark.asyncio
    async def test_batch_aborts_on_receipt_state_error(self, receipts):
        receipts.nft_errors["#2#"] = GatewayError(
            "Gateway 400: at_ledger_state is before the first ledger state",
            status_code=400,
            error_type="InvalidRequestError",
            details={"type": "InvalidRequestError",
                     "validation_errors": [{"path": "at_ledger_state", "errors": ["too early"]}]},
        )
        with pytest.raises(DataError):
            await make_service(receipts).calculate_redemption_values(POOL, ["#1#", "#2#"], 900)
