"""
Request/Response Schemas using Pydantic

Defines the caller-facing input/output models for redemption calculations.
Inputs are validated locally, before any Gateway request is made.
"""
from typing import Annotated, Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import AfterValidator, BaseModel, Field, StrictInt, StrictStr, model_validator
from pydantic import ValidationError as PydanticValidationError

from .constants import COMPONENT_ADDRESS_PREFIXES
from .data.types import RedemptionAmounts
from .errors import ValidationError

FIELD_LABELS = {
    "component_address": "Component address",
    "nft_id": "NFT ID",
    "nft_ids": "NFT IDs",
    "state_version": "State version",
    "price_bounds": "Price bounds",
}


def _check_component_address(value: str) -> str:
    if not value.startswith(COMPONENT_ADDRESS_PREFIXES):
        raise ValueError("not a component address")
    return value


def _check_price_bounds(value: Tuple[float, float]) -> Tuple[float, float]:
    if not (0 <= value[0] < value[1]):
        raise ValueError("lower bound must be non-negative and below upper bound")
    return value


ComponentAddress = Annotated[StrictStr, Field(min_length=1), AfterValidator(_check_component_address)]
NftId = Annotated[StrictStr, Field(min_length=1)]
PriceBounds = Annotated[Tuple[float, float], AfterValidator(_check_price_bounds)]


class RedemptionValueInput(BaseModel):
    """Input parameters for calculating redemption value of a single NFT"""
    component_address: ComponentAddress = Field(..., description="C9 pool component address")
    nft_id: NftId = Field(..., description="Liquidity receipt NFT local ID")
    state_version: Optional[StrictInt] = Field(default=None, description="Ledger state version (latest if omitted)", ge=1)
    price_bounds: Optional[PriceBounds] = Field(
        default=None, description="[lowerPrice, upperPrice]; carried, not applied"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "component_address": "component_rdx1cpd5ak9ckte9pmvfjx6fxdwr4k0wy4ezuhmqzysmqsf0hq8eh0uqfc",
                "nft_id": "#1#",
                "state_version": 250000000,
            }
        }


class RedemptionValuesInput(BaseModel):
    """Input parameters for calculating redemption values of multiple NFTs"""
    component_address: ComponentAddress = Field(..., description="C9 pool component address")
    nft_ids: List[NftId] = Field(..., description="Liquidity receipt NFT local IDs", min_length=1)
    state_version: Optional[StrictInt] = Field(default=None, description="Ledger state version (latest if omitted)", ge=1)
    price_bounds: Optional[PriceBounds] = Field(
        default=None, description="[lowerPrice, upperPrice]; carried, not applied"
    )

    @model_validator(mode="after")
    def _dedupe_ids(self):
        self.nft_ids = list(dict.fromkeys(self.nft_ids))
        return self


class RedemptionValueOutput(BaseModel):
    """Output structure for redemption value calculation"""
    x_token: str = Field(..., alias="xToken", description="Token X amount (exact decimal string)")
    y_token: str = Field(..., alias="yToken", description="Token Y amount (exact decimal string)")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"xToken": "100", "yToken": "200"}
        }

    @classmethod
    def from_amounts(cls, amounts: RedemptionAmounts) -> "RedemptionValueOutput":
        return cls(xToken=amounts.x_token, yToken=amounts.y_token)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _describe(error: Dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    field = loc[0] if loc else None
    label = FIELD_LABELS.get(field, str(field))
    if field == "nft_ids" and len(loc) > 1:
        label = "NFT ID"
    if error.get("type") == "string_type":
        return f"{label} must be a string"
    if error.get("type") == "missing":
        return f"{label} is required"
    return f"{label} is invalid: {error.get('msg')}"


def parse_input(model: Type[ModelT], **values: Any) -> ModelT:
    """Validate caller input, re-raising pydantic failures as ValidationError"""
    try:
        return model(**values)
    except PydanticValidationError as e:
        messages = [_describe(err) for err in e.errors()]
        raise ValidationError("; ".join(messages)) from e
