"""
Field Tree - Gateway programmatic JSON 접근자

Gateway가 반환하는 ``programmatic_json`` (Scrypto SBOR 값)을 세 가지 노드로
디코딩하고, 이름 기반 조회를 제공합니다.

    Leaf     : 스칼라 값 (Decimal, U32, Reference, Own, String ...)
    Fields   : Tuple / Enum / Array (자식 노드 목록)
    Entries  : Map (키/값 노드 쌍 목록)

조회 함수(find_field, field_value, variant_payload, first_value)는 값이 없으면
None을 반환하며 예외를 던지지 않습니다. 형식 위반은 디코딩 단계와
parse_int / parse_decimal에서 MalformedData로 보고됩니다.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple, Union

from ..errors import MalformedData

FIELDS_KINDS = ("Tuple", "Enum", "Array")
ENTRIES_KINDS = ("Map",)


@dataclass(frozen=True)
class Leaf:
    """스칼라 노드"""
    kind: str
    value: str
    field_name: Optional[str] = None


@dataclass(frozen=True)
class Fields:
    """Tuple / Enum / Array 노드"""
    kind: str
    fields: Tuple["FieldNode", ...]
    field_name: Optional[str] = None
    type_name: Optional[str] = None
    variant_name: Optional[str] = None
    variant_id: Optional[str] = None


@dataclass(frozen=True)
class Entries:
    """Map 노드"""
    kind: str
    entries: Tuple[Tuple["FieldNode", "FieldNode"], ...]
    field_name: Optional[str] = None


FieldNode = Union[Leaf, Fields, Entries]


def decode_node(raw: Any) -> FieldNode:
    """programmatic_json → FieldNode

    Args:
        raw: Gateway 응답의 programmatic_json (dict)

    Returns:
        디코딩된 FieldNode

    Raises:
        MalformedData: kind가 없거나 자식 구조가 kind와 맞지 않을 때
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("kind"), str):
        raise MalformedData(f"Expected a programmatic JSON value, got {type(raw).__name__}")

    kind = raw["kind"]
    field_name = raw.get("field_name")

    if kind in FIELDS_KINDS:
        children = raw.get("elements") if kind == "Array" else raw.get("fields")
        if children is None:
            children = []
        if not isinstance(children, list):
            raise MalformedData(f"{kind} children must be a list")
        variant_id = raw.get("variant_id")
        return Fields(
            kind=kind,
            fields=tuple(decode_node(child) for child in children),
            field_name=field_name,
            type_name=raw.get("type_name"),
            variant_name=raw.get("variant_name"),
            variant_id=str(variant_id) if variant_id is not None else None,
        )

    if kind in ENTRIES_KINDS:
        entries = raw.get("entries") or []
        if not isinstance(entries, list):
            raise MalformedData("Map entries must be a list")
        pairs = []
        for entry in entries:
            if not isinstance(entry, dict) or "key" not in entry or "value" not in entry:
                raise MalformedData("Map entry must have 'key' and 'value'")
            pairs.append((decode_node(entry["key"]), decode_node(entry["value"])))
        return Entries(kind=kind, entries=tuple(pairs), field_name=field_name)

    # Bytes 값은 hex 필드로 전달됨
    value = raw.get("value", raw.get("hex"))
    if value is None:
        raise MalformedData(f"{kind} value is missing")
    if isinstance(value, bool):
        value = "true" if value else "false"
    return Leaf(kind=kind, value=str(value), field_name=field_name)


def find_field(node: Optional[FieldNode], name: str) -> Optional[FieldNode]:
    """이름이 name인 직계 자식 필드 조회"""
    if not isinstance(node, Fields):
        return None
    for child in node.fields:
        if child.field_name == name:
            return child
    return None


def field_value(node: Optional[FieldNode], name: str) -> Optional[str]:
    """이름이 name인 스칼라 필드의 값"""
    child = find_field(node, name)
    if isinstance(child, Leaf):
        return child.value
    return None


def variant_payload(node: Optional[FieldNode], variant_name: str) -> Optional[FieldNode]:
    """Enum 노드가 variant_name일 때 첫 번째 payload 반환

    Option<T> 의 경우 variant_payload(node, "Some") 으로 T를 꺼냅니다.
    Gateway가 variant_name을 생략하면 variant_id ("1" = Some) 로 판단합니다.
    """
    if not isinstance(node, Fields) or node.kind != "Enum":
        return None
    if node.variant_name is not None:
        matches = node.variant_name == variant_name
    else:
        matches = variant_name == "Some" and node.variant_id == "1"
    if not matches or not node.fields:
        return None
    return node.fields[0]


def first_value(node: Optional[FieldNode]) -> Optional[str]:
    """첫 번째 자식을 따라 내려가 처음 만나는 스칼라 값

    Tick(u32) 처럼 한 겹 감싼 스칼라를 꺼낼 때 사용.
    """
    while isinstance(node, Fields):
        if not node.fields:
            return None
        node = node.fields[0]
    if isinstance(node, Leaf):
        return node.value
    return None


def parse_int(value: Optional[str], what: str) -> int:
    """정수 문자열 파싱

    Raises:
        MalformedData: 정수가 아닐 때
    """
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise MalformedData(f"{what} is not a valid integer: {value!r}")


def parse_decimal(value: Optional[str], what: str) -> Decimal:
    """십진수 문자열 파싱 (유한값만 허용)

    Raises:
        MalformedData: 유한한 십진수가 아닐 때
    """
    if value is None:
        raise MalformedData(f"{what} is missing")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise MalformedData(f"{what} is not a valid decimal: {value!r}")
    if not result.is_finite():
        raise MalformedData(f"{what} is not a finite decimal: {value!r}")
    return result
