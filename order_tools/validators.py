"""
데이터 검증 모듈
================

도구 입력 데이터의 유효성을 검증합니다.
- 수동 PO 입력 검증
- 출하 계획 수량 검증 (East + West = Total)
- BOL 라인 검증
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, NamedTuple

from order_tools.utils import is_blank, parse_float, parse_int

logger = logging.getLogger(__name__)


class ValidationResult(NamedTuple):
    """검증 결과"""
    warnings: list[str]
    errors: list[str]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def is_valid(self) -> bool:
        return not self.has_errors


def validate_required(data: Mapping[str, Any], fields: tuple[str, ...]) -> list[str]:
    """필수 필드 검증

    Returns:
        오류 메시지 목록
    """
    errors = []
    for field in fields:
        if is_blank(data.get(field)):
            errors.append(f"필수 필드 누락: {field}")
            logger.error(f"필수 필드 누락: {field}")
    return errors


def validate_line_items(items: list[Mapping[str, Any]], model_key: str = 'model') -> list[str]:
    """라인 아이템 검증 (모델명, 수량 > 0, 단가 >= 0)"""
    if not items:
        return ["라인 아이템이 없습니다."]

    errors = []
    for idx, item in enumerate(items, start=1):
        if is_blank(item.get(model_key)):
            errors.append(f"[아이템 {idx}] 모델이 입력되지 않았습니다.")
        qty = parse_int(item.get('quantity'), default=-1)
        if qty <= 0:
            errors.append(f"[아이템 {idx}] 수량이 올바르지 않습니다: {item.get('quantity')}")
        price = parse_float(item.get('unit_price'), default=-1.0)
        if price < 0:
            errors.append(f"[아이템 {idx}] 단가가 올바르지 않습니다: {item.get('unit_price')}")
    for err in errors:
        logger.error(err)
    return errors


def validate_manual_po(po_data: Mapping[str, Any]) -> ValidationResult:
    """수동 PO 입력 검증"""
    errors = validate_required(po_data, ('buyer_name', 'po_number', 'created_date'))
    errors.extend(validate_line_items(po_data.get('line_items') or []))

    warnings = []
    ship_to = po_data.get('ship_to') or {}
    if is_blank(ship_to.get('address')):
        warnings.append("배송지 주소(Ship to)가 입력되지 않았습니다.")
        logger.warning("배송지 주소가 입력되지 않았습니다.")

    return ValidationResult(warnings=warnings, errors=errors)


def validate_planning_quantities(qty_east: Any, qty_west: Any, total_qty: Any) -> list[str]:
    """East + West 수량이 총 수량과 같은지 검증"""
    east = parse_int(qty_east)
    west = parse_int(qty_west)
    total = parse_int(total_qty)

    errors = []
    if east < 0 or west < 0:
        errors.append(f"수량은 음수일 수 없습니다: East {east}, West {west}")
    if east + west != total:
        errors.append(
            f"수량 불일치: East({east}) + West({west}) = {east + west}, 총 수량은 {total}입니다."
        )
    for err in errors:
        logger.error(err)
    return errors


def validate_bol_lines(lines: list[Mapping[str, Any]]) -> ValidationResult:
    """BOL 라인 검증

    BOL # 또는 수량이 없는 라인은 저장 시 제외되므로 경고만 남깁니다.
    """
    warnings = []
    errors = []
    for idx, line in enumerate(lines, start=1):
        if is_blank(line.get('bol_number')) or parse_int(line.get('shipped_qty')) <= 0:
            warnings.append(f"[라인 {idx}] BOL # 또는 수량이 없어 저장에서 제외됩니다.")
        if parse_float(line.get('shipping_fee')) < 0:
            errors.append(f"[라인 {idx}] 운송비가 음수입니다: {line.get('shipping_fee')}")
    return ValidationResult(warnings=warnings, errors=errors)
