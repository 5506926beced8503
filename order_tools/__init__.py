"""
Order / Shipping Back-office Tools
=================================

딜러 PO 접수부터 출하 계획, BOL 입력, 시리얼 할당, 견적 요청까지
주문·출하 운영 워크북(Order_Shipping_Tools.xlsx)을 관리하는 도구 모음입니다.
"""

from order_tools.config import WORKBOOK_FILE, SHEET_SPECS
from order_tools.results import ResultStatus, ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.utils import get_value, resolve_column

__version__ = "0.1.0"
__all__ = [
    "WORKBOOK_FILE",
    "SHEET_SPECS",
    "ResultStatus",
    "ToolResult",
    "SheetNotFoundError",
    "SheetService",
    "get_value",
    "resolve_column",
]
