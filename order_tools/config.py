"""
설정 및 상수 정의
================

워크북 경로, 시트 스키마, 상태값, 큐/캐시 타이밍 등 프로젝트 전역 설정값을 관리합니다.
사용자 설정은 user_settings.py에서 관리합니다.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Any, Final


# === 사용자 설정 로딩 헬퍼 ===
def _load_user_setting(name: str, default: Any) -> Any:
    """user_settings.py에서 설정값 로드 (없으면 기본값 반환)"""
    try:
        import user_settings
        return getattr(user_settings, name, default)
    except ImportError:
        return default


# === 경로 설정 ===
BASE_DIR: Final[Path] = Path(__file__).parent.parent

_data_folder = _load_user_setting('DATA_FOLDER', None)
DATA_DIR: Final[Path] = Path(_data_folder) if _data_folder else BASE_DIR / "data"

# 모든 시트가 들어있는 메인 워크북
WORKBOOK_FILE: Final[Path] = DATA_DIR / _load_user_setting('WORKBOOK_NAME', "Order_Shipping_Tools.xlsx")

# PO PDF 업로드 폴더 (최종 / 임시)
UPLOAD_DIR: Final[Path] = DATA_DIR / "po_uploads"
TEMP_UPLOAD_DIR: Final[Path] = DATA_DIR / "po_uploads_temp"

# 스크립트 속성 저장 파일 (큐 상태 영속화)
PROPERTIES_FILE: Final[Path] = DATA_DIR / "script_properties.json"

# 사용자 캐시 파일 (PO 수정 payload, 1시간 보관)
USER_CACHE_FILE: Final[Path] = DATA_DIR / "user_cache.json"


# === 사용자 / 외부 연동 ===
USER_EMAIL: Final[str | None] = _load_user_setting('USER_EMAIL', None)
ESTIMATE_WEBHOOK_URL: Final[str] = _load_user_setting('ESTIMATE_WEBHOOK_URL', '')
TEST_WEBHOOK_URL: Final[str] = _load_user_setting('TEST_WEBHOOK_URL', '')
WEBHOOK_TIMEOUT_SECONDS: Final[int] = 30


# === 시트 이름 ===
# Excel 시트 이름은 최대 31자
SHEET_NAME_MAX_LENGTH: Final[int] = 31
DEALER_PO_RAW_SHEET: Final[str] = 'Dealer PO | Raw Data'
DEALER_PO_ARCHIVE_SHEET: Final[str] = 'Dealer PO | Archive'
DIRECT_QUOTE_RAW_SHEET: Final[str] = 'Direct Quote | Raw Data'
SERIAL_RAW_SHEET: Final[str] = 'Serial # | Raw Data'
GIT_DB_SHEET: Final[str] = 'GIT Tool | DB'
SERIAL_DB_SHEET: Final[str] = 'Serial #_DB'
BOL_DB_SHEET: Final[str] = 'BOL_DB'
PLANNING_DB_SHEET: Final[str] = 'Shipment_Planning_DB'
PO_QUEUE_SHEET: Final[str] = 'PO Processing Queue'
ORDER_MGT_SHEET: Final[str] = 'Order Shipping Mgt. Table'
OPERATION_DASHBOARD_SHEET: Final[str] = _load_user_setting('OPERATION_DASHBOARD_SHEET', 'Operation | Pending Orders')
PROC_SHIPPING_SHEET: Final[str] = 'proc_shipping_management'
PRICE_BOOK_SHEET: Final[str] = 'HSUS Price Book'
PRICE_BOOK_QBO_SHEET: Final[str] = _load_user_setting('PRICE_BOOK_QBO_SHEET', 'HSUS Price Book(QBO)')
CUSTOMERS_SHEET: Final[str] = 'Customers(QBO)'
ORDER_SHIPPING_LOG_SHEET: Final[str] = 'Order Shipping|Edit History'
OPERATION_DASHBOARD_LOG_SHEET: Final[str] = _load_user_setting('OPERATION_DASHBOARD_LOG_SHEET', 'Operation | Edit History')


# === 주요 키 컬럼 ===
PO_NUMBER: Final[str] = 'P/O'
PO_SKU_KEY: Final[str] = 'PO|SKU Key'
SERIAL_NUMBER: Final[str] = 'Serial #'
BOL_NUMBER: Final[str] = 'BOL #'
PI_NUMBER: Final[str] = 'PI #'

# PO|SKU 키 구분자
KEY_SEPARATOR: Final[str] = '|'


# === 상태값 ===
STATUS_VOIDED: Final[str] = 'Voided'
STATUS_REVISED: Final[str] = 'Revised'
STATUS_CHANGE: Final[str] = 'Change'
STATUS_FULFILLED: Final[str] = 'Fulfilled'
STATUS_COMPLETE_ASSIGNED: Final[str] = 'Complete Assigned'

# 아카이브 대상 상태
ARCHIVE_STATUSES: Final[frozenset[str]] = frozenset({STATUS_CHANGE, STATUS_VOIDED, STATUS_REVISED})

# PO Processing Queue 상태
QUEUE_STATUS_QUEUED: Final[str] = 'Queued'
QUEUE_STATUS_IN_PROGRESS: Final[str] = 'In Progress'
QUEUE_STATUS_SUCCESS: Final[str] = 'Success'
QUEUE_STATUS_FAILED: Final[str] = 'Failed'


# === 큐 / 트리거 / 캐시 설정 ===
NEW_PO_QUEUE_KEY: Final[str] = 'NEW_PO_UPLOAD_QUEUE'
NEW_PO_TRIGGER_HANDLER: Final[str] = 'process_new_po_upload_queue'
PO_CORRECTION_TRIGGER_HANDLER: Final[str] = 'process_po_correction_queue'

DELAY_BETWEEN_UPLOADS_SECONDS: Final[float] = _load_user_setting('DELAY_BETWEEN_UPLOADS_SECONDS', 30.0)
PO_CORRECTION_TRIGGER_DELAY_SECONDS: Final[float] = 5.0
LOCK_TIMEOUT_SECONDS: Final[float] = 15.0

# 조회 결과 캐시 (5분), 수정 payload 캐시 (1시간)
LIST_CACHE_TTL_SECONDS: Final[int] = 300
PAYLOAD_CACHE_TTL_SECONDS: Final[int] = 3600

CACHE_KEY_PENDING_BOL: Final[str] = 'pendingBolData'
CACHE_KEY_FULFILLED_BOL: Final[str] = 'fulfilledBolData'
CACHE_KEY_GIT_PENDING: Final[str] = 'gitPendingPiData'
PO_CORRECTION_CACHE_PREFIX: Final[str] = 'poCorrection_'


# === 수동 PO 설정 ===
MANUAL_PO_PREFIX: Final[str] = 'POM'
MANUAL_PO_RANDOM_LENGTH: Final[int] = 4


# === 메시지 마커 ===
MSG_ERROR: Final[str] = "[오류]"
MSG_WARNING: Final[str] = "[경고]"
MSG_NOTICE: Final[str] = "[주의]"

LIST_DISPLAY_LIMIT: Final[int] = 30


@dataclass(frozen=True)
class SheetSpec:
    """시트 스키마

    Attributes:
        name: 시트 이름
        headers: 기본 헤더 (시트 생성 시 사용)
        header_row: 헤더가 위치한 행 번호 (1부터 시작)
    """
    name: str
    headers: tuple[str, ...]
    header_row: int = 1

    @property
    def data_start_row(self) -> int:
        return self.header_row + 1


# === 시트 스키마 ===
DEALER_PO_HEADERS: Final[tuple[str, ...]] = (
    'Created Date', 'Buyer Name', 'RSM', PO_NUMBER, 'Model', 'Company',
    'P/O - Total', 'Payment term', 'Type', 'P/O Line Items', 'P/O Unit Price',
    'P/O QTY', 'File URL', 'SKU', 'Ship to', 'Contact Person', 'Phone', 'Email',
    'Helper Key', 'Status', 'Change Note', 'Change Time', 'SPIFF',
    'Street Address', 'City', 'State', 'Zipcode', 'Row ID',
)

# 시트 수식(ARRAYFORMULA)이 채우는 컬럼 - 재기록 시 비워둠
ARRAY_FORMULA_COLUMNS: Final[tuple[str, ...]] = ('Model', 'SKU', 'Helper Key')

EDIT_LOG_HEADERS: Final[tuple[str, ...]] = (
    'Timestamp', PO_NUMBER, 'Row', 'Field', 'Action', 'New Value', 'Old Value', 'User',
)

# 편집 이력 기록용 감사 컬럼
CREATED_TIME_FIELD: Final[str] = 'Created Time'
UPDATED_TIME_FIELD: Final[str] = 'Last Updated Time'
HISTORY_FIELD: Final[str] = 'Latest Update Record'

SHEET_SPECS: Final[dict[str, SheetSpec]] = {
    DEALER_PO_RAW_SHEET: SheetSpec(DEALER_PO_RAW_SHEET, DEALER_PO_HEADERS),
    DEALER_PO_ARCHIVE_SHEET: SheetSpec(DEALER_PO_ARCHIVE_SHEET, DEALER_PO_HEADERS),
    SERIAL_RAW_SHEET: SheetSpec(SERIAL_RAW_SHEET, (
        'Item', 'SKU', 'Description', SERIAL_NUMBER, 'Warehouse', 'Location',
        PI_NUMBER, 'PO_SKU_Key', 'Status', 'Memo', 'Receive Date', 'Vendor',
        'Inbound Date', 'Order #',
    )),
    SERIAL_DB_SHEET: SheetSpec(SERIAL_DB_SHEET, (
        SERIAL_NUMBER, PO_SKU_KEY, BOL_NUMBER, 'Complete', 'Assigned User', 'Assigned Timestamp',
    )),
    BOL_DB_SHEET: SheetSpec(BOL_DB_SHEET, (
        BOL_NUMBER, PO_SKU_KEY, 'Shipped Qty', 'Shipping Fee', 'Act. Ship Date',
        'Signed', 'Status', 'Timestamp',
    )),
    PLANNING_DB_SHEET: SheetSpec(PLANNING_DB_SHEET, (
        'Timestamp', 'User', PO_SKU_KEY, 'Est. Ship Date', 'Qty (East)', 'Qty (West)', 'Status',
    )),
    ORDER_MGT_SHEET: SheetSpec(ORDER_MGT_SHEET, (
        'Created Date', PO_NUMBER, 'Buyer Name', 'Company', 'Ship to', 'Model Name',
        'Total Qty', 'SKU', PO_SKU_KEY, 'Est. Ship Date', BOL_NUMBER, SERIAL_NUMBER,
        'Assigned Serials', CREATED_TIME_FIELD, UPDATED_TIME_FIELD, HISTORY_FIELD,
    ), header_row=2),
    OPERATION_DASHBOARD_SHEET: SheetSpec(OPERATION_DASHBOARD_SHEET, (
        'Order Status', 'Priority', 'Owner', 'Buyer Name', 'Company', BOL_NUMBER,
        'Ship Date', 'Estimate #', PO_NUMBER, 'Model Name', 'Qty', 'Ship Notes',
        'Customer Notes', 'Follow-up', CREATED_TIME_FIELD, UPDATED_TIME_FIELD, HISTORY_FIELD,
    ), header_row=2),
    GIT_DB_SHEET: SheetSpec(GIT_DB_SHEET, (
        PI_NUMBER, 'ETC', 'ETD', 'ETA', 'Memo', 'Inbound Date', 'Finish',
    )),
    PROC_SHIPPING_SHEET: SheetSpec(PROC_SHIPPING_SHEET, (
        'Date', PO_NUMBER, 'Buyer Name', 'Street', 'City', 'State', 'Zip', 'Contact',
        'Phone', 'Model', 'Qty', 'Unit Price', 'Original SKU', 'SKU', 'Status', 'RSM',
        'Payment Term', 'File URL', 'Company', 'SPIFF',
    )),
    PRICE_BOOK_SHEET: SheetSpec(PRICE_BOOK_SHEET, (
        'Lookup Name', 'SKU', 'Description', 'Price',
    ), header_row=2),
    PRICE_BOOK_QBO_SHEET: SheetSpec(PRICE_BOOK_QBO_SHEET, (
        'Product/Service', 'SKU #', 'Sales Description', 'Sales Price',
    )),
    CUSTOMERS_SHEET: SheetSpec(CUSTOMERS_SHEET, (
        'Customer ID', 'Customer', 'Company', 'Email',
    )),
    PO_QUEUE_SHEET: SheetSpec(PO_QUEUE_SHEET, (
        'PO Number', 'Status', 'Submitted By', 'Submitted Time', 'Start Time',
        'Completion Message', 'Payload Key',
    )),
    ORDER_SHIPPING_LOG_SHEET: SheetSpec(ORDER_SHIPPING_LOG_SHEET, EDIT_LOG_HEADERS),
    OPERATION_DASHBOARD_LOG_SHEET: SheetSpec(OPERATION_DASHBOARD_LOG_SHEET, EDIT_LOG_HEADERS),
}


# === 컬럼 별칭 (Column Alias) ===
# 시트 헤더명이 달라도 같은 컬럼으로 인식
# key: 표준 헤더명, value: 가능한 헤더명들 (첫 번째가 기본값)
COLUMN_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    PO_NUMBER: (PO_NUMBER, 'PO Number', 'PO #', 'P/O #'),
    PO_SKU_KEY: (PO_SKU_KEY, 'PO_SKU_Key', 'Helper Key', 'Key (PO|SKU)'),
    SERIAL_NUMBER: (SERIAL_NUMBER, 'Serial Number', 'Serial'),
    BOL_NUMBER: (BOL_NUMBER, 'BOL Number', 'BOL#'),
    PI_NUMBER: (PI_NUMBER, 'PI Number', 'PI#'),
    'SKU': ('SKU', 'SKU #', 'SKU#'),
    'Buyer Name': ('Buyer Name', 'Customer', 'Customer name'),
    'Model Name': ('Model Name', 'Sales Description', 'Model'),
    'Total Qty': ('Total Qty', 'Qty', 'Total QTY'),
    'Inbound Date': ('Inbound Date', 'Inbound date'),
    'Created Date': ('Created Date', 'PO Received Date', 'Date'),
}
