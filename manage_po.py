#!/usr/bin/env python
"""
Dealer PO Management
====================

딜러 PO 접수/수정/취소, 수동 PO 생성, PO 데이터 수정 요청,
아카이브와 Raw Data 정리 작업을 실행합니다.

사용법:
    python manage_po.py init                                # 새 워크북 생성
    python manage_po.py list                                # PO 목록 조회
    python manage_po.py new PO.pdf --buyer "ACME" --po 1234 # 신규 PO 업로드
    python manage_po.py update PO.pdf --po 1234             # 수정 PO 업로드
    python manage_po.py void 1234                           # PO 취소
    python manage_po.py manual --buyer "ACME" --item "Model A:2:150"
    python manage_po.py correct 1234 corrections.json --now # PO 데이터 수정
    python manage_po.py process-queue                       # 대기 중인 업로드/수정 요청 처리
    python manage_po.py archive                             # 처리 완료 행 아카이브
    python manage_po.py split-address                       # 주소 분리
    python manage_po.py assign-ids                          # 신규 행 ID 부여
    python manage_po.py edit "Order Shipping Mgt. Table" 3 "Serial #" "SN1, SN2"
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from order_tools import config
from order_tools.archive import archive_processed_pos
from order_tools.address import split_address_in_place
from order_tools.cli_common import open_store, print_list, print_result
from order_tools.edit_log import apply_edit
from order_tools.logging_config import setup_logging
from order_tools.manual_po import get_manual_po_initial_data, process_and_save_po
from order_tools.po_editor import PoEditorService
from order_tools.po_management import PoManagementService
from order_tools.results import ToolResult
from order_tools.row_ids import process_all_raw_data_sheets
from order_tools.sheet_service import SheetNotFoundError, SheetService

import warnings
# openpyxl의 스타일 관련 UserWarning 무시
warnings.filterwarnings('ignore', category=UserWarning, module='openpyxl')

logger = logging.getLogger(__name__)


def _read_pdf_as_data_url(path: str) -> str | None:
    pdf_path = Path(path)
    if not pdf_path.exists():
        print(f"  {config.MSG_ERROR} 파일을 찾을 수 없습니다: {pdf_path}")
        return None
    encoded = base64.b64encode(pdf_path.read_bytes()).decode('ascii')
    return f"data:application/pdf;base64,{encoded}"


def _parse_item(text: str) -> dict[str, str]:
    """'모델:수량:단가' 형식의 라인 아이템 인자 분리"""
    model, _, rest = text.partition(':')
    quantity, _, unit_price = rest.partition(':')
    return {'model': model.strip(), 'quantity': quantity.strip(), 'unit_price': unit_price.strip()}


def cmd_init(args: argparse.Namespace) -> int:
    path = Path(args.workbook) if args.workbook else config.WORKBOOK_FILE
    if path.exists() and not args.force:
        print(f"{config.MSG_ERROR} 이미 워크북이 있습니다: {path} (--force로 덮어쓰기)")
        return 1
    SheetService.create(path)
    print(f"  -> 워크북 생성 완료: {path}")
    return 0


def cmd_list(store: SheetService, args: argparse.Namespace) -> int:
    service = PoManagementService(store)
    try:
        data = service.get_po_mgt_initial_data()
    except SheetNotFoundError as e:
        print(f"{config.MSG_ERROR} {e}")
        return 1
    print_list("활성 PO", data['active_po_numbers'])
    print_list("전체 PO", data['existing_po_numbers'])
    print_list("Buyer", data['buyer_names'])
    return 0


def cmd_new(store: SheetService, args: argparse.Namespace) -> int:
    content = _read_pdf_as_data_url(args.pdf)
    if content is None:
        return 1
    service = PoManagementService(store)
    return print_result(service.process_new_po_upload(content, args.buyer, args.po))


def cmd_update(store: SheetService, args: argparse.Namespace) -> int:
    content = _read_pdf_as_data_url(args.pdf)
    if content is None:
        return 1
    service = PoManagementService(store)
    return print_result(service.process_po_update(content, args.po))


def cmd_void(store: SheetService, args: argparse.Namespace) -> int:
    service = PoManagementService(store)
    return print_result(service.void_po(args.po_number))


def cmd_process_queue(store: SheetService, args: argparse.Namespace) -> int:
    """이전 실행에서 남은 신규 PO 업로드 작업과 PO 수정 요청을 모두 처리"""
    service = PoManagementService(store)
    count = 0
    while service.queue.load():
        if not service.queue.process_next():
            break
        count += 1
    print(f"  -> 업로드 작업 {count}건 처리")

    corrections = PoEditorService(store).process_po_correction_queue()
    print(f"  -> 수정 요청 {corrections}건 처리")
    return 0


def cmd_manual(store: SheetService, args: argparse.Namespace) -> int:
    initial = get_manual_po_initial_data(store)
    po_data = {
        'created_date': args.date or initial['created_date'],
        'buyer_name': args.buyer,
        'po_number': args.po or initial['po_number'],
        'total': args.total,
        'payment_term': args.payment_term,
        'type': args.type,
        'ship_to': {
            'address': args.ship_to,
            'contact_person': args.contact,
            'phone': args.phone,
            'email': args.email,
        },
        'line_items': [_parse_item(item) for item in args.item],
    }
    print(f"  PO 번호: {po_data['po_number']}")
    return print_result(process_and_save_po(store, po_data))


def cmd_correct(store: SheetService, args: argparse.Namespace) -> int:
    """JSON 파일({'basic_info': {...}, 'items': [...]})로 PO 수정 요청"""
    editor = PoEditorService(store)

    if args.json_file is None:
        result = editor.get_correction_data()
        if not result.success:
            return print_result(result)
        print_list("수정 가능한 PO", [p['po_number'] for p in result.get('pos', [])])
        return 0

    try:
        with open(args.json_file, encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"  {config.MSG_ERROR} 수정 파일을 읽을 수 없습니다: {e}")
        return 1

    result = editor.save_po_corrections_append_only(
        args.po_number, payload.get('basic_info', {}), payload.get('items', []),
    )
    code = print_result(result)
    if result.success and args.now:
        processed = editor.process_po_correction_queue()
        print(f"  -> 수정 요청 {processed}건 처리")
    return code


def cmd_archive(store: SheetService, args: argparse.Namespace) -> int:
    return print_result(archive_processed_pos(store))


def cmd_split_address(store: SheetService, args: argparse.Namespace) -> int:
    return print_result(split_address_in_place(store))


def cmd_assign_ids(store: SheetService, args: argparse.Namespace) -> int:
    counts = process_all_raw_data_sheets(store)
    for sheet, count in counts.items():
        print(f"  {sheet}: {count}건")
    return print_result(ToolResult.ok("ID 부여 완료", sheets=len(counts)))


def cmd_edit(store: SheetService, args: argparse.Namespace) -> int:
    try:
        event = apply_edit(store, args.sheet, args.row, args.field, args.value)
    except (SheetNotFoundError, ValueError) as e:
        print(f"  {config.MSG_ERROR} {e}")
        return 1
    print(f"  -> {event.sheet} {event.row}행 '{args.field}': {event.old_value!r} → {event.new_value!r}")
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """CLI 인자 파서 생성

    Returns:
        설정된 ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='manage_po',
        description='Dealer PO Management - PO 접수/수정/취소 및 Raw Data 정리',
        epilog='예시: python manage_po.py void 1234',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='상세 로그 출력')
    parser.add_argument('-w', '--workbook', help='워크북 경로 (기본값: config.WORKBOOK_FILE)')
    parser.add_argument('--log-file', help='로그 파일 경로 (큐 처리 기록용)')

    sub = parser.add_subparsers(dest='command', metavar='COMMAND')

    p = sub.add_parser('init', help='모든 시트를 포함한 새 워크북 생성')
    p.add_argument('-f', '--force', action='store_true', help='기존 워크북 덮어쓰기')

    sub.add_parser('list', help='PO / Buyer 목록 조회')

    p = sub.add_parser('new', help='신규 PO PDF 업로드')
    p.add_argument('pdf', help='PO PDF 파일')
    p.add_argument('--buyer', required=True, help='Buyer Name')
    p.add_argument('--po', required=True, help='PO Number')

    p = sub.add_parser('update', help='수정 PO PDF 업로드 (기존 행 Revised 처리)')
    p.add_argument('pdf', help='수정 PO PDF 파일')
    p.add_argument('--po', required=True, help='기존 PO Number')

    p = sub.add_parser('void', help='PO 취소 (Voided 처리 후 아카이브)')
    p.add_argument('po_number', metavar='PO_NO')

    sub.add_parser('process-queue', help='대기 중인 신규 PO 업로드 작업과 PO 수정 요청 처리')

    p = sub.add_parser('manual', help='수동 PO 생성')
    p.add_argument('--buyer', required=True, help='Buyer Name')
    p.add_argument('--po', help='PO Number (생략 시 POM#### 자동 생성)')
    p.add_argument('--date', help=f"Created Date (기본값: 오늘, 예: {datetime.now():%Y-%m-%d})")
    p.add_argument('--item', action='append', required=True, metavar='MODEL:QTY:PRICE',
                   help='라인 아이템 (여러 번 지정 가능)')
    p.add_argument('--total', default='', help='P/O - Total')
    p.add_argument('--payment-term', default='', help='Payment term')
    p.add_argument('--type', default='', help='Type')
    p.add_argument('--ship-to', default='', help='배송 주소')
    p.add_argument('--contact', default='', help='담당자')
    p.add_argument('--phone', default='', help='전화번호')
    p.add_argument('--email', default='', help='이메일')

    p = sub.add_parser('correct', help='PO 데이터 수정 요청 (JSON 생략 시 수정 가능 PO 목록)')
    p.add_argument('po_number', metavar='PO_NO', nargs='?')
    p.add_argument('json_file', metavar='JSON', nargs='?', help='basic_info / items를 담은 JSON')
    p.add_argument('--now', action='store_true', help='등록 후 바로 처리')

    sub.add_parser('archive', help='처리 완료된 PO 행 아카이브')
    sub.add_parser('split-address', help='Ship to 주소를 Street/City/State/Zipcode로 분리')
    sub.add_parser('assign-ids', help='Raw Data 신규 행에 ID 부여')

    p = sub.add_parser('edit', help='셀 편집 (편집 이력/시리얼 태깅 반영)')
    p.add_argument('sheet', help='시트 이름')
    p.add_argument('row', type=int, help='행 번호')
    p.add_argument('field', help='헤더명')
    p.add_argument('value', help='새 값')

    return parser


COMMANDS = {
    'list': cmd_list,
    'new': cmd_new,
    'update': cmd_update,
    'void': cmd_void,
    'process-queue': cmd_process_queue,
    'manual': cmd_manual,
    'correct': cmd_correct,
    'archive': cmd_archive,
    'split-address': cmd_split_address,
    'assign-ids': cmd_assign_ids,
    'edit': cmd_edit,
}


def main() -> int:
    """메인 함수

    Returns:
        종료 코드 (0: 성공, 1: 실패)
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    # 로깅 설정
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == 'init':
        return cmd_init(args)

    store = open_store(args.workbook)
    if store is None:
        return 1
    return COMMANDS[args.command](store, args)


if __name__ == "__main__":
    sys.exit(main())
