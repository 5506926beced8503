#!/usr/bin/env python
"""
Order Shipping Tools
====================

출하 계획, BOL 입력, 시리얼 할당, GIT 일정 관리, 견적 요청을 실행합니다.

사용법:
    python ship_orders.py plan                                  # 출하 계획 대상 목록
    python ship_orders.py plan "1234|SKU-1" --east 2 --west 1 --date 2026-11-01
    python ship_orders.py bol                                   # BOL 대기/완료 목록
    python ship_orders.py bol "1234|SKU-1" --line BOL-1:3:25.5 --ship-date 2026-11-03 --fulfilled
    python ship_orders.py serial                                # 할당 대기/완료 목록
    python ship_orders.py serial "1234|SKU-1" --bol BOL-1 --serials SN1 SN2
    python ship_orders.py serial "1234|SKU-1" --complete
    python ship_orders.py serial-status SN1                     # 시리얼 상태 조회
    python ship_orders.py git                                   # 진행 중인 PI 목록
    python ship_orders.py git PI-001 --eta 2026-11-20 --finished
    python ship_orders.py estimate                              # 견적 대기 주문
    python ship_orders.py estimate 1234                         # 견적 생성 요청
    python ship_orders.py estimate --test                       # webhook 연결 확인
"""

from __future__ import annotations

import argparse
import logging
import sys

from order_tools import config
from order_tools.bol_entry import clear_bol_cache, get_existing_bol_data, get_initial_bol_data, save_bol_data
from order_tools.cli_common import open_store, print_list, print_result
from order_tools.estimate import create_estimate, get_pending_orders, send_test_webhook
from order_tools.git_tracker import get_git_data, get_pi_details, save_git_details
from order_tools.logging_config import setup_logging
from order_tools.results import ToolResult
from order_tools.serial_assignment import (
    assign_serials,
    get_assigned_serials_for_po_sku,
    get_bols_for_po_sku,
    get_po_sku_lists,
    get_serial_status,
    get_serials_for_editing,
    update_assignment_completion_status,
)
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.shipping_planning import get_planning_data, save_planning_data
from order_tools.utils import split_po_sku_key

import warnings
# openpyxl의 스타일 관련 UserWarning 무시
warnings.filterwarnings('ignore', category=UserWarning, module='openpyxl')

logger = logging.getLogger(__name__)


def _parse_bol_line(text: str) -> dict[str, str]:
    """'BOL#:수량[:운임[:서명]]' 형식의 BOL 라인 인자 분리"""
    parts = [p.strip() for p in text.split(':')]
    parts += [''] * (4 - len(parts))
    return {'bol_number': parts[0], 'shipped_qty': parts[1], 'shipping_fee': parts[2], 'signed': parts[3]}


def cmd_plan(store: SheetService, args: argparse.Namespace) -> int:
    result = get_planning_data(store)
    if not result.success:
        return print_result(result)

    if args.key is None:
        print_list("출하 계획 대상", result.get('pending_list', []))
        return 0

    details = result.get('item_details', {}).get(args.key)
    if details is None:
        print(f"  {config.MSG_ERROR} '{args.key}'를 Order Shipping Mgt. Table에서 찾을 수 없습니다.")
        return 1

    if args.east is None and args.west is None:
        for name, value in details.items():
            print(f"  {name}: {value}")
        return 0

    return print_result(save_planning_data(store, {
        'po_sku_key': args.key,
        'total_qty': details.get('total_qty'),
        'qty_east': args.east or 0,
        'qty_west': args.west or 0,
        'est_ship_date': args.date,
    }))


def cmd_bol(store: SheetService, args: argparse.Namespace) -> int:
    if args.key is None:
        result = get_initial_bol_data(store)
        if not result.success:
            return print_result(result)
        print_list("BOL 입력 대기", result.get('pending_list', []))
        print_list("출하 완료", result.get('fulfilled_list', []))
        return 0

    if not args.line:
        result = get_existing_bol_data(store, args.key)
        if not result.success:
            return print_result(result)
        print(f"  실제 출하일: {result.get('act_ship_date') or '-'}")
        print(f"  출하 완료: {'Y' if result.get('is_fulfilled') else 'N'}")
        print_list("BOL", [
            f"{b['bol_number']} x {b['shipped_qty']} (운임 {b['shipping_fee'] or '-'})"
            for b in result.get('bols', [])
        ])
        return 0

    return print_result(save_bol_data(store, {
        'po_sku_key': args.key,
        'act_ship_date': args.ship_date,
        'is_fulfilled': args.fulfilled,
        'bols': [_parse_bol_line(line) for line in args.line],
    }))


def cmd_serial(store: SheetService, args: argparse.Namespace) -> int:
    if args.key is None:
        result = get_po_sku_lists(store)
        if not result.success:
            return print_result(result)
        print_list("할당 대기", result.get('pending', []))
        print_list("할당 완료", result.get('finished', []))
        return 0

    if args.complete or args.reopen:
        return print_result(update_assignment_completion_status(store, args.key, args.complete))

    if args.bol is None:
        _, sku = split_po_sku_key(args.key)
        try:
            assigned = get_assigned_serials_for_po_sku(store, args.key)
            available = get_serials_for_editing(store, sku, args.key)
            bols = get_bols_for_po_sku(store, args.key)
        except (SheetNotFoundError, ValueError) as e:
            print(f"  {config.MSG_ERROR} {e}")
            return 1
        print_list("BOL", [f"{b['bol_number']} x {b['shipped_qty']}" for b in bols])
        print_list("할당된 시리얼", [f"{bol}: {', '.join(s)}" for bol, s in assigned.items()])
        print_list("할당 가능한 시리얼", available)
        return 0

    # 지정한 BOL 외 기존 할당은 유지
    try:
        assignments = get_assigned_serials_for_po_sku(store, args.key)
    except (SheetNotFoundError, ValueError) as e:
        print(f"  {config.MSG_ERROR} {e}")
        return 1
    assignments[args.bol] = args.serials
    return print_result(assign_serials(store, {'po_sku_key': args.key, 'assignments': assignments}))


def cmd_serial_status(store: SheetService, args: argparse.Namespace) -> int:
    status = get_serial_status(store, args.serial)
    print(f"  {args.serial}: {status['status']}")
    for name in ('po_sku_key', 'bol', 'date', 'message'):
        if name in status:
            print(f"    {name}: {status[name]}")
    return 1 if status['status'] == 'Error' else 0


def cmd_git(store: SheetService, args: argparse.Namespace) -> int:
    if args.pi is None:
        result = get_git_data(store)
        if not result.success:
            return print_result(result)
        print_list("진행 중인 PI", result.get('pi_list', []))
        return 0

    result = get_pi_details(store, args.pi)
    if not result.success:
        return print_result(result)
    details = result.get('details')

    changes = {
        'etc': args.etc, 'etd': args.etd, 'eta': args.eta,
        'inbound_date': args.inbound, 'memo': args.memo,
    }
    if all(v is None for v in changes.values()) and not args.finished:
        for name, value in details.items():
            print(f"  {name}: {value if value not in (None, '') else '-'}")
        return 0

    data = {name: (value if value is not None else details.get(name)) for name, value in changes.items()}
    data['pi_number'] = args.pi
    data['is_finished'] = args.finished or details.get('is_finished')
    return print_result(save_git_details(store, data))


def cmd_estimate(store: SheetService, args: argparse.Namespace) -> int:
    if args.test:
        return print_result(send_test_webhook())

    try:
        pending = get_pending_orders(store)
    except SheetNotFoundError as e:
        print(f"  {config.MSG_ERROR} {e}")
        return 1

    if args.po is None:
        print_list("견적 대기 주문", [f"{o['po']} (행 {o['row']})" for o in pending])
        return 0

    order = next((o for o in pending if o['po'] == args.po), None)
    if order is None:
        return print_result(ToolResult.not_found(f"견적 대기 주문에 PO {args.po}가 없습니다."))
    return print_result(create_estimate(order))


def cmd_clear_cache(store: SheetService, args: argparse.Namespace) -> int:
    clear_bol_cache()
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """CLI 인자 파서 생성

    Returns:
        설정된 ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='ship_orders',
        description='Order Shipping Tools - 출하 계획 / BOL / 시리얼 / GIT / 견적',
        epilog='예시: python ship_orders.py bol "1234|SKU-1" --line BOL-1:3',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='상세 로그 출력')
    parser.add_argument('-w', '--workbook', help='워크북 경로 (기본값: config.WORKBOOK_FILE)')
    parser.add_argument('--log-file', help='로그 파일 경로 (큐 처리 기록용)')

    sub = parser.add_subparsers(dest='command', metavar='COMMAND')

    p = sub.add_parser('plan', help='출하 계획 조회/저장')
    p.add_argument('key', nargs='?', metavar='PO|SKU')
    p.add_argument('--east', type=int, help='Qty (East)')
    p.add_argument('--west', type=int, help='Qty (West)')
    p.add_argument('--date', help='Est. Ship Date (YYYY-MM-DD)')

    p = sub.add_parser('bol', help='BOL 조회/저장')
    p.add_argument('key', nargs='?', metavar='PO|SKU')
    p.add_argument('--line', action='append', metavar='BOL:QTY[:FEE[:SIGNED]]',
                   help='BOL 라인 (여러 번 지정 가능, 기존 라인은 대체됨)')
    p.add_argument('--ship-date', help='Act. Ship Date (YYYY-MM-DD)')
    p.add_argument('--fulfilled', action='store_true', help='출하 완료 처리')

    p = sub.add_parser('serial', help='시리얼 할당 조회/저장')
    p.add_argument('key', nargs='?', metavar='PO|SKU')
    p.add_argument('--bol', help='할당할 BOL #')
    p.add_argument('--serials', nargs='+', default=[], metavar='SERIAL',
                   help='--bol에 할당할 시리얼 번호 (생략 시 해당 BOL 할당 해제)')
    group = p.add_mutually_exclusive_group()
    group.add_argument('--complete', action='store_true', help='할당 완료 처리')
    group.add_argument('--reopen', action='store_true', help='할당 완료 해제')

    p = sub.add_parser('serial-status', help='시리얼 상태 조회')
    p.add_argument('serial', metavar='SERIAL')

    p = sub.add_parser('git', help='GIT(운송 중) 일정 조회/저장')
    p.add_argument('pi', nargs='?', metavar='PI_NO')
    p.add_argument('--etc', help='ETC (YYYY-MM-DD)')
    p.add_argument('--etd', help='ETD (YYYY-MM-DD)')
    p.add_argument('--eta', help='ETA (YYYY-MM-DD)')
    p.add_argument('--inbound', help='Inbound Date (YYYY-MM-DD)')
    p.add_argument('--memo', help='메모')
    p.add_argument('--finished', action='store_true', help='완료 처리')

    p = sub.add_parser('estimate', help='견적 대기 주문 조회/견적 생성 요청')
    p.add_argument('po', nargs='?', metavar='PO_NO')
    p.add_argument('--test', action='store_true', help='테스트 webhook 전송')

    sub.add_parser('clear-cache', help='BOL 목록 캐시 삭제')

    return parser


COMMANDS = {
    'plan': cmd_plan,
    'bol': cmd_bol,
    'serial': cmd_serial,
    'serial-status': cmd_serial_status,
    'git': cmd_git,
    'estimate': cmd_estimate,
    'clear-cache': cmd_clear_cache,
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

    store = open_store(args.workbook)
    if store is None:
        return 1
    return COMMANDS[args.command](store, args)


if __name__ == "__main__":
    sys.exit(main())
