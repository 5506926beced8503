"""
PO 관리 (신규 / 수정 / 취소)
===========================

- 신규 PO: PDF를 임시 폴더에 저장하고 이동 작업만 큐에 등록
- 수정 PO: 업데이트 PDF 저장 → 기존 행 'Revised' 처리 → 아카이브
- 취소 PO: 해당 PO 전체 행 'Voided' 처리 → 아카이브
"""

from __future__ import annotations

import base64
import binascii
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

from order_tools import config
from order_tools.archive import archive_processed_pos
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetNotFoundError, SheetService
from order_tools.task_queue import Task, TaskQueue
from order_tools.utils import get_str, now_millis, sanitize_filename

logger = logging.getLogger(__name__)


def decode_data_url(file_content: str) -> bytes:
    """'data:application/pdf;base64,....' 형식의 문자열을 바이트로 디코딩

    Raises:
        ValueError: base64 형식이 아닌 경우
    """
    data = file_content.split(',', 1)[1] if ',' in file_content else file_content
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"파일 데이터를 디코딩할 수 없습니다: {e}") from e


class PoManagementService:
    """PO 관리 서비스

    Args:
        store: 워크북 시트 서비스
        upload_dir: 최종 PO PDF 폴더
        temp_dir: 임시 업로드 폴더
        queue: 신규 PO 이동 작업 큐 (None이면 기본 큐 생성)
    """

    def __init__(
        self,
        store: SheetService,
        upload_dir: Path | None = None,
        temp_dir: Path | None = None,
        queue: TaskQueue | None = None,
    ):
        self.store = store
        self.upload_dir = Path(upload_dir) if upload_dir else config.UPLOAD_DIR
        self.temp_dir = Path(temp_dir) if temp_dir else config.TEMP_UPLOAD_DIR
        self.queue = queue or TaskQueue(
            key=config.NEW_PO_QUEUE_KEY,
            handler_name=config.NEW_PO_TRIGGER_HANDLER,
            handler=self.move_uploaded_file,
        )

    # === 초기 데이터 ===

    def get_buyer_names(self) -> list[str]:
        records = self.store.read_all_records(config.CUSTOMERS_SHEET)
        return sorted({get_str(r, 'Buyer Name') for r in records} - {''})

    def get_existing_po_numbers(self) -> list[str]:
        records = self.store.read_all_records(config.DEALER_PO_RAW_SHEET)
        return sorted({get_str(r, config.PO_NUMBER) for r in records} - {''})

    def get_active_po_numbers(self) -> list[str]:
        """'Voided'가 아닌 행이 하나라도 있는 PO 번호"""
        records = self.store.read_all_records(config.DEALER_PO_RAW_SHEET)
        active = {
            get_str(r, config.PO_NUMBER)
            for r in records
            if get_str(r, 'Status') != config.STATUS_VOIDED
        }
        return sorted(active - {''})

    def get_po_mgt_initial_data(self) -> dict[str, list[str]]:
        """화면 드롭다운용 초기 데이터

        Raises:
            SheetNotFoundError: Customers / Raw Data 시트가 없는 경우
        """
        try:
            return {
                'buyer_names': self.get_buyer_names(),
                'existing_po_numbers': self.get_existing_po_numbers(),
                'active_po_numbers': self.get_active_po_numbers(),
            }
        except SheetNotFoundError as e:
            logger.error(f"초기 데이터 로드 실패: {e}")
            raise

    # === 신규 PO ===

    def process_new_po_upload(self, file_content: str, buyer_name: str, po_number: str) -> ToolResult:
        """신규 PO 업로드

        PDF는 임시 폴더에 바로 저장하고, 최종 위치로 옮기는 작업만 큐에 넣습니다.
        """
        buyer_name = (buyer_name or '').strip()
        po_number = (po_number or '').strip()
        if not buyer_name or not po_number:
            return ToolResult.validation_error(["Buyer Name과 PO Number는 필수입니다."])

        try:
            content = decode_data_url(file_content)
        except ValueError as e:
            logger.error(f"신규 PO 큐 등록 실패: {e}")
            return ToolResult.validation_error([str(e)])

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self.temp_dir / f"temp_{now_millis()}_{sanitize_filename(po_number)}.pdf"
        temp_path.write_bytes(content)
        logger.info(f"임시 파일 저장: {temp_path.name}")

        final_name = f"{sanitize_filename(buyer_name)}_{sanitize_filename(po_number)}.pdf"
        task: Task = {
            'temp_file': str(temp_path),
            'final_file_name': final_name,
            'submitted_at': datetime.now().isoformat(),
        }
        self.queue.enqueue(task)
        return ToolResult.queued(f"신규 PO 업로드 등록: {final_name}", file_name=final_name)

    def move_uploaded_file(self, task: Task) -> Path:
        """큐 작업: 임시 파일을 업로드 폴더로 이동하며 최종 파일명으로 변경"""
        temp_path = Path(task['temp_file'])
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        final_path = self.upload_dir / task['final_file_name']
        shutil.move(str(temp_path), str(final_path))
        logger.info(f"PO 파일 이동 완료: {final_path.name}")
        return final_path

    # === 수정 PO ===

    def _find_base_file_name(self, po_number: str) -> str:
        suffix = f"_{sanitize_filename(po_number)}.pdf"
        if self.upload_dir.exists():
            for path in sorted(self.upload_dir.glob('*.pdf')):
                if suffix in path.name:
                    return path.name.replace('.pdf', '').split('_updated_')[0]
        return f"unknown-buyer_{sanitize_filename(po_number)}"

    def process_po_update(self, file_content: str, po_number: str) -> ToolResult:
        """수정 PO PDF 업로드 후 기존 행 'Revised' 처리 및 아카이브"""
        po_number = (po_number or '').strip()
        if not po_number:
            return ToolResult.validation_error(["수정할 기존 PO Number를 선택하세요."])

        try:
            content = decode_data_url(file_content)
            base_name = self._find_base_file_name(po_number)
            today = datetime.now().strftime('%Y-%m-%d')
            updated_name = f"{base_name}_updated_{today}.pdf"

            self.upload_dir.mkdir(parents=True, exist_ok=True)
            (self.upload_dir / updated_name).write_bytes(content)

            revised = self.revise_po_status(po_number)
            logger.info(f"PO #{po_number} 수정 처리 ({revised}행). 아카이브 실행...")
            archive_processed_pos(self.store)
        except (ValueError, OSError, SheetNotFoundError) as e:
            logger.error(f"PO 수정 실패: {e}")
            return ToolResult.failed(str(e))

        return ToolResult.ok(f"수정 PO PDF '{updated_name}' 업로드 완료", file_name=updated_name, revised=revised)

    def revise_po_status(self, po_number: Any) -> int:
        """PO의 활성 행(Revised/Voided 제외)을 'Revised'로 변경

        Returns:
            변경된 행 수
        """
        sheet = config.DEALER_PO_RAW_SHEET
        target = str(po_number).strip()
        now = datetime.now()
        count = 0

        for record in self.store.read_all_records(sheet):
            status = get_str(record, 'Status')
            if get_str(record, config.PO_NUMBER) != target:
                continue
            if status in (config.STATUS_REVISED, config.STATUS_VOIDED):
                continue
            self.store.update_record(sheet, {
                'Status': config.STATUS_REVISED,
                'Change Time': now,
                '_rowNumber': record['_rowNumber'],
            })
            count += 1

        if count:
            self.store.save()
            logger.info(f"PO #{target}: {count}행 'Revised' 처리")
        else:
            logger.warning(f"PO #{target}: 수정할 활성 행이 없습니다.")
        return count

    # === 취소 PO ===

    def void_po(self, po_number: str) -> ToolResult:
        """PO 전체 행을 'Voided'로 변경 후 아카이브"""
        target = str(po_number or '').strip()
        if not target:
            return ToolResult.validation_error(["취소할 PO 번호를 선택하세요."])

        sheet = config.DEALER_PO_RAW_SHEET
        try:
            records = self.store.read_all_records(sheet)
        except SheetNotFoundError as e:
            logger.error(f"PO 취소 실패: {e}")
            return ToolResult.sheet_error(str(e))

        count = 0
        for record in records:
            if get_str(record, config.PO_NUMBER) == target:
                self.store.update_record(sheet, {
                    'Status': config.STATUS_VOIDED,
                    '_rowNumber': record['_rowNumber'],
                })
                count += 1

        if count == 0:
            return ToolResult.not_found(f"PO #{target}를 찾을 수 없거나 이미 취소되었습니다.")

        self.store.save()
        logger.info(f"PO #{target} 취소 ({count}행). 아카이브 실행...")
        archive_processed_pos(self.store)
        return ToolResult.ok(f"PO #{target} 취소 완료 ({count}행)", voided=count)
