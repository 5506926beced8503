"""
시트 데이터 서비스
==================

메인 워크북(.xlsx)의 각 시트를 헤더 기반 레코드로 읽고 쓰는 서비스입니다.
모든 도구는 컬럼 위치가 아닌 헤더명(별칭 포함)으로 데이터에 접근합니다.

- 레코드는 dict이며 '_rowNumber'에 실제 시트 행 번호를 담습니다.
- 변경 사항은 save() 호출 시 파일에 반영됩니다.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Iterable

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from order_tools import config
from order_tools.config import SheetSpec
from order_tools.utils import clean_header, resolve_column, to_key_string

logger = logging.getLogger(__name__)

ROW_NUMBER_KEY = '_rowNumber'

Record = dict[str, Any]


class SheetNotFoundError(Exception):
    """필요한 시트가 워크북에 없음"""

    def __init__(self, sheet_name: str):
        self.sheet_name = sheet_name
        super().__init__(f"'{sheet_name}' 시트를 찾을 수 없습니다.")


class SheetService:
    """워크북 시트 접근 서비스

    워크북은 처음 접근할 때 로딩합니다(지연 로딩).
    큐 트리거 스레드와 공유되므로 쓰기 작업은 내부 락으로 직렬화합니다.
    """

    def __init__(self, workbook_path: Path | None = None, workbook: Workbook | None = None):
        self.workbook_path = Path(workbook_path) if workbook_path else config.WORKBOOK_FILE
        self._workbook = workbook
        self._write_lock = threading.RLock()

    @classmethod
    def create(cls, workbook_path: Path, specs: Iterable[SheetSpec] | None = None) -> SheetService:
        """모든 시트를 헤더와 함께 생성한 새 워크북 만들기"""
        wb = Workbook()
        wb.remove(wb.active)
        service = cls(workbook_path, workbook=wb)
        for spec in (specs if specs is not None else config.SHEET_SPECS.values()):
            service.ensure_sheet(spec)
        service.save()
        logger.info(f"워크북 생성 완료: {workbook_path}")
        return service

    @property
    def workbook(self) -> Workbook:
        if self._workbook is None:
            if not self.workbook_path.exists():
                raise FileNotFoundError(f"워크북 파일이 없습니다: {self.workbook_path}")
            logger.debug(f"워크북 로딩: {self.workbook_path}")
            self._workbook = load_workbook(self.workbook_path)
        return self._workbook

    def save(self) -> None:
        """변경 사항을 파일에 저장"""
        with self._write_lock:
            self.workbook_path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(self.workbook_path)
        logger.debug(f"워크북 저장 완료: {self.workbook_path.name}")

    # === 시트 / 헤더 ===

    def has_sheet(self, name: str) -> bool:
        return name in self.workbook.sheetnames

    def header_row_of(self, name: str, header_row: int | None = None) -> int:
        if header_row is not None:
            return header_row
        spec = config.SHEET_SPECS.get(name)
        return spec.header_row if spec else 1

    def get_sheet(self, name: str) -> Worksheet:
        if name not in self.workbook.sheetnames:
            raise SheetNotFoundError(name)
        return self.workbook[name]

    def get_sheet_and_headers(
        self,
        name: str,
        header_row: int | None = None,
    ) -> tuple[Worksheet, list[str]]:
        """시트와 정규화된 헤더 목록 반환

        Raises:
            SheetNotFoundError: 시트가 없는 경우
        """
        ws = self.get_sheet(name)
        row = self.header_row_of(name, header_row)
        headers = [clean_header(cell.value) for cell in ws[row]] if ws.max_row >= row else []
        # 오른쪽 끝의 빈 헤더 제거
        while headers and not headers[-1]:
            headers.pop()
        return ws, headers

    def column_index(self, headers: list[str], key: str) -> int:
        """헤더명(별칭 포함)의 1-based 컬럼 번호

        Raises:
            ValueError: 헤더를 찾지 못한 경우
        """
        actual = resolve_column(headers, key)
        if actual is None:
            raise ValueError(f"필수 헤더 누락: {key}")
        return headers.index(actual) + 1

    def ensure_sheet(self, spec: SheetSpec) -> Worksheet:
        """시트가 없으면 헤더와 함께 생성"""
        if spec.name in self.workbook.sheetnames:
            return self.workbook[spec.name]
        with self._write_lock:
            ws = self.workbook.create_sheet(spec.name)
            for col_idx, header in enumerate(spec.headers, start=1):
                ws.cell(row=spec.header_row, column=col_idx, value=header)
        logger.info(f"시트 생성: {spec.name}")
        return ws

    # === 읽기 ===

    @staticmethod
    def last_data_row(ws: Worksheet, min_row: int = 1) -> int:
        """값이 있는 마지막 행 번호 (없으면 min_row - 1)"""
        for row_idx in range(ws.max_row, min_row - 1, -1):
            for cell in ws[row_idx]:
                if cell.value is not None and cell.value != '':
                    return row_idx
        return min_row - 1

    def read_all_records(self, name: str, header_row: int | None = None) -> list[Record]:
        """시트의 모든 데이터 행을 레코드 목록으로 읽기

        빈 행은 건너뛰며, 빈 셀은 빈 문자열로 채웁니다.
        """
        ws, headers = self.get_sheet_and_headers(name, header_row)
        start_row = self.header_row_of(name, header_row) + 1
        last_row = self.last_data_row(ws, start_row)

        records: list[Record] = []
        if last_row < start_row or not headers:
            return records

        for row_idx, row in enumerate(
            ws.iter_rows(min_row=start_row, max_row=last_row, max_col=len(headers), values_only=True),
            start=start_row,
        ):
            if all(value is None or value == '' for value in row):
                continue
            record: Record = {}
            for header, value in zip(headers, row):
                if header:
                    record[header] = '' if value is None else value
            record[ROW_NUMBER_KEY] = row_idx
            records.append(record)

        logger.debug(f"{name}: {len(records)}건 로드")
        return records

    def read_frame(self, name: str, header_row: int | None = None) -> pd.DataFrame:
        """시트 데이터를 DataFrame으로 읽기 (집계용)"""
        _, headers = self.get_sheet_and_headers(name, header_row)
        records = self.read_all_records(name, header_row)
        columns = [h for h in headers if h] + [ROW_NUMBER_KEY]
        if not records:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(records, columns=columns)

    def find_records_by_key(self, name: str, key: str, value: Any) -> list[Record]:
        """키 컬럼 값이 일치하는 모든 레코드 (문자열 trim 비교)"""
        target = to_key_string(value)
        records = self.read_all_records(name)
        if not records:
            return []
        actual = resolve_column(records[0].keys(), key)
        if actual is None:
            raise ValueError(f"필수 헤더 누락: {key}")
        return [r for r in records if to_key_string(r.get(actual)) == target]

    def find_record_by_key(self, name: str, key: str, value: Any) -> Record | None:
        """키 컬럼 값이 일치하는 첫 번째 레코드 (없으면 None)"""
        matches = self.find_records_by_key(name, key, value)
        return matches[0] if matches else None

    # === 쓰기 ===

    def _row_values(self, headers: list[str], record: Record) -> list[Any]:
        values: list[Any] = [None] * len(headers)
        for key, value in record.items():
            if key.startswith('_'):
                continue
            actual = resolve_column(headers, key)
            if actual is None:
                logger.debug(f"알 수 없는 컬럼 무시: {key}")
                continue
            values[headers.index(actual)] = value
        return values

    def update_record(self, name: str, record: Record) -> bool:
        """레코드의 '_rowNumber' 행에 제공된 컬럼만 기록

        Returns:
            '_rowNumber'가 없으면 False
        """
        row_number = record.get(ROW_NUMBER_KEY)
        if not row_number:
            logger.warning(f"{name}: 행 번호가 없는 레코드는 업데이트할 수 없습니다.")
            return False

        ws, headers = self.get_sheet_and_headers(name)
        with self._write_lock:
            for key, value in record.items():
                if key.startswith('_'):
                    continue
                actual = resolve_column(headers, key)
                if actual is None:
                    logger.debug(f"알 수 없는 컬럼 무시: {key}")
                    continue
                # value=None 인자는 무시되므로 직접 대입해야 셀이 비워짐
                ws.cell(row=int(row_number), column=headers.index(actual) + 1).value = value
        return True

    def update_cell(self, name: str, row_number: int, key: str, value: Any) -> None:
        """단일 셀 기록 (헤더명 기준)"""
        self.update_record(name, {key: value, ROW_NUMBER_KEY: row_number})

    def append_records(self, name: str, records: list[Record]) -> int:
        """레코드 여러 건을 마지막 데이터 행 다음에 추가

        헤더 순서로 정렬되며 없는 컬럼은 비워둡니다.

        Returns:
            첫 번째로 추가된 행 번호 (추가할 레코드가 없으면 0)
        """
        if not records:
            return 0
        ws, headers = self.get_sheet_and_headers(name)
        if not headers:
            raise ValueError(f"'{name}' 시트에 헤더가 없습니다.")

        with self._write_lock:
            first_row = self.last_data_row(ws, self.header_row_of(name) + 1) + 1
            for offset, record in enumerate(records):
                for col_idx, value in enumerate(self._row_values(headers, record), start=1):
                    if value is not None:
                        ws.cell(row=first_row + offset, column=col_idx, value=value)
        return first_row

    def append_record(self, name: str, record: Record) -> int:
        """레코드 1건 추가 후 행 번호 반환"""
        return self.append_records(name, [record])

    def upsert_record(self, name: str, key: str, record: Record) -> int:
        """키가 일치하는 첫 행을 갱신하고, 없으면 추가

        Returns:
            기록된 행 번호
        """
        existing = self.find_record_by_key(name, key, record.get(key, ''))
        if existing is not None:
            row_number = existing[ROW_NUMBER_KEY]
            self.update_record(name, {**record, ROW_NUMBER_KEY: row_number})
            return row_number
        return self.append_record(name, record)

    def delete_rows_where(self, name: str, predicate: Callable[[Record], bool]) -> int:
        """조건을 만족하는 행 삭제 (아래에서 위로)

        Returns:
            삭제된 행 수
        """
        ws = self.get_sheet(name)
        targets = [r[ROW_NUMBER_KEY] for r in self.read_all_records(name) if predicate(r)]
        with self._write_lock:
            for row_number in sorted(targets, reverse=True):
                ws.delete_rows(row_number)
        if targets:
            logger.debug(f"{name}: {len(targets)}행 삭제")
        return len(targets)

    def replace_records(self, name: str, records: list[Record]) -> None:
        """데이터 영역(헤더 제외)을 비우고 레코드를 다시 기록"""
        ws, headers = self.get_sheet_and_headers(name)
        start_row = self.header_row_of(name) + 1

        with self._write_lock:
            if ws.max_row >= start_row:
                ws.delete_rows(start_row, ws.max_row - start_row + 1)
            for offset, record in enumerate(records):
                for col_idx, value in enumerate(self._row_values(headers, record), start=1):
                    if value is not None:
                        ws.cell(row=start_row + offset, column=col_idx, value=value)

    def copy_headers(self, source: str, target: str) -> None:
        """source 시트의 헤더 행을 target 시트에 복사 (없으면 시트 생성)"""
        _, headers = self.get_sheet_and_headers(source)
        with self._write_lock:
            if target in self.workbook.sheetnames:
                ws = self.workbook[target]
            else:
                ws = self.workbook.create_sheet(target)
            row = self.header_row_of(target)
            for col_idx, header in enumerate(headers, start=1):
                ws.cell(row=row, column=col_idx, value=header)

    def is_empty(self, name: str) -> bool:
        """헤더 행까지 포함해 아무 값도 없는 시트인지"""
        ws = self.get_sheet(name)
        return self.last_data_row(ws, 1) == 0
