"""Google Sheets API wrapper."""

import logging
import urllib.parse
from typing import Union

from workspace_functions.exceptions import APIClientError
from workspace_functions.google.base import GoogleAPIClient

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"

CellValue = Union[str, int, float, bool, None]
SheetData = list[list[CellValue]]


def _values_url(spreadsheet_id: str, range_notation: str, suffix: str = "") -> str:
    quoted = urllib.parse.quote(range_notation, safe="!:")
    return f"{SHEETS_API_BASE}/{spreadsheet_id}/values/{quoted}{suffix}"


class SheetsService(GoogleAPIClient):
    """Reads and writes cell ranges."""

    service = "sheets"

    async def initialize(self) -> None:
        """Probe API access. Never fails: the probe spreadsheet may not exist."""
        try:
            await self._get_json(f"{SHEETS_API_BASE}/test")
        except APIClientError:
            pass
        logger.info("Sheets service initialized successfully")

    async def read_data(self, spreadsheet_id: str, range_notation: str) -> SheetData:
        data = await self._get_json(_values_url(spreadsheet_id, range_notation))
        values = data.get("values", [])
        logger.info(f"Read {len(values)} rows from sheet {range_notation}")
        return values

    async def write_data(
        self, spreadsheet_id: str, range_notation: str, data: SheetData
    ) -> None:
        await self._request(
            "PUT",
            _values_url(spreadsheet_id, range_notation),
            params={"valueInputOption": "RAW"},
            json={"values": data},
        )
        logger.info(f"Wrote {len(data)} rows to sheet {range_notation}")

    async def append_data(
        self, spreadsheet_id: str, range_notation: str, data: SheetData
    ) -> None:
        await self._request(
            "POST",
            _values_url(spreadsheet_id, range_notation, ":append"),
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": data},
        )
        logger.info(f"Appended {len(data)} rows to sheet {range_notation}")

    async def clear_data(self, spreadsheet_id: str, range_notation: str) -> None:
        await self._request("POST", _values_url(spreadsheet_id, range_notation, ":clear"))
        logger.info(f"Cleared data from sheet {range_notation}")
