"""
Storage layer exports.
"""

from app.scraping.storage.base import RecordStorage
from app.scraping.storage.excel_storage import ExcelRecordStorage

__all__ = ["ExcelRecordStorage", "RecordStorage"]
