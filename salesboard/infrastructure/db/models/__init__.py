from .sales_data import SalesData
from .upload_history import UploadHistory, UploadHistoryRead

__all__ = ["SalesData", "UploadHistory", "UploadHistoryRead"]
