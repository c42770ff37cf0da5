from .audit_service import AuditService
from .batch_service import BatchService
from .export_service import ExcelExportService
from .finished_good_service import FinishedGoodService
from .location_service import LocationService
from .raw_material_service import RawMaterialService
from .report_service import ReportService
from .stock_service import FINISHED_GOOD, RAW_MATERIAL, StockService
from .user_service import UserService
