from .dashboard_service import DashboardOutput, DashboardService
from .export import export_to_csv, to_csv_text

__all__ = ["DashboardOutput", "DashboardService", "export_to_csv", "to_csv_text"]
