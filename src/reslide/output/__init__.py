from .report import EraseReport, ReportRegion, build_erase_report, write_erase_report

__all__ = [
    'EraseReport',
    'ReportRegion',
    'build_erase_report',
    'write_erase_report',
]
