"""
Exporters Package

Contains exporters for diagnostic output.
"""

from .debug_report import DebugReportExporter

__all__ = ['DebugReportExporter']
