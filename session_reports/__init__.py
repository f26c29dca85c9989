from __future__ import annotations  # Session report package exports

from .pdf import ReportPDF, render_session_pdf

__all__ = ["ReportPDF", "render_session_pdf"]
