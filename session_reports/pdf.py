from __future__ import annotations  # Styled PDF rendering for evaluated interview sessions

from datetime import datetime
from typing import Any, List, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from interview_session.models import Question, SessionView

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background

CATEGORY_LABELS = (
    ("technical", "Technical"),
    ("behavioral", "Behavioral"),
    ("soft_skills", "Communication"),
)


def _parse_datetime(value: str | None) -> datetime | None:  # Parse ISO timestamp, tolerating bad values
    if not value:
        return None
    try:
        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _format_datetime(value: str | None) -> str:
    parsed = _parse_datetime(value)
    if parsed is None:
        return "-"
    return parsed.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _score(value: float) -> str:
    return f"{float(value):.1f}/10"


class ReportPDF(FPDF):  # PDF with banner header and paginated footer
    def __init__(self, title: str, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.header_title = title

    @staticmethod
    def clean(text: Any) -> str:  # Core fonts only cover latin-1
        value = "" if text is None else str(text)
        return value.replace("•", "-").encode("latin-1", "ignore").decode("latin-1")

    def header(self) -> None:
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_fill_color(*ACCENT)
            self.rect(0, 0, self.w, 22, style="F")
            self.set_text_color(255, 255, 255)
            self.set_font("Helvetica", "B", 16)
            self.set_xy(self.l_margin, 7)
            self.cell(usable, 8, self.clean(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_text_color(*TEXT)
            self.set_y(28)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font("Helvetica", "B", 12)
            self.cell(usable, 6, self.clean(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            mark = self.get_y()
            self.set_draw_color(*ACCENT)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font("Helvetica", "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")

    def paragraph(self, text: str, *, size: int = 11, color: Tuple[int, int, int] = TEXT, style: str = "") -> None:
        self.set_x(self.l_margin)
        self.set_text_color(*color)
        self.set_font("Helvetica", style, size)
        self.multi_cell(_effective_width(self), 6, self.clean(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _section_title(pdf: ReportPDF, title: str) -> None:
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 9, pdf.clean(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: Sequence[Tuple[str, str]]) -> None:  # Two-column label/value grid
    col = _effective_width(pdf) / 2.0
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font("Helvetica", "", 10)
        pdf.cell(col, 6, pdf.clean(left[0]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, pdf.clean(right[0]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(*TEXT)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(col, 6, pdf.clean(left[1]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, pdf.clean(right[1]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _bullets(pdf: ReportPDF, label: str, items: List[str]) -> None:
    pdf.paragraph(label, size=10, style="B")
    if not items:
        pdf.paragraph("- none recorded", size=10, color=MUTED)
        return
    for item in items:
        pdf.paragraph(f"- {item}", size=10)


def _render_question(pdf: ReportPDF, number: int, question: Question) -> None:
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.set_x(pdf.l_margin)
    pdf.set_font("Helvetica", "B", 11)
    pdf.multi_cell(
        _effective_width(pdf),
        7,
        pdf.clean(f"Q{number}. {question.text}"),
        fill=True,
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )
    if not question.is_answered:
        pdf.paragraph("Not answered.", size=10, color=MUTED)
        pdf.ln(3)
        return
    pdf.paragraph("Answer", size=10, style="B")
    pdf.paragraph(question.answer_content() or "-", size=10)
    categories = ", ".join(
        f"{label} {_score(question.ai_category_scores.get(key, 0.0))}" for key, label in CATEGORY_LABELS
    )
    pdf.paragraph(f"Score {_score(question.ai_score)}  |  {categories}", size=10, color=ACCENT, style="B")
    pdf.paragraph(question.ai_feedback_summary or "-", size=10)
    _bullets(pdf, "Strengths", question.ai_strengths)
    _bullets(pdf, "Areas for improvement", question.ai_areas_for_improvement)
    pdf.ln(3)


def render_session_pdf(session: SessionView) -> bytes:
    """Render the feedback report for an evaluated session as PDF bytes."""

    pdf = ReportPDF(title="Mock Interview Feedback", format="A4")
    pdf.set_margins(16, 16, 16)
    pdf.set_auto_page_break(auto=True, margin=18)
    pdf.add_page()

    _section_title(pdf, "Overview")
    answered = sum(1 for item in session.questions if item.is_answered)
    _meta_block(
        pdf,
        [
            ("Roles", ", ".join(session.job_titles) or "-"),
            ("Skills", ", ".join(session.skill_names) or "-"),
            ("Started", _format_datetime(session.start_time)),
            ("Finished", _format_datetime(session.end_time)),
            ("Overall score", _score(session.overall_score)),
            ("Answered", f"{answered} of {len(session.questions)}"),
        ],
    )

    _section_title(pdf, "Questions")
    for number, question in enumerate(session.questions, start=1):
        _render_question(pdf, number, question)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "render_session_pdf"]
