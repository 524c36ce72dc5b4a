"""Report export: Markdown, plain text and PDF renderings of a security report."""

from __future__ import annotations

import io
import re
from datetime import date, datetime, timezone
from typing import Optional

from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

import config
from sanitize import sanitize_markdown, sanitize_text


MARKDOWN_CONTENT_TYPE = "text/markdown; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
PDF_CONTENT_TYPE = "application/pdf"

# Fenced blocks must go before inline code, otherwise the backtick pairs eat the fences.
_PLAIN_TEXT_RULES = (
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"^#+\s+", re.MULTILINE), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"`(.*?)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"^-\s+", re.MULTILINE), "• "),
    (re.compile(r"^\d+\.\s+", re.MULTILINE), ""),
)

# A4 in points and the body layout.
PAGE_SIZE = (595, 842)
MARGIN = 50
MAX_LINE_WIDTH = 495
BODY_FONT = "Helvetica"
TITLE_FONT = "Helvetica-Bold"
BODY_FONT_SIZE = 11
LINE_HEIGHT = 14
BODY_TOP = 710
PAGE_TOP = 800
PAGE_BOTTOM = 50


def generate_filename(extension: str, repository_name: Optional[str] = "report", today: Optional[date] = None) -> str:
    stamp = (today or datetime.now(timezone.utc).date()).strftime("%Y%m%d")
    base = str(repository_name or "report")
    safe_name = re.sub(r"[^a-z0-9]", "_", base, flags=re.IGNORECASE).lower()
    return f"{config.REPORT_FILENAME_PREFIX}_{safe_name}_{stamp}.{extension}"


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'


def prepare_markdown(markdown: str) -> str:
    return sanitize_markdown(markdown)


def markdown_to_plain_text(markdown: str, escape_html: bool = True) -> str:
    """Strip markdown syntax; HTML-escape the result unless it is headed for a PDF canvas."""
    if not markdown or not isinstance(markdown, str):
        return ""
    plain = markdown
    for pattern, replacement in _PLAIN_TEXT_RULES:
        plain = pattern.sub(replacement, plain)
    return sanitize_text(plain) if escape_html else plain


def wrap_line(line: str, font: str = BODY_FONT, size: int = BODY_FONT_SIZE, max_width: float = MAX_LINE_WIDTH) -> list[str]:
    """Greedy word wrap by rendered width. A single overlong word stays on its own line."""
    wrapped: list[str] = []
    current = ""
    for word in line.split(" "):
        candidate = f"{current} {word}" if current else word
        if current and stringWidth(candidate, font, size) > max_width:
            wrapped.append(current)
            current = word
        else:
            current = candidate
    wrapped.append(current)
    return wrapped


class PdfReportWriter:
    def __init__(self, repository_name: Optional[str] = None, generated: Optional[date] = None) -> None:
        self.repository_name = repository_name
        self.generated = generated or datetime.now(timezone.utc).date()
        self.buffer = io.BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=PAGE_SIZE)
        self.canvas.setTitle(config.REPORT_TITLE)
        self.page_count = 1
        self.y = BODY_TOP

    def _new_page(self) -> None:
        self.canvas.showPage()
        self.page_count += 1
        self.y = PAGE_TOP

    def _draw_header(self) -> None:
        c = self.canvas
        c.setFont(TITLE_FONT, 20)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(MARGIN, 800, config.REPORT_TITLE)

        if self.repository_name:
            c.setFont(BODY_FONT, 12)
            c.setFillColorRGB(0.3, 0.3, 0.3)
            c.drawString(MARGIN, 770, f"Repository: {self.repository_name}")

        c.setFont(BODY_FONT, 10)
        c.setFillColorRGB(0.5, 0.5, 0.5)
        c.drawString(MARGIN, 750, f"Generated: {self.generated.strftime('%m/%d/%Y')}")

        c.setStrokeColorRGB(0.8, 0.8, 0.8)
        c.setLineWidth(1)
        c.line(MARGIN, 735, PAGE_SIZE[0] - MARGIN, 735)

    def _draw_body_line(self, text: str) -> None:
        self.canvas.setFont(BODY_FONT, BODY_FONT_SIZE)
        self.canvas.setFillColorRGB(0, 0, 0)
        self.canvas.drawString(MARGIN, self.y, text)
        self.y -= LINE_HEIGHT

    def render(self, plain_text: str) -> bytes:
        self._draw_header()
        for line in plain_text.split("\n"):
            if self.y < PAGE_BOTTOM:
                self._new_page()
            segments = wrap_line(line)
            for index, segment in enumerate(segments):
                is_last = index == len(segments) - 1
                if is_last and not segment.strip():
                    # Blank lines only advance half a line.
                    self.y -= LINE_HEIGHT * 0.5
                    continue
                self._draw_body_line(segment)
                if not is_last and self.y < PAGE_BOTTOM:
                    self._new_page()
        self.canvas.save()
        return self.buffer.getvalue()


def render_pdf(report: str, repository_name: Optional[str] = None, generated: Optional[date] = None) -> bytes:
    writer = PdfReportWriter(repository_name=repository_name, generated=generated)
    return writer.render(markdown_to_plain_text(report, escape_html=False))
