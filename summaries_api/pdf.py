"""A4 PDF rendering of session, group and meeting summaries with reportlab."""

import io
from typing import Iterable, List, Optional, Sequence, Tuple

from django.utils import timezone
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN_X = 50
MARGIN_TOP = 50
MARGIN_BOTTOM = 50
CONTENT_WIDTH = PAGE_WIDTH - (MARGIN_X * 2)

TITLE_FONT = ("Helvetica-Bold", 24)
SUBTITLE_FONT = ("Helvetica", 12)
HEADING_FONT = ("Helvetica-Bold", 16)
SECTION_FONT = ("Helvetica-Bold", 14)
BODY_FONT = ("Helvetica", 10)
BODY_LEADING = 14


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    words = str(text).split()
    if not words:
        return [""]
    lines = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if pdfmetrics.stringWidth(candidate, font_name, font_size) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


class _Writer:
    """Top-down text cursor that starts a new page when it runs out of room."""

    def __init__(self, buffer, title: str):
        self.pdf = canvas.Canvas(buffer, pagesize=A4)
        self.pdf.setTitle(title)
        self.y = PAGE_HEIGHT - MARGIN_TOP

    def _ensure(self, height: float):
        if self.y - height < MARGIN_BOTTOM:
            self.pdf.showPage()
            self.y = PAGE_HEIGHT - MARGIN_TOP

    def centered(self, text: str, font: Tuple[str, float], gap: float):
        self._ensure(font[1] + gap)
        self.pdf.setFont(*font)
        self.pdf.drawCentredString(PAGE_WIDTH / 2, self.y, text)
        self.y -= font[1] + gap

    def heading(self, text: str, font: Tuple[str, float] = SECTION_FONT):
        self._ensure(font[1] + 10)
        self.y -= 6
        self.pdf.setFont(*font)
        self.pdf.drawString(MARGIN_X, self.y, text)
        self.y -= font[1] + 6

    def paragraph(self, text: str, prefix: str = ""):
        font_name, font_size = BODY_FONT
        prefix_width = pdfmetrics.stringWidth(prefix, font_name, font_size)
        for index, line in enumerate(wrap_text(text, font_name, font_size, CONTENT_WIDTH - prefix_width)):
            self._ensure(BODY_LEADING)
            self.pdf.setFont(font_name, font_size)
            lead = prefix if index == 0 else " " * len(prefix)
            self.pdf.drawString(MARGIN_X, self.y, f"{lead}{line}")
            self.y -= BODY_LEADING
        self.y -= 3

    def bullets(self, items: Iterable[str]):
        items = list(items)
        if not items:
            self.paragraph("None recorded.")
        for item in items:
            self.paragraph(item, prefix="• ")

    def finish(self):
        self.pdf.showPage()
        self.pdf.save()


def _render(title: str, details_heading: str, details: Sequence[Tuple[str, str]],
            sections: Sequence[Tuple[str, object]], generated_on=None) -> bytes:
    buffer = io.BytesIO()
    writer = _Writer(buffer, title)
    writer.centered(title, TITLE_FONT, 12)
    generated_on = generated_on or timezone.now()
    writer.centered(f"Generated on: {generated_on.strftime('%Y-%m-%d')}", SUBTITLE_FONT, 20)

    writer.heading(details_heading, HEADING_FONT)
    for label, value in details:
        writer.paragraph(f"{label}: {value}")

    for heading, body in sections:
        writer.heading(heading)
        if isinstance(body, (list, tuple)):
            writer.bullets(body)
        else:
            writer.paragraph(body or "")
    writer.finish()
    return buffer.getvalue()


def _date(value) -> str:
    return value.strftime('%Y-%m-%d') if value else 'N/A'


def render_session_summary_pdf(summary, generated_on=None) -> bytes:
    session = summary.session
    return _render(
        "Session Summary",
        "Session Details",
        [
            ("Date", _date(session.start_time)),
            ("Topic", session.topic.name),
            ("Listener", session.listener.full_name),
            ("User", session.seeker.full_name),
        ],
        [
            ("Key Points Discussed", summary.key_points),
            ("Emotional Tone", summary.emotional_tone),
            ("Action Items", summary.action_items),
            ("Suggested Resources", summary.suggested_resources),
        ],
        generated_on,
    )


def render_group_summary_pdf(summary, generated_on=None) -> bytes:
    group = summary.group
    return _render(
        "Group Discussion Summary",
        "Group Details",
        [
            ("Group Name", group.name),
            ("Date", _date(summary.updated_at or summary.created_at)),
            ("Topic", group.topic.name),
            ("Members", str(group.member_count)),
        ],
        [
            ("Topics Covered", summary.topics_covered),
            ("Group Sentiment", summary.group_sentiment),
            ("Recommended Resources", summary.recommended_resources),
        ],
        generated_on,
    )


def render_meeting_summary_pdf(meeting, summary, generated_on=None) -> bytes:
    group = meeting.group
    details: List[Tuple[str, str]] = [
        ("Meeting", meeting.title),
        ("Group Name", group.name),
        ("Type", meeting.get_type_display()),
        ("Started", _date(meeting.actual_start_time or meeting.scheduled_start_time)),
        ("Ended", _date(meeting.actual_end_time)),
        ("Members", str(group.member_count)),
    ]
    sections: List[Tuple[str, object]] = []
    agenda: Optional[list] = meeting.agenda or None
    if agenda:
        sections.append(("Agenda", agenda))
    sections += [
        ("Topics Covered", summary.topics_covered),
        ("Group Sentiment", summary.group_sentiment),
        ("Recommended Resources", summary.recommended_resources),
    ]
    return _render("Meeting Summary", "Meeting Details", details, sections, generated_on)
