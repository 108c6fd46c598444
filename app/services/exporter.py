"""
Export service: assemble a project's sections into a .docx or .pptx file.

Pure and synchronous.  Sections are rendered in the order given (callers pass
them sorted by ``order_index``); a section without content gets an empty body.

Public API
----------
export_docx(topic, sections)                 -> bytes
export_pptx(topic, sections)                 -> bytes
export_project(topic, document_type, sections) -> ExportedFile
"""
from __future__ import annotations

import dataclasses
import io
import logging
from typing import Iterable, List, Optional, Sequence

from docx import Document
from pptx import Presentation
from pptx.enum.text import PP_ALIGN
from pptx.util import Emu, Inches, Pt

logger = logging.getLogger(__name__)


DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# 16:9 deck, 10 x 5.625 in
SLIDE_WIDTH = Inches(10)
SLIDE_HEIGHT = Inches(5.625)
BLANK_LAYOUT_INDEX = 6


@dataclasses.dataclass
class ExportSection:
    """Title and (possibly missing) body of one section, in render order."""

    title: str
    content: Optional[str] = None


@dataclasses.dataclass
class ExportedFile:
    """Returned by export_project."""

    filename: str
    media_type: str
    data: bytes


def _normalise(sections: Iterable) -> List[ExportSection]:
    result: List[ExportSection] = []
    for item in sections:
        if isinstance(item, ExportSection):
            result.append(item)
        elif isinstance(item, tuple):
            title, content = item
            result.append(ExportSection(title=title, content=content))
        else:
            result.append(ExportSection(title=item.title, content=item.content))
    return result


# ---------------------------------------------------------------------------
# Word document
# ---------------------------------------------------------------------------

def export_docx(topic: str, sections: Sequence) -> bytes:
    """Level-1 heading for the topic, then heading + body paragraph per section."""
    doc = Document()
    doc.add_heading(topic, level=1)

    for section in _normalise(sections):
        doc.add_heading(section.title, level=2)
        doc.add_paragraph(section.content or "")

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Slide deck
# ---------------------------------------------------------------------------

def _add_text(
    slide,
    text: str,
    *,
    left: int,
    top: int,
    width: int,
    height: int,
    size: int,
    bold: bool = False,
    align=None,
) -> None:
    box = slide.shapes.add_textbox(left, top, width, height)
    frame = box.text_frame
    frame.word_wrap = True
    frame.text = text

    for paragraph in frame.paragraphs:
        if align is not None:
            paragraph.alignment = align
        paragraph.font.size = Pt(size)
        paragraph.font.bold = bold
        for run in paragraph.runs:
            run.font.size = Pt(size)
            run.font.bold = bold


def export_pptx(topic: str, sections: Sequence) -> bytes:
    """Title slide bearing the topic, then one slide per section."""
    prs = Presentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT
    layout = prs.slide_layouts[BLANK_LAYOUT_INDEX]
    content_width = Emu(int(SLIDE_WIDTH * 0.9))

    title_slide = prs.slides.add_slide(layout)
    _add_text(
        title_slide,
        topic,
        left=Inches(0.5),
        top=Inches(2),
        width=content_width,
        height=Inches(1.5),
        size=44,
        bold=True,
        align=PP_ALIGN.CENTER,
    )

    for section in _normalise(sections):
        slide = prs.slides.add_slide(layout)
        _add_text(
            slide,
            section.title,
            left=Inches(0.5),
            top=Inches(0.5),
            width=content_width,
            height=Inches(1),
            size=32,
            bold=True,
        )
        _add_text(
            slide,
            section.content or "",
            left=Inches(0.5),
            top=Inches(1.5),
            width=content_width,
            height=Inches(4),
            size=16,
        )

    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

_EXPORTERS = {
    "docx": (export_docx, DOCX_MEDIA_TYPE),
    "pptx": (export_pptx, PPTX_MEDIA_TYPE),
}


def export_project(topic: str, document_type, sections: Sequence) -> ExportedFile:
    """
    Render *sections* in the format selected by *document_type*.

    Raises ValueError for an unknown document type.
    """
    kind = str(getattr(document_type, "value", document_type))
    if kind not in _EXPORTERS:
        raise ValueError(f"Unsupported document type: {kind!r}")

    render, media_type = _EXPORTERS[kind]
    items = _normalise(sections)
    data = render(topic, items)
    logger.info("Exported %s with %d sections (%d bytes)", kind, len(items), len(data))

    return ExportedFile(filename=f"{topic}.{kind}", media_type=media_type, data=data)
