import json
from io import BytesIO
from typing import List, Optional

import pytest
from pptx import Presentation
from pptx.util import Inches

from speakerguide.guide_store import GuideSession
from speakerguide.llm import GenerationBackend
from speakerguide.pipeline import Pipeline, RunConfig


def guide_dict(slide_number: int, **overrides) -> dict:
    data = {
        "slideNumber": slide_number,
        "title": f"Slide {slide_number} title",
        "keyTalkingPoints": [
            f"Point A for slide {slide_number}",
            f"Point B for slide {slide_number}",
            f"Point C for slide {slide_number}",
        ],
        "transitionStatement": "Now let's move on.",
        "emphasisTopic": "The key message",
        "keywords": ["alpha", "beta", "gamma"],
        "stats": [],
        "speakerReminder": {"timing": "90 seconds", "energy": "Medium"},
    }
    data.update(overrides)
    return data


def guides_json(count: int) -> str:
    return json.dumps([guide_dict(i) for i in range(1, count + 1)])


class FakeBackend(GenerationBackend):
    """Replays canned completions (strings) or raises canned exceptions, in order."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(request)
        return item


def make_pdf(pages: List[Optional[str]]) -> bytes:
    """Minimal PDF with one Helvetica text line per page; None/"" gives a blank page."""
    objs = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        3: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    kids = []
    next_id = 4
    for text in pages:
        page_id, content_id = next_id, next_id + 1
        next_id += 2
        kids.append(page_id)
        stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1") if text else b""
        objs[content_id] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        objs[page_id] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
        ).encode("latin-1")
    kid_refs = " ".join(f"{k} 0 R" for k in kids)
    objs[2] = f"<< /Type /Pages /Kids [{kid_refs}] /Count {len(kids)} >>".encode("latin-1")

    out = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for i in range(1, next_id):
        offsets[i] = len(out)
        out += b"%d 0 obj\n" % i + objs[i] + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % next_id
    out += b"0000000000 65535 f \n"
    for i in range(1, next_id):
        out += b"%010d 00000 n \n" % offsets[i]
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (next_id, xref)
    return bytes(out)


def make_pptx() -> bytes:
    """Three slides: title + subtitle, blank, and a table plus a grouped text box."""
    prs = Presentation()
    first = prs.slides.add_slide(prs.slide_layouts[0])
    first.shapes.title.text = "Welcome to Acme"
    first.placeholders[1].text = "Pitch deck"

    prs.slides.add_slide(prs.slide_layouts[6])

    third = prs.slides.add_slide(prs.slide_layouts[6])
    table = third.shapes.add_table(2, 2, Inches(1), Inches(1), Inches(4), Inches(1)).table
    table.cell(0, 0).text = "Revenue"
    table.cell(0, 1).text = "$2.3B"
    table.cell(1, 0).text = "Growth"
    table.cell(1, 1).text = "73%"
    group = third.shapes.add_group_shape()
    box = group.shapes.add_textbox(Inches(1), Inches(3), Inches(4), Inches(1))
    box.text_frame.text = "Grouped note"

    buf = BytesIO()
    prs.save(buf)
    return buf.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf(["Welcome to Acme", None, "Traction and revenue"])


@pytest.fixture
def pptx_bytes() -> bytes:
    return make_pptx()


@pytest.fixture
def session() -> GuideSession:
    return GuideSession()


@pytest.fixture
def make_pipeline(session):
    def _make(*responses, retries: int = 0) -> Pipeline:
        pipeline = Pipeline(RunConfig(retries=retries), FakeBackend(*responses), session=session)
        pipeline._sleep = lambda seconds: None
        return pipeline

    return _make
