"""
Scan pipeline: page-by-page extraction, year tagging and auto-save.
"""
import base64
import threading

import httpx
import pytest

from conftest import FakeOpenAI, make_invoker, make_pdf, question, run
from app.core.config import settings
from question_extractor.errors import ExtractionError
from question_extractor.marking_scheme import default_configs
from question_extractor.pdf_renderer import render_pdf_pages
from question_extractor.scan_pipeline import (
    MISSING_FIELDS_MESSAGE,
    PdfUpload,
    ScanSelection,
    scan_uploads,
)


def selection(auto_save=True, enabled=("MCQ",)):
    configs = [c.model_copy(update={"enabled": c.type.value in enabled}) for c in default_configs()]
    return ScanSelection(exam_id="JEE", course_id="c1", slot="1", part="A", question_types=configs, auto_save=auto_save)


def fake_renderer(pages_per_pdf):
    def render(pdf_bytes):
        return [f"page-{i + 1}" for i in range(pages_per_pdf[pdf_bytes])]
    return render


def test_render_pdf_pages_produces_jpeg_per_page():
    images = render_pdf_pages(make_pdf(pages=2), scale=1.0)

    assert len(images) == 2
    for image in images:
        assert base64.b64decode(image)[:2] == b"\xff\xd8"


def test_render_pdf_pages_rejects_garbage():
    with pytest.raises(ValueError):
        render_pdf_pages(b"definitely not a pdf")


def test_scan_requires_all_fields():
    invoker = make_invoker(FakeOpenAI([]), ["k1"])
    uploads = [PdfUpload("a.pdf", b"pdf", "2021")]

    incomplete = selection()
    incomplete.slot = "  "
    with pytest.raises(ValueError, match="Please fill all required fields"):
        run(scan_uploads(uploads, incomplete, invoker))

    with pytest.raises(ValueError, match="Please fill all required fields"):
        run(scan_uploads(uploads, selection(enabled=()), invoker))

    with pytest.raises(ValueError) as exc_info:
        run(scan_uploads([PdfUpload("a.pdf", b"pdf", "")], selection(), invoker))
    assert str(exc_info.value) == MISSING_FIELDS_MESSAGE


def test_scan_rejects_more_than_twenty_pdfs():
    invoker = make_invoker(FakeOpenAI([]), ["k1"])
    uploads = [PdfUpload(f"{i}.pdf", b"pdf", "2020") for i in range(21)]

    with pytest.raises(ValueError, match="At most 20"):
        run(scan_uploads(uploads, selection(), invoker))


def test_scan_limit_follows_settings(monkeypatch):
    invoker = make_invoker(FakeOpenAI([]), ["k1"])
    uploads = [PdfUpload(f"{i}.pdf", b"pdf", "2020") for i in range(3)]

    monkeypatch.setattr(settings, "MAX_UPLOADS", 2)
    with pytest.raises(ValueError, match="At most 2 PDFs"):
        run(scan_uploads(uploads, selection(), invoker))

    with pytest.raises(ValueError, match="At most 1 PDFs"):
        run(scan_uploads(uploads, selection(), invoker, max_uploads=1))


def test_scan_checks_every_year_before_extracting():
    fake = FakeOpenAI([[question("1")]])
    invoker = make_invoker(fake, ["k1"])
    uploads = [PdfUpload("a.pdf", b"first", "2023"), PdfUpload("b.pdf", b"second", "twenty")]
    rendered, saved = [], []

    def renderer(pdf_bytes):
        rendered.append(pdf_bytes)
        return ["page-1"]

    async def save(questions, year):
        saved.append(year)
        return len(questions)

    with pytest.raises(ValueError) as exc_info:
        run(scan_uploads(uploads, selection(), invoker, save=save, renderer=renderer))

    assert str(exc_info.value) == "Year for b.pdf must be a number"
    assert rendered == []
    assert fake.requests == []
    assert saved == []


def test_pages_are_rendered_off_the_event_loop_thread():
    fake = FakeOpenAI([[question("1")]])
    invoker = make_invoker(fake, ["k1"])
    threads = []

    def renderer(pdf_bytes):
        threads.append(threading.get_ident())
        return ["page-1"]

    run(scan_uploads([PdfUpload("a.pdf", b"x", "2020")], selection(auto_save=False), invoker, renderer=renderer))

    assert threads and threads[0] != threading.get_ident()


def test_scan_walks_pages_in_order_with_fresh_memory_per_pdf():
    fake = FakeOpenAI([
        [question("1"), question("2")],
        [question("3")],
        [question("1")],
    ])
    invoker = make_invoker(fake, ["k1"])
    uploads = [PdfUpload("a.pdf", b"first", "2021"), PdfUpload("b.pdf", b"second", "2022")]
    saved = []

    async def save(questions, year):
        saved.append((year, [q.question_number for q in questions]))
        return len(questions)

    result = run(scan_uploads(uploads, selection(), invoker, save=save,
                              renderer=fake_renderer({b"first": 2, b"second": 1})))

    assert [(q.question_number, q.year) for q in result.questions] == [("1", 2021), ("2", 2021), ("3", 2021), ("1", 2022)]
    assert result.pdf_count == 2
    assert result.saved_count == 4
    assert result.auto_saved is True
    assert saved == [("2021", ["1", "2", "3"]), ("2022", ["1"])]

    prompts = [b["messages"][0]["content"][0]["text"] for b in fake.bodies()]
    images = [b["messages"][0]["content"][1]["image_url"]["url"] for b in fake.bodies()]
    assert images == ["data:image/jpeg;base64,page-1", "data:image/jpeg;base64,page-2", "data:image/jpeg;base64,page-1"]

    # Page 2 sees page 1 in memory and the questions found there
    assert "Previous context: Questions extracted from the previous page: 1, 2" in prompts[1]
    assert "Page 1: Page 1 context" in prompts[1]
    # The second PDF starts with an empty memory
    assert "Recent pages context" not in prompts[2]
    assert "Previous context" not in prompts[2]


def test_scan_without_auto_save_does_not_save():
    fake = FakeOpenAI([[question("1")]])
    invoker = make_invoker(fake, ["k1"])
    calls = []

    async def save(questions, year):
        calls.append(year)
        return len(questions)

    result = run(scan_uploads([PdfUpload("a.pdf", b"x", "2020")], selection(auto_save=False), invoker,
                              save=save, renderer=fake_renderer({b"x": 1})))

    assert calls == []
    assert result.auto_saved is False
    assert len(result.questions) == 1


def test_scan_stops_on_terminal_extraction_error():
    fake = FakeOpenAI([httpx.Response(500), httpx.Response(500)])
    invoker = make_invoker(fake, ["k1", "k2"])

    with pytest.raises(ExtractionError, match="All 2 extraction attempts failed"):
        run(scan_uploads([PdfUpload("a.pdf", b"x", "2020")], selection(), invoker,
                         renderer=fake_renderer({b"x": 3})))

    assert len(fake.requests) == 2
