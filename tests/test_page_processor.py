import os

import pytest
from pypdf import PdfReader

from conftest import page_labels
from storyprint.errors import SourceDocumentUnreadable
from storyprint.layout.page_processor import PageLayoutProcessor, remap_pages, reorder_for_binding


def test_reorder_moves_odd_image_pages_forward():
    order, pairs = reorder_for_binding(10, {6, 7, 9})

    assert pairs == [(7, 8), (9, 10)]
    assert [i + 1 for i in order] == [1, 2, 3, 4, 5, 6, 8, 7, 10, 9]
    assert remap_pages({6, 7, 9}, order) == [6, 8, 10]


def test_reorder_leaves_front_matter_alone():
    order, pairs = reorder_for_binding(12, {1, 3, 5})
    assert pairs == []
    assert order == list(range(12))


def test_reorder_skips_image_on_last_page():
    order, pairs = reorder_for_binding(9, {9})
    assert pairs == []
    assert order == list(range(9))


def test_reorder_adjacent_image_pages_swap_as_a_pair():
    # 7 and 8 exchange places; the image on 8 lands on 7
    order, pairs = reorder_for_binding(10, {7, 8})
    assert pairs == [(7, 8)]
    assert remap_pages({7, 8}, order) == [7, 8]


def test_detect_image_pages(make_pdf):
    path = make_pdf("interior.pdf", 10, image_pages=(6, 8))
    assert PageLayoutProcessor().detect_image_pages(path) == {6, 8}


def test_detect_image_pages_text_only(make_pdf):
    path = make_pdf("text.pdf", 4)
    assert PageLayoutProcessor().detect_image_pages(path) == set()


def test_detect_falls_back_to_resource_scan(make_pdf, monkeypatch):
    path = make_pdf("interior.pdf", 8, image_pages=(7,))
    processor = PageLayoutProcessor()
    monkeypatch.setattr(processor, "_detect_with_plumber", lambda p: set())
    assert processor.detect_image_pages(path) == {7}


def test_detect_missing_file(tmp_path):
    with pytest.raises(SourceDocumentUnreadable):
        PageLayoutProcessor().detect_image_pages(tmp_path / "nope.pdf")


def test_detect_large_image_pages(make_pdf):
    path = make_pdf("interior.pdf", 8, image_pages=(6,))
    processor = PageLayoutProcessor()
    assert processor.detect_large_image_pages(path) == {6}
    assert processor.detect_large_image_pages(path, image_threshold=1) == set()


def test_process_pages_fixes_binding_order(make_pdf, tmp_path):
    source = make_pdf("interior.pdf", 10, image_pages=(6, 7, 9))
    out = tmp_path / "out" / "interior_post-page-processing.pdf"

    result = PageLayoutProcessor().process_pages(source, out)

    assert result.original_page_count == result.final_page_count == 10
    assert result.reordered_pairs == [(7, 8), (9, 10)]
    assert result.pages_reordered == 4
    assert result.image_pages_detected == [6, 7, 9]
    assert result.final_image_pages == [6, 8, 10]
    assert result.processed_file_path == str(out)
    assert page_labels(out) == [f"Page {n}" for n in (1, 2, 3, 4, 5, 6, 8, 7, 10, 9)]
    assert PageLayoutProcessor().detect_image_pages(out) == {6, 8, 10}


def test_process_pages_story_sample(make_pdf, tmp_path):
    # 5 front matter pages, image 6, text 7-8, image 9, text 10-11
    source = make_pdf("story.pdf", 11, image_pages=(6, 9))
    result = PageLayoutProcessor().process_pages(source, tmp_path / "processed.pdf")

    assert result.reordered_pairs == [(9, 10)]
    assert result.final_image_pages == [6, 10]
    assert len(PdfReader(result.processed_file_path).pages) == 11


def test_process_pages_without_images_copies_in_order(make_pdf, tmp_path):
    source = make_pdf("plain.pdf", 6)
    result = PageLayoutProcessor().process_pages(source, tmp_path / "plain-out.pdf")
    assert result.reordered_pairs == []
    assert page_labels(result.processed_file_path) == [f"Page {n}" for n in range(1, 7)]


def test_process_pages_unreadable_source_writes_nothing(tmp_path):
    source = tmp_path / "broken.pdf"
    source.write_bytes(b"this is not a pdf")
    out = tmp_path / "out.pdf"

    with pytest.raises(SourceDocumentUnreadable):
        PageLayoutProcessor().process_pages(source, out)
    assert not out.exists()
    assert not os.path.exists(str(out) + ".part")


def test_validate_page_layout_ok(make_pdf):
    report = PageLayoutProcessor().validate_page_layout(make_pdf("ok.pdf", 12))
    assert report.is_valid
    assert report.issues == []


def test_validate_page_layout_flags_short_and_odd(make_pdf):
    report = PageLayoutProcessor().validate_page_layout(make_pdf("short.pdf", 5))
    assert not report.is_valid
    assert any("unusually few pages" in issue for issue in report.issues)
    assert any("odd page count" in issue for issue in report.issues)


def test_validate_page_layout_unreadable(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"%PDF-garbage")
    report = PageLayoutProcessor().validate_page_layout(path)
    assert not report.is_valid
    assert len(report.issues) == 1
    assert report.issues[0].startswith("Failed to validate page layout")
