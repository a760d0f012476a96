from storyprint.layout.page_estimation import (
    calculate_chapter_layout,
    estimate_chapter_pages,
    strip_html_tags,
)
from storyprint.models import Chapter


def test_strip_html_tags():
    assert strip_html_tags("<p>Tom &amp; Jerry&nbsp;ran</p>") == "Tom & Jerry ran"


def test_estimate_chapter_pages_boundaries():
    assert estimate_chapter_pages("", "children-3-6") == 1
    assert estimate_chapter_pages("<p>" + "a" * 565 + "</p>", "children-3-6") == 1
    assert estimate_chapter_pages("a" * 566, "children-3-6") == 2
    assert estimate_chapter_pages("a" * (565 + 800), "children-3-6") == 2
    assert estimate_chapter_pages("a" * (565 + 801), "children-3-6") == 3


def test_unknown_audience_uses_all_ages():
    text = "a" * 1481
    assert estimate_chapter_pages(text, "martians") == estimate_chapter_pages(text, "all-ages") == 2


def test_audience_underscores_normalised():
    assert estimate_chapter_pages("a" * 566, "children_3_6") == 2


def test_layout_places_images_on_even_pages():
    chapters = [
        {"content": "a" * 2000},  # 2 content pages for children-7-10
        Chapter(title="Two", content="short"),
    ]
    layout = calculate_chapter_layout(chapters, "children-7-10")

    first, second = layout.layouts
    assert (first.image_page_number, first.content_start_page, first.content_end_page) == (6, 7, 8)
    assert not first.needs_blank_page
    assert second.needs_blank_page
    assert (second.image_page_number, second.content_start_page) == (10, 11)
    assert layout.total_pages == 11


def test_layout_empty_story():
    assert calculate_chapter_layout([], None).total_pages == 5
