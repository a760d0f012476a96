import pytest

from storyprint.config.paper import load_paper_config
from storyprint.dimensions.calculator import calculate_dimensions, spine_width_mm
from storyprint.errors import UnknownPaperType


def test_default_paper_dimensions():
    dims = calculate_dimensions(32)

    assert dims.page_width_mm == 176
    assert dims.page_height_mm == 246
    assert dims.spine_width_mm == pytest.approx(1.6)
    assert dims.cover_spread_width_mm == pytest.approx(340 + 1.6 + 10)
    assert dims.cover_spread_height_mm == 250


@pytest.mark.parametrize(
    "pages, paper, expected",
    [
        (20, "coated_130", 1.0),
        (21, "coated_130", 1.1),
        (24, "uncoated_90", 1.4),
        (100, "cream_80", 6.4),
        (1, "coated_130", 0.1),
    ],
)
def test_spine_rounds_up_to_tenth_of_mm(pages, paper, expected):
    assert calculate_dimensions(pages, paper).spine_width_mm == pytest.approx(expected)


def test_spine_is_never_thinner_than_stack():
    for pages in range(1, 400):
        assert spine_width_mm(pages, 0.127) >= (pages / 2) * 0.127 - 1e-9


def test_spine_monotonic_for_every_paper():
    config = load_paper_config()
    for key in config.paper_types:
        previous = 0.0
        for pages in range(1, 500):
            spine = calculate_dimensions(pages, key).spine_width_mm
            assert spine >= previous
            previous = spine


def test_cover_spread_covers_both_trims():
    config = load_paper_config()
    for pages in (1, 10, 200):
        dims = calculate_dimensions(pages)
        assert dims.cover_spread_width_mm >= 2 * config.trim_size.width


def test_unknown_paper_type():
    with pytest.raises(UnknownPaperType) as exc:
        calculate_dimensions(32, "glossy_999")
    assert "glossy_999" in str(exc.value)
    assert isinstance(exc.value, ValueError)


def test_page_count_must_be_positive():
    with pytest.raises(ValueError):
        calculate_dimensions(0)


def test_to_dict():
    data = calculate_dimensions(32).to_dict()
    assert set(data) == {
        "page_width_mm",
        "page_height_mm",
        "spine_width_mm",
        "cover_spread_width_mm",
        "cover_spread_height_mm",
    }
