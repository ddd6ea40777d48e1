"""Unit tests for page assignment of layout blocks and text wrapping."""

import pytest
from PIL import ImageFont

from resumark.contexts.rendering.exceptions import RasterizationFailure, UnsupportedContentError
from resumark.contexts.rendering.rasterizer import LayoutBlock, merge_blocks, paginate, wrap_text


def blocks(count, height=1.0, **kwargs):
    return [LayoutBlock(height=height, excerpt=f"block {i}", **kwargs) for i in range(count)]


@pytest.mark.unit
def test_forty_units_at_capacity_twenty_five():
    pages = paginate(blocks(40), capacity=25)

    assert [len(page) for page in pages] == [25, 15]


@pytest.mark.unit
def test_empty_input_yields_one_empty_page():
    assert paginate([], capacity=100) == [[]]


@pytest.mark.unit
def test_block_order_is_preserved():
    source = blocks(12, height=3.0)
    pages = paginate(source, capacity=10)

    flattened = [block for page in pages for block in page]
    assert flattened == source


@pytest.mark.unit
def test_oversized_block_raises_unsupported_content():
    tall = LayoutBlock(height=30.0, excerpt="A very long paragraph")

    with pytest.raises(UnsupportedContentError) as exc_info:
        paginate(blocks(2) + [tall], capacity=25)

    assert exc_info.value.unit_height == 30.0
    assert exc_info.value.capacity == 25
    assert isinstance(exc_info.value, RasterizationFailure)


@pytest.mark.unit
def test_block_exactly_at_capacity_fits():
    assert len(paginate([LayoutBlock(height=25.0)], capacity=25)) == 1


@pytest.mark.unit
def test_space_before_dropped_at_top_of_page():
    first = LayoutBlock(height=5.0)
    second = LayoutBlock(height=5.0, space_before=2.0)
    third = LayoutBlock(height=5.0)

    pages = paginate([first, second, third], capacity=10)

    assert pages == [[first], [second, third]]


@pytest.mark.unit
def test_heading_moves_with_following_block():
    body = LayoutBlock(height=6.0, excerpt="body")
    heading = LayoutBlock(height=1.0, keep_with_next=True, excerpt="heading")
    entry = LayoutBlock(height=4.0, excerpt="entry")

    pages = paginate([body, heading, entry], capacity=10)

    assert pages == [[body], [heading, entry]]


@pytest.mark.unit
def test_heading_alone_on_page_is_not_carried():
    """A page is never emptied to honor keep_with_next."""
    heading = LayoutBlock(height=2.0, keep_with_next=True)
    entry = LayoutBlock(height=9.0)

    pages = paginate([heading, entry], capacity=10)

    assert pages == [[heading], [entry]]


@pytest.mark.unit
def test_carried_blocks_stay_when_they_would_not_fit_with_next():
    body = LayoutBlock(height=2.0)
    heading = LayoutBlock(height=3.0, keep_with_next=True)
    entry = LayoutBlock(height=8.0)

    pages = paginate([body, heading, entry], capacity=10)

    assert pages == [[body, heading], [entry]]


@pytest.mark.unit
def test_merge_blocks_stacks_lines_and_heights():
    first = LayoutBlock(height=2.0, space_before=1.0, excerpt="first")
    second = LayoutBlock(height=3.0, space_before=0.5)

    merged = merge_blocks([first, second], keep_with_next=True)

    assert merged.height == pytest.approx(5.5)
    assert merged.space_before == 1.0
    assert merged.keep_with_next
    assert merged.excerpt == "first"


@pytest.fixture
def body_font():
    return ImageFont.load_default(size=12)


@pytest.mark.unit
def test_wrap_text_keeps_explicit_newlines(body_font):
    assert wrap_text("first\n\nsecond", body_font, 500) == ["first", "", "second"]


@pytest.mark.unit
def test_wrap_text_breaks_between_words(body_font):
    lines = wrap_text("alpha beta gamma delta epsilon zeta eta theta", body_font, 80)

    assert len(lines) > 1
    assert " ".join(lines) == "alpha beta gamma delta epsilon zeta eta theta"
    assert all(body_font.getlength(line) <= 80 for line in lines)


@pytest.mark.unit
def test_wrap_text_hard_breaks_word_wider_than_column(body_font):
    url = "https://example.com/" + "very-long-path-segment/" * 8

    lines = wrap_text(f"Link: {url}", body_font, 120)

    assert lines[0] == "Link:"
    assert "".join(lines[1:]) == url
    assert all(body_font.getlength(line) <= 120 for line in lines)
