"""Unit tests for box normalisation into pixel space."""

import pytest

from src.detection.models import (
    BoxEncoding,
    CornerBox,
    DetectedObject,
    DetectionResult,
    ImageSize,
    MarginBox,
    PixelBox,
)
from src.detection.normalizer import build_overlay, normalize, to_pixels

W, H = 500, 400


def assert_box(box, left, top, width, height):
    assert box.left == pytest.approx(left)
    assert box.top == pytest.approx(top)
    assert box.width == pytest.approx(width)
    assert box.height == pytest.approx(height)


class TestMarginForm:
    def test_margin_box(self):
        [box] = normalize(
            [MarginBox(topRow=0.1, leftCol=0.2, bottomRow=0.1, rightCol=0.2)],
            BoxEncoding.MARGIN, W, H,
        )
        assert_box(box, 100, 40, 300, 320)

    def test_margin_box_from_wire_dict(self):
        [box] = normalize(
            [{"top_row": 0.1, "left_col": 0.2, "bottom_row": 0.1, "right_col": 0.2}],
            BoxEncoding.MARGIN, W, H,
        )
        assert_box(box, 100, 40, 300, 320)

    def test_whole_image(self):
        assert_box(to_pixels(MarginBox(), W, H), 0, 0, W, H)


class TestCornerForm:
    def test_corner_box(self):
        [box] = normalize(
            [CornerBox(top_row=0.1, left_col=0.2, bottom_row=0.5, right_col=0.6)],
            BoxEncoding.CORNER, W, H,
        )
        assert_box(box, 100, 40, 200, 160)

    def test_corner_box_from_wire_dict(self):
        [box] = normalize(
            [{"top_row": 0.1, "left_col": 0.2, "bottom_row": 0.5, "right_col": 0.6}],
            BoxEncoding.CORNER, W, H,
        )
        assert_box(box, 100, 40, 200, 160)

    def test_margin_and_corner_agree_after_conversion(self):
        corner = CornerBox(top_row=0.1, left_col=0.2, bottom_row=0.5, right_col=0.6)
        a = to_pixels(corner, W, H)
        b = to_pixels(corner.to_margins(), W, H)
        assert_box(b, a.left, a.top, a.width, a.height)


class TestClamping:
    def test_negative_origin_clamped(self):
        box = to_pixels(CornerBox(top_row=-0.1, left_col=-0.2, bottom_row=0.5, right_col=0.5), W, H)
        assert box.left == 0
        assert box.top == 0

    def test_overflowing_extent_clamped(self):
        box = to_pixels(CornerBox(top_row=0.5, left_col=0.8, bottom_row=1.4, right_col=1.3), W, H)
        assert_box(box, 400, 200, 100, 200)

    def test_inverted_box_has_zero_size(self):
        box = to_pixels(CornerBox(top_row=0.5, left_col=0.6, bottom_row=0.2, right_col=0.1), W, H)
        assert box.width == 0
        assert box.height == 0

    def test_missing_fields_default_to_zero(self):
        [box] = normalize([{"top_row": 0.1}], BoxEncoding.CORNER, W, H)
        assert_box(box, 0, 40, 0, 0)


class TestIdempotence:
    def test_pixel_box_is_unchanged(self):
        original = PixelBox(left=100, top=40, width=300, height=320)
        [again] = normalize([original], BoxEncoding.PIXEL, W, H)
        assert again == original

    def test_normalising_twice_is_noop(self):
        [first] = normalize([MarginBox(top_row=0.1, left_col=0.2, bottom_row=0.1, right_col=0.2)], BoxEncoding.MARGIN, W, H)
        [second] = normalize([first], None, W, H)
        assert second == first


class TestUnavailableSize:
    @pytest.mark.parametrize("width,height", [(None, 400), (500, None), (0, 400), (None, None)])
    def test_no_size_yields_empty(self, width, height):
        assert normalize([MarginBox()], BoxEncoding.MARGIN, width, height) == []

    def test_overlay_without_size_is_empty(self):
        assert build_overlay(DetectionResult(faces=[MarginBox()]), None) == []


class TestEncodingMismatch:
    def test_mixed_encodings_rejected(self):
        with pytest.raises(ValueError):
            normalize([CornerBox()], BoxEncoding.MARGIN, W, H)

    def test_dict_without_encoding_rejected(self):
        with pytest.raises(ValueError):
            normalize([{"top_row": 0.1}], None, W, H)


class TestOverlay:
    def test_faces_then_objects(self):
        result = DetectionResult(
            faces=[MarginBox(top_row=0.1, left_col=0.2, bottom_row=0.1, right_col=0.2)],
            objects=[
                DetectedObject(
                    name="Bicycle",
                    confidence=0.91,
                    box=CornerBox(top_row=0.1, left_col=0.2, bottom_row=0.5, right_col=0.6),
                )
            ],
        )
        overlay = build_overlay(result, ImageSize(width=W, height=H))

        assert [(b.type, b.index) for b in overlay] == [("face", 0), ("object", 0)]
        assert overlay[0].label == "Face 1"
        assert overlay[1].label == "Bicycle 91%"
        assert_box(overlay[1].box, 100, 40, 200, 160)


class TestImageSize:
    def test_display_size_keeps_aspect_ratio(self):
        size = ImageSize.for_display(1000, 800, 500)
        assert (size.width, size.height) == (500, 400)
