import pytest

from pinpoint.coordinates import (
    OriginConvention, PageDimensions, ViewportTransform,
    canonical_to_screen, canonical_to_user, canonical_to_view, clamp_to_page,
    screen_delta_to_canonical, screen_to_canonical, user_axis_to_canonical,
    user_to_canonical, view_to_canonical,
)

LETTER = PageDimensions(612, 792)


@pytest.mark.parametrize("origin, expected", [
    (OriginConvention.TOP_LEFT, (100, 92)),
    (OriginConvention.TOP_RIGHT, (512, 92)),
    (OriginConvention.BOTTOM_RIGHT, (512, 700)),
    (OriginConvention.BOTTOM_LEFT, (100, 700)),
])
def test_canonical_to_user_letter_page(origin, expected):
    assert canonical_to_user(100, 700, origin, LETTER) == expected


@pytest.mark.parametrize("origin", list(OriginConvention))
@pytest.mark.parametrize("point", [(0, 0), (100, 700), (612, 792), (33.3, 0.25), (-5, 900)])
def test_user_frame_round_trip(origin, point):
    ux, uy = canonical_to_user(*point, origin, LETTER)
    x, y = user_to_canonical(ux, uy, origin, LETTER)
    assert x == pytest.approx(point[0])
    assert y == pytest.approx(point[1])


@pytest.mark.parametrize("origin", list(OriginConvention))
def test_missing_dimensions_fall_back_to_canonical(origin):
    assert canonical_to_user(100, 700, origin, None) == (100, 700)
    assert user_to_canonical(100, 700, origin, None) == (100, 700)
    assert user_axis_to_canonical(42, "y", origin, None) == 42


def test_single_axis_matches_full_conversion():
    origin = OriginConvention.TOP_RIGHT
    x, y = user_to_canonical(512, 92, origin, LETTER)
    assert user_axis_to_canonical(512, "x", origin, LETTER) == x
    assert user_axis_to_canonical(92, "y", origin, LETTER) == y


def test_single_axis_rejects_unknown_axis():
    with pytest.raises(ValueError):
        user_axis_to_canonical(1, "z", OriginConvention.TOP_LEFT, LETTER)


def test_view_frame_is_top_left():
    assert canonical_to_view(100, 700, 792) == (100, 92)
    assert view_to_canonical(100, 92, 792) == (100, 700)


def test_screen_applies_scale_then_pan():
    vp = ViewportTransform(scale=2.0, pan_x=10, pan_y=-20)
    px, py = canonical_to_screen(100, 700, 792, vp)
    assert (px, py) == (210, 164)
    assert screen_to_canonical(px, py, 792, vp) == pytest.approx((100, 700))


def test_identity_viewport_click():
    x, y = screen_to_canonical(50, 0, 792, ViewportTransform())
    assert (x, y) == (50, 792)


def test_drag_delta_inverts_y_and_unscales():
    # Dragging right and down on screen moves right and down the page,
    # i.e. canonical Y decreases.
    assert screen_delta_to_canonical(20, 10, 2.0) == (10, -5)


def test_clamp_each_axis_independently():
    assert clamp_to_page(-10, 900, LETTER) == (0, 792)
    assert clamp_to_page(700, 50, LETTER) == (612, 50)
    assert clamp_to_page(300, 400, LETTER) == (300, 400)


def test_origin_labels():
    assert OriginConvention.TOP_RIGHT.label == "Top-Right"
    assert OriginConvention.BOTTOM_LEFT.label == "Bottom-Left"
