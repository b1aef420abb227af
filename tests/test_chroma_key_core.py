import logging

import numpy as np
import pytest

from chroma_key_core import (
    ChromaKeySession,
    argmax_3d,
    bin_center,
    bucket_width,
    build_histogram,
    chroma_replace,
    report_key_color,
)


def _random_image(rows, cols, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(rows, cols, 3), dtype=np.uint8)


def _tiled(bg, rows, cols):
    out = np.empty((rows, cols, 3), dtype=np.uint8)
    for r in range(rows):
        for c in range(cols):
            out[r, c] = bg[r % bg.shape[0], c % bg.shape[1]]
    return out


# --------------------------------------------------
# Histogram
# --------------------------------------------------
def test_histogram_all_black():
    hist = build_histogram(np.zeros((4, 4, 3), np.uint8), 4)
    assert hist.shape == (4, 4, 4)
    assert hist[0, 0, 0] == 16
    assert hist.sum() == 16


def test_histogram_total_matches_pixel_count():
    img = _random_image(13, 7)
    for buckets in (1, 3, 4, 7, 256):
        assert build_histogram(img, buckets).sum() == 13 * 7


def test_histogram_axes_are_blue_green_red():
    img = _random_image(8, 5, seed=3)
    hist = build_histogram(img, 4)

    expected = np.zeros((4, 4, 4), dtype=np.int64)
    for b, g, r in img.reshape(-1, 3):
        expected[b // 64, g // 64, r // 64] += 1
    np.testing.assert_array_equal(hist, expected)


def test_histogram_single_channel_lands_on_its_axis():
    img = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
    hist = build_histogram(img, 4)
    assert hist[3, 0, 0] == 1
    assert hist[0, 3, 0] == 1
    assert hist[0, 0, 3] == 1


def test_histogram_clamps_into_last_bucket():
    # 256 // 3 == 85, so 255 // 85 == 3 would overflow without the clamp
    img = np.full((2, 2, 3), 255, np.uint8)
    hist = build_histogram(img, 3)
    assert hist.shape == (3, 3, 3)
    assert hist[2, 2, 2] == 4


def test_histogram_occupied_bins_in_range():
    img = _random_image(20, 20, seed=1)
    hist = build_histogram(img, 5)
    occupied = np.argwhere(hist > 0)
    assert occupied.min() >= 0
    assert occupied.max() <= 4


def test_histogram_empty_image_is_all_zero():
    hist = build_histogram(np.zeros((0, 0, 3), np.uint8), 4)
    assert hist.shape == (4, 4, 4)
    assert hist.sum() == 0
    assert argmax_3d(hist) == ((0, 0, 0), 0)


@pytest.mark.parametrize("buckets", [0, -1, 257])
def test_histogram_rejects_bad_bucket_count(buckets):
    with pytest.raises(ValueError):
        build_histogram(np.zeros((2, 2, 3), np.uint8), buckets)


def test_histogram_rejects_malformed_image():
    with pytest.raises(ValueError):
        build_histogram(np.zeros((4, 4), np.uint8), 4)
    with pytest.raises(ValueError):
        build_histogram(np.zeros((4, 4, 3), np.float32), 4)


def test_bucket_width():
    assert bucket_width(4) == 64
    assert bucket_width(1) == 256
    assert bucket_width(3) == 85
    assert bucket_width(256) == 1


# --------------------------------------------------
# Dominant color
# --------------------------------------------------
def test_argmax_tie_goes_to_first_bin():
    img = np.array([[[0, 0, 0], [0, 0, 0]],
                    [[255, 255, 255], [255, 255, 255]]], dtype=np.uint8)
    hist = build_histogram(img, 4)
    assert hist[0, 0, 0] == 2
    assert hist[3, 3, 3] == 2
    assert argmax_3d(hist) == ((0, 0, 0), 2)


def test_argmax_scan_order_is_blue_outermost():
    hist = np.zeros((4, 4, 4), dtype=np.int64)
    hist[0, 1, 0] = 5
    hist[0, 0, 3] = 5
    hist[1, 0, 0] = 5
    assert argmax_3d(hist) == ((0, 0, 3), 5)

    hist[0, 0, 3] = 0
    assert argmax_3d(hist) == ((0, 1, 0), 5)


def test_argmax_is_deterministic():
    hist = build_histogram(_random_image(30, 30, seed=7), 4)
    assert argmax_3d(hist) == argmax_3d(hist.copy())


def test_argmax_rejects_non_3d():
    with pytest.raises(ValueError):
        argmax_3d(np.zeros((4, 4)))


def test_bin_center():
    assert bin_center((0, 0, 0), 64) == (32, 32, 32)
    assert bin_center((3, 1, 2), 64) == (224, 96, 160)
    assert bin_center((0, 0, 0), 256) == (128, 128, 128)


# --------------------------------------------------
# Replacer
# --------------------------------------------------
def test_replace_all_black_at_half_bucket():
    fg = np.zeros((4, 4, 3), np.uint8)
    bg = _random_image(4, 4, seed=2)
    out = chroma_replace(fg, bg, (32, 32, 32), 32)
    np.testing.assert_array_equal(out, bg)


def test_replace_identity_at_zero_tolerance_without_exact_match():
    fg = _random_image(6, 9, seed=4)
    fg[np.all(fg == 32, axis=2)] = 0
    bg = _random_image(6, 9, seed=5)
    out = chroma_replace(fg, bg, (32, 32, 32), 0)
    np.testing.assert_array_equal(out, fg)


def test_replace_everything_at_255_with_tiling():
    fg = _random_image(5, 7, seed=6)
    bg = _random_image(2, 3, seed=8)
    out = chroma_replace(fg, bg, (128, 0, 255), 255)
    assert out.shape == fg.shape
    np.testing.assert_array_equal(out, _tiled(bg, 5, 7))


def test_replace_uses_per_channel_conjunction():
    fg = np.array([[[30, 30, 30], [32, 32, 40], [200, 0, 0]]], dtype=np.uint8)
    bg = np.full((1, 3, 3), 9, np.uint8)
    out = chroma_replace(fg, bg, (32, 32, 32), 5)
    np.testing.assert_array_equal(out[0, 0], [9, 9, 9])
    np.testing.assert_array_equal(out[0, 1], [32, 32, 40])
    np.testing.assert_array_equal(out[0, 2], [200, 0, 0])


def test_replace_tiles_small_background_at_matching_pixels():
    fg = np.zeros((5, 5, 3), np.uint8)
    fg[::2, ::2] = 250
    bg = _random_image(2, 2, seed=9)
    out = chroma_replace(fg, bg, (0, 0, 0), 3)
    for r in range(5):
        for c in range(5):
            if fg[r, c, 0] == 0:
                np.testing.assert_array_equal(out[r, c], bg[r % 2, c % 2])
            else:
                np.testing.assert_array_equal(out[r, c], fg[r, c])


@pytest.mark.parametrize("shape", [(0, 0, 3), (0, 4, 3), (4, 0, 3)])
def test_replace_empty_background_passes_through(shape):
    fg = _random_image(3, 3)
    out = chroma_replace(fg, np.zeros(shape, np.uint8), (0, 0, 0), 255)
    np.testing.assert_array_equal(out, fg)
    assert out is not fg


def test_replace_does_not_mutate_inputs():
    fg = _random_image(4, 4, seed=10)
    bg = _random_image(4, 4, seed=11)
    fg_before, bg_before = fg.copy(), bg.copy()
    chroma_replace(fg, bg, (100, 100, 100), 255)
    np.testing.assert_array_equal(fg, fg_before)
    np.testing.assert_array_equal(bg, bg_before)


# --------------------------------------------------
# Session
# --------------------------------------------------
def test_session_from_all_black_foreground():
    fg = np.zeros((4, 4, 3), np.uint8)
    bg = _random_image(3, 3, seed=12)
    session = ChromaKeySession.from_images(fg, bg)

    assert session.bin_index == (0, 0, 0)
    assert session.key_color == (32, 32, 32)
    assert session.pixel_count == 16
    assert session.bucket_width == 64
    assert session.default_tolerance == 32
    assert session.max_tolerance == 255

    np.testing.assert_array_equal(session.set_tolerance(32), _tiled(bg, 4, 4))
    np.testing.assert_array_equal(session.set_tolerance(31), fg)


def test_session_clamps_tolerance():
    fg = np.zeros((4, 4, 3), np.uint8)
    bg = np.full((4, 4, 3), 77, np.uint8)
    session = ChromaKeySession.from_images(fg, bg)

    assert session.clamp_tolerance(-5) == 0
    assert session.clamp_tolerance(1000) == 255
    np.testing.assert_array_equal(session.set_tolerance(-5), fg)
    np.testing.assert_array_equal(session.set_tolerance(1000), bg)


def test_session_single_bucket_tolerance_range():
    session = ChromaKeySession.from_images(_random_image(3, 3), _random_image(3, 3), bucket_count=1)
    assert session.key_color == (128, 128, 128)
    assert session.pixel_count == 9
    assert session.default_tolerance == 128
    assert session.max_tolerance == 256


def test_session_holds_read_only_copies():
    fg = np.zeros((2, 2, 3), np.uint8)
    bg = np.full((2, 2, 3), 5, np.uint8)
    session = ChromaKeySession.from_images(fg, bg)
    fg[:] = 200

    assert not session.foreground.flags.writeable
    assert session.foreground.max() == 0
    assert session.key_color == (32, 32, 32)


def test_session_repeated_calls_are_identical():
    session = ChromaKeySession.from_images(_random_image(10, 10, seed=13), _random_image(4, 6, seed=14))
    first = session.set_tolerance(40)
    session.set_tolerance(200)
    np.testing.assert_array_equal(session.set_tolerance(40), first)


def test_report_key_color(caplog):
    caplog.set_level(logging.INFO, logger="chroma_key_core")
    session = ChromaKeySession.from_images(np.zeros((4, 4, 3), np.uint8), np.zeros((1, 1, 3), np.uint8))
    report_key_color(session)
    assert "Most common bin (B,G,R): [0, 0, 0]" in caplog.text
    assert "[32, 32, 32]" in caplog.text
    assert "Pixel count: 16" in caplog.text
