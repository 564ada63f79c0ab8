import numpy as np
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from colorsort.color_math import distance
from colorsort.ordering import sort_by_reds
from colorsort.pixels import PixelCollection
from colorsort.report import is_non_increasing, measure_distance


def _random_colors(count: int, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 1 << 24, size=count).astype(np.uint32)


def test_initial_assignment_is_load_position():
    colors = _random_colors(64)
    pixels = PixelCollection.from_colors(colors)
    assert pixels.assigned_color.tolist() == list(range(64))
    assert pixels.original_position.tolist() == list(range(64))
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()
    for record in pixels:
        assert record.cached_distance == distance(record.original_color, record.assigned_color)


def test_alpha_is_ignored_on_load():
    pixels = PixelCollection.from_colors(np.array([0xFF123456, 0x80ABCDEF], dtype=np.uint32))
    assert pixels[0].original_color == 0x123456
    assert pixels[1].original_color == 0xABCDEF
    assert (pixels[1].red, pixels[1].green, pixels[1].blue) == (0xAB, 0xCD, 0xEF)


def test_four_pixel_scenario_sorted_by_red():
    original = [0x000000, 0x0000FF, 0x00FF00, 0xFF0000]
    pixels = PixelCollection.from_colors(original)
    before = measure_distance(pixels, "original")

    sort_by_reds(pixels)
    after = measure_distance(pixels, "after sorting reds")

    # The only pixel with red=0xFF ends up last
    assert pixels[3].original_color == 0xFF0000
    assert pixels.assigned_color.tolist() == [0, 1, 2, 3]

    expected_total = sum(
        distance(pixels[slot].original_color, slot) for slot in range(4)
    )
    assert after.total_distance == expected_total
    assert after.total_distance <= before.total_distance
    assert is_non_increasing([before, after])
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()


def test_sort_by_reds_orders_red_channel_and_reseeds_targets():
    pixels = PixelCollection.from_colors(_random_colors(500))
    sort_by_reds(pixels)

    reds = pixels.red.tolist()
    assert reds == sorted(reds)
    assert pixels.assigned_color.tolist() == list(range(500))
    assert sorted(pixels.original_position.tolist()) == list(range(500))
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()


def test_swap_keeps_bijection_and_cache():
    pixels = PixelCollection.from_colors(_random_colors(32))
    sort_by_reds(pixels)
    pixels.swap_assigned(3, 17)
    pixels.swap_assigned(17, 17)
    assert pixels.assigned_color[3] == 17
    assert pixels.assigned_color[17] == 3
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()


def test_bijection_check_detects_duplicates():
    pixels = PixelCollection.from_colors(_random_colors(8))
    pixels.assigned_color[2] = pixels.assigned_color[5]
    assert not pixels.is_bijection()


def test_materialize_writes_assigned_colors_at_original_positions():
    colors = _random_colors(16) | np.uint32(0x12000000)
    pixels = PixelCollection.from_colors(colors)
    sort_by_reds(pixels)
    output = pixels.materialize(colors)

    assert output.dtype == np.uint32
    for record in pixels:
        assert int(output[record.original_position]) == 0xFF000000 | record.assigned_color
    assert sorted(int(value) & 0xFFFFFF for value in output) == list(range(16))
