"""
Tests for the three modification strategies and their rotation.
"""
import numpy as np
import pytest

from models.image import Image
from models.region import Region
from services.modification_service import ModificationService

from conftest import rgba, square_region


@pytest.fixture
def modification_service():
    return ModificationService()


def copies(image):
    return Image(pixels=image.pixels.copy()), Image(pixels=image.pixels.copy())


def outside_bbox_mask(image, bbox):
    mask = np.ones(image.pixels.shape[:2], dtype=bool)
    mask[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width] = False
    return mask


class TestFlip:

    def test_mirrors_bbox_only(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        region = Region.from_pixels((x, y) for x in range(10, 30) for y in range(5, 20))
        bbox = region.bbox

        modification_service.apply_flip(original, modified, region)

        inside = modified.pixels[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width]
        expected = original.pixels[bbox.y:bbox.y + bbox.height, bbox.x:bbox.x + bbox.width][:, ::-1]
        assert np.array_equal(inside, expected)
        mask = outside_bbox_mask(original, bbox)
        assert np.array_equal(modified.pixels[mask], original.pixels[mask])

    def test_original_untouched(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        modification_service.apply_flip(original, modified, square_region(10, 10, 20))
        assert np.array_equal(original.pixels, gradient_image.pixels)


class TestRemoval:

    def test_copies_patch_from_the_right(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        region = square_region(10, 5, 20)

        modification_service.apply_removal(original, modified, region)

        assert np.array_equal(modified.pixels[5:25, 10:30], original.pixels[5:25, 30:50])
        mask = outside_bbox_mask(original, region.bbox)
        assert np.array_equal(modified.pixels[mask], original.pixels[mask])

    def test_falls_back_to_the_left(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        region = square_region(65, 5, 10)

        modification_service.apply_removal(original, modified, region)

        assert np.array_equal(modified.pixels[5:15, 65:75], original.pixels[5:15, 55:65])

    def test_right_patch_touching_edge_is_used(self):
        region = square_region(60, 0, 10)
        # 70 + 10 == 80 still fits
        assert ModificationService.removal_source_x(region, 80) == 70

    def test_wide_bbox_is_clamped_inside(self):
        region = Region.from_pixels((x, 0) for x in range(30, 75))
        assert ModificationService.removal_source_x(region, 80) == 0

    def test_reads_original_not_modified(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        modified.pixels[:, 30:50] = 0
        region = square_region(10, 5, 20)

        modification_service.apply_removal(original, modified, region)

        assert np.array_equal(modified.pixels[5:25, 10:30], original.pixels[5:25, 30:50])


class TestColorShift:

    def test_exact_pixel_formula(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        region = square_region(20, 10, 15)
        r, g, b = 30, 20, 45

        modification_service.apply_color_shift(original, modified, region, offsets=(r, g, b))

        for x, y in region.pixels:
            o = original.pixels[y, x].astype(int)
            m = modified.pixels[y, x].astype(int)
            assert m[0] == min(255, o[0] + r)
            assert m[1] == max(0, o[1] - g)
            assert m[2] == max(0, o[2] - b)
            assert m[3] == o[3]

    def test_clamps(self, modification_service):
        pixels = rgba(30, 30)
        pixels[..., 0] = 250
        pixels[..., 1] = 5
        pixels[..., 2] = 10
        original, modified = copies(Image(pixels=pixels))

        modification_service.apply_color_shift(original, modified, square_region(0, 0, 30), offsets=(50, 50, 50))

        assert (modified.pixels[..., 0] == 255).all()
        assert (modified.pixels[..., 1] == 0).all()
        assert (modified.pixels[..., 2] == 0).all()

    def test_only_exact_pixels_change(self, modification_service, gradient_image):
        original, modified = copies(gradient_image)
        # L-shape: the bbox corner at (29, 29) is not part of the region
        pixels = [(x, 20) for x in range(20, 30)] + [(20, y) for y in range(21, 30)]
        region = Region.from_pixels(pixels)

        modification_service.apply_color_shift(original, modified, region, offsets=(40, 40, 40))

        assert np.array_equal(modified.pixels[29, 29], original.pixels[29, 29])
        changed = np.any(modified.pixels != original.pixels, axis=2)
        assert set(zip(*np.nonzero(changed)[::-1])) <= region.pixels

    def test_random_offsets_in_range_and_uniform(self, modification_service, flat_small_image, rng):
        original, modified = copies(flat_small_image)
        region = square_region(0, 0, 30)

        modification_service.apply_color_shift(original, modified, region, rng=rng)

        delta = modified.pixels[..., :3].astype(int) - original.pixels[..., :3].astype(int)
        assert (delta == delta[0, 0]).all()
        dr, dg, db = delta[0, 0]
        assert 0 <= dr <= 50
        assert -50 <= dg <= 0
        assert -50 <= db <= 0

    def test_offsets_reproducible(self, modification_service):
        a = modification_service.color_shift_offsets(np.random.default_rng(5))
        b = modification_service.color_shift_offsets(np.random.default_rng(5))
        assert a == b
        assert all(0 <= v <= 50 for v in a)

    def test_stacks_on_earlier_edits(self, modification_service, flat_small_image):
        original, modified = copies(flat_small_image)
        region = square_region(0, 0, 10)

        modification_service.apply_color_shift(original, modified, region, offsets=(10, 0, 0))
        modification_service.apply_color_shift(original, modified, region, offsets=(10, 0, 0))

        assert modified.pixels[0, 0, 0] == 148


class TestApplyAll:

    def test_strategies_rotate(self, modification_service, gradient_image, rng):
        original, modified = copies(gradient_image)
        regions = [square_region(2, 2, 5), square_region(2, 20, 5), square_region(2, 40, 5), square_region(40, 40, 5)]

        applied = modification_service.apply_all(original, modified, regions, rng)

        assert applied == ["removal", "flip", "color_shift", "removal"]
        assert modification_service.strategy_name(4) == "flip"

    def test_no_regions_no_change(self, modification_service, gradient_image, rng):
        original, modified = copies(gradient_image)
        assert modification_service.apply_all(original, modified, [], rng) == []
        assert np.array_equal(original.pixels, modified.pixels)

    def test_rejects_aliased_buffers(self, modification_service, gradient_image, rng):
        alias = Image(pixels=gradient_image.pixels)
        with pytest.raises(ValueError):
            modification_service.apply_all(gradient_image, alias, [square_region(0, 0, 3)], rng)

    def test_never_writes_original(self, modification_service, gradient_image, rng):
        original, modified = copies(gradient_image)
        regions = [square_region(2, 2, 10), square_region(30, 30, 10), square_region(50, 5, 10)]

        modification_service.apply_all(original, modified, regions, rng)

        assert np.array_equal(original.pixels, gradient_image.pixels)
