"""Tests for display rendering helpers."""

import jax.numpy as jnp
import pytest
from vipax import display_to_rgb, create_color_scheme, SCREEN_WIDTH, SCREEN_HEIGHT


class TestDisplayToRGB:
    def test_shape_and_colors(self):
        display = jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_).at[0, 1].set(True)

        rgb = display_to_rgb(display, scale=2)

        assert rgb.shape == (SCREEN_HEIGHT * 2, SCREEN_WIDTH * 2, 3)
        assert tuple(rgb[0, 2]) == (0x05, 0xC7, 0x14)
        assert tuple(rgb[0, 0]) == (0, 0, 0)

    def test_unscaled(self):
        display = jnp.ones((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_)
        rgb = display_to_rgb(display, scale=1, on_color=(1, 2, 3))
        assert rgb.shape == (SCREEN_HEIGHT, SCREEN_WIDTH, 3)
        assert (rgb == [1, 2, 3]).all()

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            display_to_rgb(jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_), scale=0)


class TestColorSchemes:
    def test_vip_default(self):
        assert create_color_scheme() == ((0x05, 0xC7, 0x14), (0, 0, 0))

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="Unknown color scheme"):
            create_color_scheme("sepia")
