"""Tests for render field resolution.

This module tests:
- Float and unsigned integer field parsing
- Preview and export budgets
- Range validation of the resolved configuration
- Collecting every field error at once
"""

import pytest


class TestFieldParsing:
    """Tests for parsing single text fields."""

    def test_parse_float_accepts_python_floats(self):
        """Test that anything float() accepts (and is finite) parses."""
        from src.rtwtui.camera.config import parse_float_field

        assert parse_float_field("fov", "45") == 45.0
        assert parse_float_field("fov", " -1.5 ") == -1.5
        assert parse_float_field("fov", "1e-2") == 0.01

    @pytest.mark.parametrize("text", ["", "abc", "1.2.3", "nan", "inf", "-inf"])
    def test_parse_float_rejects_invalid(self, text):
        """Test that non-numeric and non-finite text is rejected with the field name."""
        from src.rtwtui.camera.config import parse_float_field
        from src.rtwtui.errors import ConfigParseError

        with pytest.raises(ConfigParseError) as excinfo:
            parse_float_field("camera_x", text)

        assert excinfo.value.field == "camera_x"
        assert excinfo.value.value == text
        assert "camera_x" in str(excinfo.value)

    def test_parse_uint_accepts_decimal(self):
        """Test that unsigned decimal text parses."""
        from src.rtwtui.camera.config import parse_uint_field

        assert parse_uint_field("samples", "50") == 50
        assert parse_uint_field("samples", "0") == 0

    @pytest.mark.parametrize("text", ["-1", "1.5", "ten", "", "+3"])
    def test_parse_uint_rejects_invalid(self, text):
        """Test that signed, fractional, and non-numeric text is rejected."""
        from src.rtwtui.camera.config import parse_uint_field
        from src.rtwtui.errors import ConfigParseError

        with pytest.raises(ConfigParseError) as excinfo:
            parse_uint_field("samples", text)

        assert excinfo.value.field == "samples"


class TestPreviewConfig:
    """Tests for the interactive preview budget."""

    def test_preview_uses_terminal_area(self):
        """Test that width is the column count and height is twice the rows."""
        from src.rtwtui.camera.config import RenderFields, resolve_preview_config

        config = resolve_preview_config(RenderFields(), columns=80, rows=24)

        assert config.width == 80
        assert config.height == 48

    def test_preview_budget_ignores_quality_fields(self):
        """Test that stored samples and bounces never affect the preview."""
        from src.rtwtui.camera.config import (
            INTERACTIVE_BOUNCES,
            INTERACTIVE_SAMPLES,
            RenderFields,
            resolve_preview_config,
        )

        for samples, bounces in [("1", "0"), ("5000", "200")]:
            fields = RenderFields(samples=samples, bounces=bounces)
            config = resolve_preview_config(fields, columns=10, rows=5)
            assert config.samples == INTERACTIVE_SAMPLES == 10
            assert config.bounces == INTERACTIVE_BOUNCES == 5

    def test_preview_ignores_invalid_quality_fields(self):
        """Test that broken export-only fields do not block the preview."""
        from src.rtwtui.camera.config import RenderFields, resolve_preview_config

        fields = RenderFields(samples="lots", image_width="wide")
        config = resolve_preview_config(fields, columns=4, rows=2)

        assert config.budget.width == 4

    def test_preview_rejects_empty_area(self):
        """Test that a zero-sized terminal area is an invalid budget."""
        from src.rtwtui.camera.config import RenderFields, resolve_preview_config
        from src.rtwtui.errors import InvalidBudgetError

        with pytest.raises(InvalidBudgetError):
            resolve_preview_config(RenderFields(), columns=0, rows=10)
        with pytest.raises(InvalidBudgetError):
            resolve_preview_config(RenderFields(), columns=10, rows=0)


class TestExportConfig:
    """Tests for the full-quality export budget."""

    def test_export_budget_equals_fields(self):
        """Test that the export budget is exactly what the user typed."""
        from src.rtwtui.camera.config import RenderBudget, RenderFields, resolve_export_config

        fields = RenderFields(image_width="320", image_height="180", samples="7", bounces="3")
        config = resolve_export_config(fields)

        assert config.budget == RenderBudget(samples=7, bounces=3, width=320, height=180)

    def test_export_parses_camera(self):
        """Test camera, look-at, and lens fields."""
        from src.rtwtui.camera.config import WORLD_UP, RenderFields, resolve_export_config

        fields = RenderFields(
            camera_x="1", camera_y="2", camera_z="3",
            look_x="0", look_y="1", look_z="0",
            fov="60", focus_dist="2.5", aperture="1.0",
        )
        config = resolve_export_config(fields)

        assert config.lookfrom == (1.0, 2.0, 3.0)
        assert config.lookat == (0.0, 1.0, 0.0)
        assert config.vup == WORLD_UP
        assert config.vfov == 60.0
        assert config.focus_dist == 2.5
        assert config.aperture == 1.0

    def test_default_fields_resolve(self):
        """Test that the render form's defaults form a valid configuration."""
        from src.rtwtui.camera.config import RenderFields, resolve_export_config

        config = resolve_export_config(RenderFields())

        assert (config.width, config.height) == (338, 600)
        assert (config.samples, config.bounces) == (50, 15)
        assert config.aspect_ratio == pytest.approx(338 / 600)

    def test_zero_bounces_is_valid(self):
        """Test that a bounce limit of zero is accepted."""
        from src.rtwtui.camera.config import RenderFields, resolve_export_config

        assert resolve_export_config(RenderFields(bounces="0")).bounces == 0

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"image_width": "0"}, "image_width"),
            ({"image_height": "0"}, "image_height"),
            ({"samples": "0"}, "samples"),
            ({"fov": "0"}, "fov"),
            ({"fov": "180"}, "fov"),
            ({"focus_dist": "0"}, "focus_dist"),
            ({"aperture": "-1"}, "aperture"),
            ({"camera_x": "0"}, "look_x"),
        ],
    )
    def test_out_of_range_values(self, overrides, field):
        """Test that out-of-range values raise InvalidBudgetError naming the field."""
        from src.rtwtui.camera.config import RenderFields, resolve_export_config
        from src.rtwtui.errors import InvalidBudgetError

        with pytest.raises(InvalidBudgetError) as excinfo:
            resolve_export_config(RenderFields(**overrides))

        assert excinfo.value.field == field

    def test_unparseable_field_is_named(self):
        """Test that a parse failure names exactly the failing field."""
        from src.rtwtui.camera.config import RenderFields, resolve_export_config
        from src.rtwtui.errors import ConfigParseError

        with pytest.raises(ConfigParseError) as excinfo:
            resolve_export_config(RenderFields(camera_y="up"))

        assert excinfo.value.field == "camera_y"


class TestResolveAll:
    """Tests for collecting every field error."""

    def test_valid_fields_have_no_errors(self):
        """Test that default fields produce an empty error map."""
        from src.rtwtui.camera.config import RenderFields, resolve_all

        assert resolve_all(RenderFields()) == {}

    def test_collects_every_parse_error(self):
        """Test that all unparseable fields are reported together."""
        from src.rtwtui.camera.config import RenderFields, resolve_all

        errors = resolve_all(RenderFields(samples="x", fov="wide", look_z=""))

        assert set(errors) == {"samples", "fov", "look_z"}

    def test_reports_range_error(self):
        """Test that a range error is reported once parsing succeeds."""
        from src.rtwtui.camera.config import RenderFields, resolve_all

        errors = resolve_all(RenderFields(image_height="0"))

        assert list(errors) == ["image_height"]

    def test_image_name_is_not_validated(self):
        """Test that any image name is accepted."""
        from src.rtwtui.camera.config import RenderFields, resolve_all

        assert resolve_all(RenderFields(image_name="")) == {}
