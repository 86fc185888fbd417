"""
Tests for the configuration loader.
"""

import pytest
import yaml

from analysis.palettes import COMMODITY_COLORS, FARMER_COLORS
from ops.config_loader import Config


def write_config(tmp_path, data):
    path = tmp_path / "custom.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestLookup:
    def test_values_and_defaults(self, config_file):
        config = Config(config_file)

        assert config.get("project_name") == "Test Density Maps"
        assert config.get_num_classes() == 5
        assert config.get_label_precision() == 1
        assert config.get("system.output_crs") == "EPSG:4326"
        assert config.get("does.not.exist", "fallback") == "fallback"

    def test_environment_variable(self, config_file, monkeypatch):
        monkeypatch.setenv("CHOROPLETH_CONFIG_PATH", str(config_file))
        assert Config().config_path == config_file.resolve()

    def test_packaged_config_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CHOROPLETH_CONFIG_PATH", raising=False)
        monkeypatch.chdir(tmp_path)

        config = Config()

        assert config.config_path.name == "config.yaml"
        assert config.config_path.parent.name == "ops"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(tmp_path / "missing.yaml")

    def test_invalid_class_count(self, tmp_path):
        config = Config(write_config(tmp_path, {"classification": {"num_classes": 0}}))
        with pytest.raises(ValueError):
            config.get_num_classes()

    def test_zero_style_merges_defaults(self, tmp_path):
        config = Config(
            write_config(tmp_path, {"visualization": {"zero_style": {"fillOpacity": 0}}})
        )
        style = config.get_zero_style()

        assert style["fillOpacity"] == 0
        assert style["dashArray"] == "3"


class TestMetricProfiles:
    def test_builtin_profiles(self, config_file):
        config = Config(config_file)

        farmers = config.get_metric_profile("farmer_density")
        crops = config.get_metric_profile("commodity_density")

        assert farmers.property_key == "farmer_count"
        assert farmers.ramp == tuple(FARMER_COLORS)
        assert farmers.fallback_breaks == (0, 1, 10, 20, 30, 40)
        assert crops.ramp == tuple(COMMODITY_COLORS)
        assert crops.unit == "acres"

    def test_override_ramp_and_title(self, tmp_path):
        ramp = ["#000", "#111", "#222", "#333", "#444", "#555", "#666"]
        config = Config(
            write_config(
                tmp_path,
                {"metrics": {"farmer_density": {"ramp": ramp, "title": "Registered farmers"}}},
            )
        )

        profile = config.get_metric_profile("farmer_density")

        assert profile.ramp == tuple(ramp)
        assert profile.title == "Registered farmers"
        assert profile.property_key == "farmer_count"

    def test_config_only_metric(self, tmp_path):
        config = Config(
            write_config(
                tmp_path,
                {
                    "metrics": {
                        "farm_density": {
                            "property": "farms_count",
                            "ramp": FARMER_COLORS,
                            "fallback_breaks": [0, 1, 5, 10, 20, 50],
                        }
                    }
                },
            )
        )

        profile = config.get_metric_profile("farm_density")

        assert profile.title == "Farm Density"
        assert profile.property_key == "farms_count"
        assert "farm_density" in config.list_metrics()

    def test_unknown_metric(self, config_file):
        with pytest.raises(ValueError):
            Config(config_file).get_metric_profile("livestock_density")

    def test_incomplete_metric(self, tmp_path):
        config = Config(write_config(tmp_path, {"metrics": {"farm_density": {"property": "x"}}}))
        with pytest.raises(ValueError, match="missing settings"):
            config.get_metric_profile("farm_density")

    def test_ramp_too_short(self, tmp_path):
        config = Config(
            write_config(tmp_path, {"metrics": {"farmer_density": {"ramp": ["#fff", "#000"]}}})
        )
        with pytest.raises(ValueError, match="ramp"):
            config.get_metric_profile("farmer_density")

    def test_ramp_needs_zero_slot(self, tmp_path):
        # five classes plus the [0, min] interval, plus the reserved zero color
        six = FARMER_COLORS[:6]
        config = Config(write_config(tmp_path, {"metrics": {"farmer_density": {"ramp": six}}}))
        with pytest.raises(ValueError, match="need at least 7"):
            config.get_metric_profile("farmer_density")
