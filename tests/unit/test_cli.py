"""Tests for CLI commands: export, legend-layout, scale-bar, page-sizes, init-template."""

from datetime import date

import pytest
import yaml
from click.testing import CliRunner
from PIL import Image

import mapsheet.config
from mapsheet.cli import main
from mapsheet.models.template import Template


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def fast_config(monkeypatch, test_config):
    """Route get_config() to the fast test config."""
    monkeypatch.setattr(mapsheet.config, "_config", test_config)
    return test_config


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "template.yaml"
    Template.default().to_yaml(path)
    return str(path)


@pytest.fixture
def basemap_file(tmp_path, quadrant_basemap):
    path = tmp_path / "basemap.png"
    quadrant_basemap.save(path)
    return str(path)


@pytest.fixture
def legend_file(tmp_path):
    path = tmp_path / "legend.yaml"
    layers = [
        {"title": "Parcels", "renderer": {"type": "simple", "symbol": {"type": "simple-fill", "color": [255, 204, 0, 1]}}},
        {
            "title": "Zoning",
            "renderer": {
                "type": "uniqueValue",
                "infos": [{"value": "R1", "label": "Residential"}, {"value": "C1", "label": "Commercial"}],
            },
        },
    ]
    path.write_text(yaml.dump({"layers": layers}))
    return str(path)


# ---------------------------------------------------------------------------
# export command
# ---------------------------------------------------------------------------

class TestExportCommand:
    def test_png_export(self, runner, template_file, basemap_file, legend_file, tmp_path):
        out_dir = tmp_path / "out"
        result = runner.invoke(
            main,
            [
                "export", template_file, basemap_file,
                "--extent", "0", "0", "40000", "40000",
                "--format", "png",
                "--dpi", "50",
                "--title", "Test Map",
                "--legend", legend_file,
                "--output", str(out_dir),
            ],
        )
        assert result.exit_code == 0, result.output
        expected = out_dir / f"Test_Map_{date.today().isoformat()}.png"
        assert expected.exists()
        with Image.open(expected) as page:
            assert page.size == (550, 425)
        assert "Saved" in result.output

    def test_fixed_scale_and_view(self, runner, template_file, basemap_file, tmp_path):
        result = runner.invoke(
            main,
            [
                "export", template_file, basemap_file,
                "-e", "0", "0", "40000", "40000",
                "--view", "0", "20000", "20000", "40000",
                "--scale", "1000",
                "-f", "jpg",
                "--dpi", "40",
                "-o", str(tmp_path / "out"),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "1,000 ft" in result.output
        assert list((tmp_path / "out").glob("*.jpg"))

    def test_defaults_to_configured_output_dir(self, runner, template_file, basemap_file, fast_config):
        result = runner.invoke(
            main,
            ["export", template_file, basemap_file, "-e", "0", "0", "40000", "40000", "--dpi", "40"],
        )
        assert result.exit_code == 0, result.output
        assert list(fast_config.output_dir.glob("Default_Template_*.pdf"))

    def test_template_without_map_fails(self, runner, basemap_file, tmp_path):
        path = tmp_path / "no-map.yaml"
        path.write_text(yaml.dump({"name": "No Map", "elements": [{"type": "title"}]}))
        result = runner.invoke(main, ["export", str(path), basemap_file, "-e", "0", "0", "1", "1"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_template_fails(self, runner, basemap_file, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"elements": [{"type": "hologram"}]}))
        result = runner.invoke(main, ["export", str(path), basemap_file, "-e", "0", "0", "1", "1"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_basemap_not_an_image(self, runner, template_file, tmp_path):
        path = tmp_path / "basemap.png"
        path.write_text("not a raster")
        result = runner.invoke(main, ["export", template_file, str(path), "-e", "0", "0", "1", "1"])
        assert result.exit_code == 1
        assert "Could not open basemap" in result.output

    def test_extent_required(self, runner, template_file, basemap_file):
        result = runner.invoke(main, ["export", template_file, basemap_file])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# legend-layout command
# ---------------------------------------------------------------------------

class TestLegendLayoutCommand:
    def test_shows_layout(self, runner, legend_file):
        result = runner.invoke(main, ["legend-layout", legend_file, "--width", "200", "--height", "300"])
        assert result.exit_code == 0, result.output
        assert "Columns" in result.output
        assert "4 items" in result.output

    def test_flat_items_file(self, runner, tmp_path):
        path = tmp_path / "items.json"
        path.write_text('{"items": [{"label": "A"}, {"label": "B"}]}')
        result = runner.invoke(main, ["legend-layout", str(path), "-w", "150", "-h", "100", "--no-title"])
        assert result.exit_code == 0, result.output
        assert "2 items" in result.output

    def test_invalid_file(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"items": [{"symbol": {}}]}))
        result = runner.invoke(main, ["legend-layout", str(path), "-w", "100", "-h", "100"])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# scale-bar command
# ---------------------------------------------------------------------------

class TestScaleBarCommand:
    def test_feet(self, runner):
        result = runner.invoke(main, ["scale-bar", "500", "--width", "750", "--dpi", "150"])
        assert result.exit_code == 0, result.output
        assert "2,000 feet" in result.output

    def test_meters(self, runner):
        result = runner.invoke(main, ["scale-bar", "500", "-w", "750", "--dpi", "150", "-u", "m"])
        assert result.exit_code == 0, result.output
        assert "610 m" in result.output

    def test_non_positive_scale(self, runner):
        result = runner.invoke(main, ["scale-bar", "-w", "100", "--", "-5"])
        assert result.exit_code == 1
        assert "positive" in result.output


# ---------------------------------------------------------------------------
# page-sizes / init-template commands
# ---------------------------------------------------------------------------

class TestPageSizesCommand:
    def test_lists_sizes(self, runner):
        result = runner.invoke(main, ["page-sizes"])
        assert result.exit_code == 0
        assert "letter-landscape" in result.output
        assert "a3-portrait" in result.output


class TestInitTemplateCommand:
    def test_writes_loadable_template(self, runner, tmp_path):
        path = tmp_path / "templates" / "sheet.yaml"
        result = runner.invoke(main, ["init-template", str(path), "--page-size", "tabloid-portrait"])
        assert result.exit_code == 0, result.output
        template = Template.from_file(path)
        assert template.page_size.value == "tabloid-portrait"
        assert template.map_element() is not None

    def test_camel_case_keys(self, runner, tmp_path):
        path = tmp_path / "sheet.yaml"
        runner.invoke(main, ["init-template", str(path)])
        data = yaml.safe_load(path.read_text())
        assert "pageSize" in data
        assert "backgroundColor" in data["elements"][1]["content"]
