"""Tests for settings, the manifest schema and the manifest loader."""

import json

import pytest
import yaml
from pydantic import ValidationError

from synclocal.config import (
    AppSettings,
    FileResourceConfig,
    HttpSettings,
    ManifestConfig,
    ResourceType,
    UrlResourceConfig,
    parse_octal_mode,
)
from synclocal.config.loader import ConfigLoader, ConfigurationError, find_config_file


def create_test_manifest_data():
    """Create test manifest data."""
    return {
        "version": "1",
        "resources": [
            {
                "type": "file",
                "name": "motd",
                "source": "./files/motd",
                "destination": "./out/motd",
                "file_mode": "0644"
            },
            {
                "type": "url",
                "name": "ca_bundle",
                "url": "https://example.com/ca.pem",
                "filename": "./out/ca.pem",
                "headers": {"Authorization": "Bearer abc"}
            }
        ]
    }


class TestParseOctalMode:
    """Octal permission strings."""

    @pytest.mark.parametrize("value,expected", [
        ("644", 0o644),
        ("0644", 0o644),
        ("0o755", 0o755),
        ("0O600", 0o600),
        ("4755", 0o4755),
        ("0", 0),
    ])
    def test_valid(self, value, expected):
        assert parse_octal_mode(value) == expected

    @pytest.mark.parametrize("value", ["", "0999", "rwx", "0x1ff", "-644", "17777"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_octal_mode(value)


class TestManifestSchema:
    """Manifest validation."""

    def test_resources_are_discriminated_by_type(self):
        manifest = ManifestConfig(**create_test_manifest_data())

        motd, bundle = manifest.resources
        assert isinstance(motd, FileResourceConfig)
        assert isinstance(bundle, UrlResourceConfig)
        assert manifest.get_resource("ca_bundle") is bundle
        assert manifest.get_resource("missing") is None
        assert manifest.get_resources_by_type(ResourceType.FILE) == [motd]

    def test_inputs_exclude_name_and_type(self):
        config = FileResourceConfig(name="motd", source="a", destination="b")
        assert config.inputs() == {"source": "a", "destination": "b", "file_mode": None}

    def test_url_headers_default_to_empty(self):
        config = UrlResourceConfig(name="x", url="http://example.com/x", filename="x")
        assert config.headers == {}

    def test_duplicate_names_are_rejected(self):
        data = create_test_manifest_data()
        data["resources"][1]["name"] = "motd"

        with pytest.raises(ValidationError):
            ManifestConfig(**data)

    def test_invalid_file_mode_is_rejected(self):
        with pytest.raises(ValidationError):
            FileResourceConfig(name="x", source="a", destination="b", file_mode="0999")

    @pytest.mark.parametrize("url", ["ftp://example.com/x", "example.com/x", "http://", "/etc/passwd"])
    def test_non_http_url_is_rejected(self, url):
        with pytest.raises(ValidationError):
            UrlResourceConfig(name="x", url=url, filename="x")

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError):
            ManifestConfig(resources=[{"type": "s3", "name": "x"}])


class TestConfigLoader:
    """Loading manifests from disk."""

    def setup_method(self):
        self.loader = ConfigLoader()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "synclocal.yaml"
        path.write_text(yaml.safe_dump(create_test_manifest_data()))

        manifest = self.loader.load_from_file(path)
        assert [r.name for r in manifest.resources] == ["motd", "ca_bundle"]

    def test_load_json(self, tmp_path):
        path = tmp_path / "synclocal.json"
        path.write_text(json.dumps(create_test_manifest_data()))

        manifest = self.loader.load_from_file(str(path))
        assert manifest.resources[1].headers == {"Authorization": "Bearer abc"}

    def test_empty_file_is_an_empty_manifest(self, tmp_path):
        path = tmp_path / "synclocal.yaml"
        path.write_text("")

        assert self.loader.load_from_file(path).resources == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            self.loader.load_from_file(tmp_path / "missing.yaml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "synclocal.toml"
        path.write_text("")

        with pytest.raises(ConfigurationError, match="Unsupported file format"):
            self.loader.load_from_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "synclocal.yaml"
        path.write_text("resources: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            self.loader.load_from_file(path)

    def test_invalid_manifest(self):
        with pytest.raises(ConfigurationError, match="Invalid manifest"):
            self.loader.load_from_dict({"resources": [{"type": "file", "name": "x"}]})

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            self.loader.load_from_dict(["not", "a", "mapping"])

    def test_validate_config_warnings(self):
        manifest = self.loader.load_from_dict({
            "resources": [
                {"type": "file", "name": "a", "source": "same", "destination": "same"},
                {"type": "url", "name": "b", "url": "http://example.com/x", "filename": "same",
                 "headers": {"authorization": "secret"}},
            ]
        })

        warnings = self.loader.validate_config(manifest)

        assert len(warnings) == 3
        assert any("write the same file" in w for w in warnings)
        assert any("copies a file onto itself" in w for w in warnings)
        assert any("plain http" in w for w in warnings)

    def test_validate_clean_manifest(self):
        assert self.loader.validate_config(ManifestConfig(**create_test_manifest_data())) == []

    def test_find_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SYNCLOCAL_CONFIG_FILE", raising=False)
        assert find_config_file() is None

        (tmp_path / "synclocal.yml").write_text("resources: []")
        assert find_config_file() == "./synclocal.yml"

        explicit = tmp_path / "other.json"
        explicit.write_text("{}")
        monkeypatch.setenv("SYNCLOCAL_CONFIG_FILE", str(explicit))
        assert find_config_file() == str(explicit)


class TestSettings:
    """Environment driven settings."""

    def test_defaults(self):
        settings = AppSettings()

        assert settings.name == "synclocal"
        assert settings.http.default_file_mode == "0664"
        assert settings.http.timeout_seconds is None
        assert settings.state.url.startswith("sqlite:///")

    def test_http_env_overrides(self, monkeypatch):
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("HTTP_VERIFY_SSL", "false")

        http = HttpSettings()

        assert http.timeout_seconds == 2.5
        assert http.verify_ssl is False
