"""Tests for hotplug configuration and profile loading."""

from pathlib import Path

import pytest
import yaml

from xbhotplug.backends import SYSFS_PCI_PATH
from xbhotplug.config import HotplugConfig, load_config, parse_config


class TestHotplugConfig:
    """Tests for HotplugConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = HotplugConfig()
        assert config.sysfs_root == SYSFS_PCI_PATH
        assert config.vendor_id == "0x10ee"
        assert config.device_id == "0x9134"
        assert config.mgmt_function == 0
        assert config.user_function == 1
        assert config.poll_interval == 1.0
        assert config.poll_attempts == 60
        assert config.poll_timeout == 60.0

    def test_invalid_poll_attempts(self) -> None:
        with pytest.raises(ValueError, match="poll_attempts"):
            HotplugConfig(poll_attempts=0)

    def test_invalid_poll_interval(self) -> None:
        with pytest.raises(ValueError, match="poll_interval"):
            HotplugConfig(poll_interval=-1.0)

    def test_invalid_function_number(self) -> None:
        with pytest.raises(ValueError, match="user_function"):
            HotplugConfig(user_function=8)

    def test_same_function_numbers(self) -> None:
        with pytest.raises(ValueError, match="must differ"):
            HotplugConfig(mgmt_function=1, user_function=1)


class TestParseConfig:
    """Tests for parse_config()."""

    def test_empty_keeps_defaults(self) -> None:
        assert parse_config({}) == HotplugConfig()

    def test_overrides(self) -> None:
        config = parse_config(
            {
                "sysfs_root": "/tmp/sysfs",
                "signature": {"vendor": "0x1234", "device": "0xABCD"},
                "functions": {"mgmt": 2, "user": 3},
                "shutdown": {"poll_interval": 0.5, "poll_attempts": 10},
            }
        )
        assert config.sysfs_root == Path("/tmp/sysfs")
        assert config.vendor_id == "0x1234"
        assert config.device_id == "0xabcd"
        assert config.mgmt_function == 2
        assert config.user_function == 3
        assert config.poll_interval == 0.5
        assert config.poll_attempts == 10

    def test_integer_ids_from_yaml(self) -> None:
        """Unquoted hex IDs parse as ints in YAML and are normalized back."""
        data = yaml.safe_load("signature:\n  vendor: 0x10ee\n  device: 0x9134\n")
        assert data["signature"]["vendor"] == 0x10EE
        config = parse_config(data)
        assert config.vendor_id == "0x10ee"
        assert config.device_id == "0x9134"

    def test_short_id_is_zero_padded(self) -> None:
        assert parse_config({"signature": {"vendor": "0x1d"}}).vendor_id == "0x001d"

    def test_invalid_id(self) -> None:
        with pytest.raises(ValueError, match="signature.vendor"):
            parse_config({"signature": {"vendor": "xilinx"}})
        with pytest.raises(ValueError, match="16-bit"):
            parse_config({"signature": {"device": 0x10000}})

    def test_section_must_be_mapping(self) -> None:
        with pytest.raises(ValueError, match="'shutdown' section"):
            parse_config({"shutdown": [1, 2]})

    def test_base_config(self) -> None:
        base = HotplugConfig(poll_attempts=5)
        config = parse_config({"shutdown": {"poll_interval": 0}}, base)
        assert config.poll_attempts == 5
        assert config.poll_interval == 0

    @pytest.mark.parametrize(
        ("data", "key"),
        [
            ({"functions": {"mgmt": None}}, "functions.mgmt"),
            ({"functions": {"user": 1.9}}, "functions.user"),
            ({"functions": {"user": True}}, "functions.user"),
            ({"shutdown": {"poll_attempts": [1]}}, "shutdown.poll_attempts"),
            ({"shutdown": {"poll_interval": "fast"}}, "shutdown.poll_interval"),
            ({"shutdown": {"poll_interval": float("nan")}}, "shutdown.poll_interval"),
            ({"sysfs_root": 5}, "sysfs_root"),
            ({"sysfs_root": None}, "sysfs_root"),
        ],
    )
    def test_wrong_value_types(self, data: dict[str, object], key: str) -> None:
        """Badly typed values raise ValueError naming the key."""
        with pytest.raises(ValueError, match=key):
            parse_config(data)

    def test_numeric_strings_and_integral_floats(self) -> None:
        config = parse_config(
            {
                "functions": {"mgmt": "2", "user": 3.0},
                "shutdown": {"poll_interval": "0.5", "poll_attempts": 10.0},
            }
        )
        assert config.mgmt_function == 2
        assert config.user_function == 3
        assert isinstance(config.user_function, int)
        assert config.poll_interval == 0.5
        assert config.poll_attempts == 10
        assert isinstance(config.poll_attempts, int)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_profile(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.yaml"
        path.write_text(
            "signature:\n"
            '  device: "0x5020"\n'
            "shutdown:\n"
            "  poll_attempts: 30\n"
        )

        config = load_config(path)

        assert config.vendor_id == "0x10ee"
        assert config.device_id == "0x5020"
        assert config.poll_attempts == 30

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == HotplugConfig()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("signature: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")
