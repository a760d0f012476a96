import struct

import pytest

from storyprint.color.profiles import ColorProfileResolver, load_icc_config
from storyprint.errors import UnknownColorProfile


def _write_profile(path, head=b"", size=200 * 1024):
    path.write_bytes(head + b"\x00" * (size - len(head)))
    return path


def test_default_profile_from_registry():
    config = load_icc_config()
    resolver = ColorProfileResolver(config=config)
    assert resolver.default_profile == config.default_profile == "coated_fogra39"
    assert config.ghostscript_settings.process_color_model == "DeviceCMYK"


def test_valid_profile_resolves_to_absolute_path(icc_dir):
    _write_profile(icc_dir / "CoatedFOGRA39.icc", head=b"\x00\x00\x0c\x48ADBE")
    resolver = ColorProfileResolver(profiles_dir=icc_dir)

    path = resolver.resolve_path()
    assert path == str((icc_dir / "CoatedFOGRA39.icc").resolve())
    assert resolver.resolve("coated_fogra39").is_valid


def test_missing_profile_falls_back(icc_dir):
    assert ColorProfileResolver(profiles_dir=icc_dir).resolve_path("coated_fogra39") is None


def test_small_profile_falls_back(icc_dir, caplog):
    _write_profile(icc_dir / "CoatedFOGRA39.icc", size=99 * 1024)
    assert ColorProfileResolver(profiles_dir=icc_dir).resolve_path() is None
    assert "too small" in caplog.text


def test_placeholder_profile_falls_back(icc_dir):
    _write_profile(icc_dir / "PSOcoated_v3.icc", head=b"ICC Profile Placeholder - download from ECI")
    assert ColorProfileResolver(profiles_dir=icc_dir).resolve_path("psocoated_v3") is None


def test_placeholder_comment_falls_back(icc_dir):
    _write_profile(icc_dir / "PSOcoated_v3.icc", head=b"# replace with the ECI profile\n")
    assert ColorProfileResolver(profiles_dir=icc_dir).resolve_path("psocoated_v3") is None


def test_binary_header_with_hash_byte_is_valid(icc_dir):
    # creation time 10:35 encodes as 0x0023, the '#' byte, inside the header
    size = 200 * 1024
    header = (
        struct.pack(">I", size) + b"ADBE" + b"\x02\x10\x00\x00" + b"prtr" + b"CMYK" + b"Lab "
        + struct.pack(">6H", 2006, 3, 14, 10, 35, 0) + b"acsp"
    )
    assert b"#" in header
    _write_profile(icc_dir / "CoatedFOGRA39.icc", head=header, size=size)

    assert ColorProfileResolver(profiles_dir=icc_dir).resolve_path() == str((icc_dir / "CoatedFOGRA39.icc").resolve())


def test_unknown_profile(icc_dir):
    with pytest.raises(UnknownColorProfile) as exc:
        ColorProfileResolver(profiles_dir=icc_dir).resolve_path("swop_2006")
    assert isinstance(exc.value, ValueError)
    assert "coated_fogra39" in str(exc.value)


def test_custom_validator(icc_dir):
    class AcceptAll:
        def is_valid_profile(self, path):
            return True

    resolver = ColorProfileResolver(profiles_dir=icc_dir, validator=AcceptAll())
    assert resolver.resolve_path("uncoated_fogra29").endswith("UncoatedFOGRA29.icc")
