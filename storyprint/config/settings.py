# Process-wide settings for the print pipeline.
# Values are read from the environment once at import time; registries (paper, ICC)
# live in JSON files next to this module and can be redirected with env vars.

import glob
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

CONFIG_DIR = Path(__file__).parent
PACKAGE_DIR = CONFIG_DIR.parent

PAPER_CONFIG_PATH = Path(os.getenv("PAPER_CONFIG_PATH", str(CONFIG_DIR / "paper-caliper.json")))
ICC_CONFIG_PATH = Path(os.getenv("ICC_CONFIG_PATH", str(CONFIG_DIR / "icc-profiles.json")))
ICC_PROFILES_PATH = Path(os.getenv("ICC_PROFILES_PATH", str(Path.cwd() / "icc-profiles")))
TEMPLATES_PATH = PACKAGE_DIR / "templates"
PRINT_WORK_DIR = Path(os.getenv("PRINT_WORK_DIR", str(Path(tempfile.gettempdir()) / "storyprint")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Title, copyright, dedication, synopsis, table of contents
FRONT_MATTER_PAGES = 5

GHOSTSCRIPT_TIMEOUT_S = 300.0
MIN_ICC_PROFILE_BYTES = 100 * 1024
PLACEHOLDER_SNIFF_BYTES = 100
PLACEHOLDER_MARKERS = ("ICC Profile Placeholder", "#")
ICC_SIGNATURE = b"acsp"
ICC_SIGNATURE_OFFSET = 36

# validate_page_layout flags anything shorter than this
MIN_EXPECTED_PAGES = 10

# Imprint printed on the copyright page
PUBLISHER_NAME = os.getenv("PRINT_PUBLISHER_NAME", "Storyprint")
PUBLISHER_WEBSITE = os.getenv("PRINT_PUBLISHER_WEBSITE", "")
QR_CODE_IMAGE = os.getenv("PRINT_QR_CODE_IMAGE", "")


def _find_ghostscript_on_windows() -> Optional[str]:
    candidates = []
    for base in (os.getenv("ProgramFiles", r"C:\Program Files"), os.getenv("ProgramFiles(x86)", r"C:\Program Files (x86)")):
        # newest install first; lexicographic is good enough for gsX.YY.Z
        for version_dir in sorted(glob.glob(os.path.join(base, "gs", "gs*")), reverse=True):
            candidates.append(os.path.join(version_dir, "bin", "gswin64c.exe"))
            candidates.append(os.path.join(version_dir, "bin", "gswin32c.exe"))
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return None


def resolve_ghostscript_binary() -> str:
    """Engine binary: GHOSTSCRIPT_BINARY if set (quotes stripped), else the platform default."""
    override = os.getenv("GHOSTSCRIPT_BINARY")
    if override:
        binary = override.strip()
        if len(binary) >= 2 and binary.startswith('"') and binary.endswith('"'):
            binary = binary[1:-1]
        return binary
    if sys.platform == "win32":
        return _find_ghostscript_on_windows() or "gswin64c.exe"
    return "gs"
