import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from storyprint.color.ghostscript import CMYKConversionEngine
from storyprint.color.profiles import ColorProfileResolver
from storyprint.errors import RenderingFailed

# 170x240mm trim plus 3mm bleed each side
PAGE_SIZE = (176 * mm, 246 * mm)


def _illustration(color=(200, 60, 40)):
    return ImageReader(Image.new("RGB", (64, 64), color))


def build_pdf(path, page_count, image_pages=(), page_size=PAGE_SIZE, label="Page"):
    """
    Write a PDF whose page N carries the text '<label> N'. Pages listed in
    `image_pages` also get a raster image covering the whole page.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(path), pagesize=page_size)
    image_pages = set(image_pages)
    for number in range(1, page_count + 1):
        if number in image_pages:
            c.drawImage(_illustration(), 0, 0, width=page_size[0], height=page_size[1])
        c.setFont("Helvetica", 14)
        c.drawString(40, 40, f"{label} {number}")
        c.showPage()
    c.save()
    return str(path)


def page_labels(path):
    """The 'Page N' marker of every page, in document order."""
    labels = []
    for page in PdfReader(str(path)).pages:
        text = page.extract_text() or ""
        labels.append(" ".join(text.split()))
    return labels


@pytest.fixture
def make_pdf(tmp_path):
    def _make(name, page_count, image_pages=(), **kwargs):
        return build_pdf(tmp_path / name, page_count, image_pages, **kwargs)
    return _make


def build_broken_pdf(path):
    """
    A PDF that opens (valid header, xref and trailer) but whose page tree is
    damaged, so reading its pages fails.
    """
    objects = [b"<< /Type /Catalog /Pages 2 0 R >>", b"<< /Type /Pages /Kids 5 /Count 1 >>"]
    data = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(data))
        data += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(data)
    data += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    data += b"".join(b"%010d 00000 n \n" % offset for offset in offsets)
    data += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    Path(path).write_bytes(data)
    return str(path)


FAKE_GS = textwrap.dedent("""\
    #!{python}
    import json
    import os
    import shutil
    import sys
    import time

    args = sys.argv[1:]
    if args == ["--version"]:
        if os.environ.get("FAKE_GS_PID_FILE"):
            with open(os.environ["FAKE_GS_PID_FILE"], "w") as f:
                f.write(str(os.getpid()))
        if os.environ.get("FAKE_GS_VERSION_HANG"):
            time.sleep(30)
        if os.environ.get("FAKE_GS_VERSION_FAIL"):
            sys.stderr.write("broken install\\n")
            sys.exit(1)
        print("10.02.1")
        sys.exit(0)

    log = os.environ.get("FAKE_GS_ARGS_LOG")
    if log:
        with open(log, "a") as f:
            f.write(json.dumps(args) + "\\n")

    if os.environ.get("FAKE_GS_STDERR"):
        sys.stderr.write(os.environ["FAKE_GS_STDERR"] + "\\n")
        sys.stderr.flush()
    if os.environ.get("FAKE_GS_DELAY"):
        time.sleep(float(os.environ["FAKE_GS_DELAY"]))
    if os.environ.get("FAKE_GS_HANG"):
        time.sleep(30)
    if os.environ.get("FAKE_GS_FAIL"):
        sys.stderr.write("Error: /undefined in --setpagedevice--\\n")
        sys.exit(1)

    out = args[args.index("-o") + 1]
    source = args[-1]
    if os.environ.get("FAKE_GS_GRAY_SOURCE") and "-dProcessColorModel=/DeviceGray" in args:
        source = os.environ["FAKE_GS_GRAY_SOURCE"]
    if not os.environ.get("FAKE_GS_NO_OUTPUT"):
        shutil.copyfile(source, out)
    sys.exit(0)
""")

FAKE_GS_VARS = (
    "FAKE_GS_VERSION_FAIL",
    "FAKE_GS_VERSION_HANG",
    "FAKE_GS_PID_FILE",
    "FAKE_GS_HANG",
    "FAKE_GS_DELAY",
    "FAKE_GS_FAIL",
    "FAKE_GS_NO_OUTPUT",
    "FAKE_GS_STDERR",
    "FAKE_GS_GRAY_SOURCE",
)


@pytest.fixture
def fake_gs(tmp_path, monkeypatch):
    """Path to an executable stand-in for the Ghostscript binary."""
    script = tmp_path / "fake-gs"
    script.write_text(FAKE_GS.format(python=sys.executable))
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    for var in FAKE_GS_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("FAKE_GS_ARGS_LOG", str(tmp_path / "gs-args.jsonl"))
    return str(script)


@pytest.fixture
def gs_calls(tmp_path):
    """Argument lists the fake engine was invoked with (version checks excluded)."""
    def _calls():
        log = tmp_path / "gs-args.jsonl"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines() if line]
    return _calls


@pytest.fixture
def icc_dir(tmp_path):
    path = tmp_path / "icc-profiles"
    path.mkdir()
    return path


@pytest.fixture
def engine(fake_gs, icc_dir):
    return CMYKConversionEngine(binary=fake_gs, resolver=ColorProfileResolver(profiles_dir=icc_dir))


class FakeRenderer:
    """
    Writes reportlab PDFs instead of driving a browser. Portrait requests are the
    interior, landscape requests the cover spread.
    """

    def __init__(self, interior_pages=12, image_pages=(), fail_cover=False):
        self.interior_pages = interior_pages
        self.image_pages = set(image_pages)
        self.fail_cover = fail_cover
        self.calls = []

    async def render(self, html, width_mm, height_mm, output_path):
        self.calls.append((width_mm, height_mm, str(output_path)))
        size = (width_mm * mm, height_mm * mm)
        if width_mm > height_mm:
            if self.fail_cover:
                raise RenderingFailed(f"PDF generation failed for {output_path}: browser crashed")
            return build_pdf(output_path, 1, page_size=size, label="Cover")
        return build_pdf(output_path, self.interior_pages, self.image_pages, page_size=size)


@pytest.fixture
def story_payload():
    return {
        "title": "The Whispering Woods",
        "storyLanguage": "en",
        "targetAudience": "children-7-10",
        "customAuthor": "Ana Silva",
        "createdAt": "2025-03-14T10:00:00Z",
        "synopsis": "Two friends follow a fox into the woods.",
        "chapters": [
            {"title": "Chapter 1: The Fox", "content": "<p>Once upon a time...</p>", "imageUri": "ch1.jpg"},
            {"title": "Chapter 2: The Stream", "content": "<p>The water sang.</p>", "imageUri": "ch2.jpg"},
        ],
    }


@pytest.fixture(autouse=True)
def _no_real_ghostscript(monkeypatch):
    # never pick up a developer's GHOSTSCRIPT_BINARY
    monkeypatch.delenv("GHOSTSCRIPT_BINARY", raising=False)
