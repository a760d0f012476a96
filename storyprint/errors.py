"""Exceptions raised by the print production pipeline."""

from typing import Optional


class PrintProductionError(Exception):
    """Base class for every pipeline failure."""


class UnknownPaperType(PrintProductionError, ValueError):
    def __init__(self, paper_type: str, available=()):
        self.paper_type = paper_type
        super().__init__(f"Unknown paper type '{paper_type}'. Available: {list(available)}")


class UnknownColorProfile(PrintProductionError, ValueError):
    def __init__(self, profile_name: str, available=()):
        self.profile_name = profile_name
        super().__init__(f"ICC profile not found: '{profile_name}'. Available: {list(available)}")


class EngineUnavailable(PrintProductionError):
    """The colour-conversion engine did not answer its version check."""


class EngineExecutionFailed(PrintProductionError):
    """The engine exited non-zero, timed out, or produced no output file."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "", timed_out: bool = False):
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out
        if stderr:
            message = f"{message}. Stderr: {stderr.strip()}"
        super().__init__(message)


class PageCountMismatch(PrintProductionError):
    def __init__(self, color_pages: int, gray_pages: int):
        self.color_pages = color_pages
        self.gray_pages = gray_pages
        super().__init__(
            f"Mismatched page counts between color ({color_pages}) and grayscale ({gray_pages}) PDFs"
        )


class SourceDocumentUnreadable(PrintProductionError):
    def __init__(self, path, reason: str = ""):
        self.path = str(path)
        message = f"Cannot read PDF: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RenderingFailed(PrintProductionError):
    """The HTML-to-PDF renderer failed or wrote nothing."""
