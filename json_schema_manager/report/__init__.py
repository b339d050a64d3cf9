"""Test report writers."""

from .json_report import JSONReporter
from .reporter import Reporter
from .text import TextReporter

__all__ = ["JSONReporter", "Reporter", "TextReporter", "get_reporter"]

OUTPUT_FORMATS = ("text", "json")


def get_reporter(output_format: str = "text", verbose: bool = False, use_colour: bool = False) -> Reporter:
    if output_format == "json":
        return JSONReporter()
    if output_format == "text":
        return TextReporter(verbose=verbose, use_colour=use_colour)
    raise ValueError(f"unknown output format '{output_format}' (expected one of {', '.join(OUTPUT_FORMATS)})")
