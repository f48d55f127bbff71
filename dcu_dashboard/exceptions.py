"""Exceptions raised by the ingestion pipeline.

Cell-level coercion problems never raise; only whole-file failures do.
"""


class DashboardError(Exception):
    """Base class for ingestion failures."""


class FormatError(DashboardError):
    """Binary content could not be decoded as a spreadsheet."""


class EmptyInputError(DashboardError):
    """A file was decoded but produced no usable rows."""


class RemoteFetchError(DashboardError):
    """The remote spreadsheet export could not be downloaded."""
