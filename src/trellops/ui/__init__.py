"""Textual UI for trellops."""

from trellops.ui.app import TrellopsApp

__all__ = ["TrellopsApp"]
