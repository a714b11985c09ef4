"""Resolve, download and verify GNAT FSF compiler releases."""
