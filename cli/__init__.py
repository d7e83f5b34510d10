"""Command-line commands for the folio marker reader."""
