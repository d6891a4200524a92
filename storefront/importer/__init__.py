"""Spreadsheet product import pipeline: read, map, convert, validate."""
