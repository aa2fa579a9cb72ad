"""
Helper utilities for the listings map backend.

This package centralizes the listing pipeline: reading the spreadsheet,
repairing merged cells, deriving filter facets, filtering pandas DataFrames,
grouping rows into map pins, and generating lightweight summaries.
"""
