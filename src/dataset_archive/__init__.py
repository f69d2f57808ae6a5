"""
Hourly dataset archival and retention for the per-region raster tree.
"""
