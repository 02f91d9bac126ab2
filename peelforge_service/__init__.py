"""
PeelForge background removal package.

Exposes the segmentation engine (border colour, edges, region growth), mask
compositing, the brush-based mask editor, and the FastAPI application.
"""
