"""
Receipt Extraction Backend Application.

A FastAPI service (with an AWS Lambda entry point) that extracts structured
data from receipt photos using an OpenAI vision model.
"""

__version__ = "1.0.0"
