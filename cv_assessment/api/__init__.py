"""
HTTP API for the CV assessment service.

Run with: uvicorn cv_assessment.api.app:app
"""
