"""
Extraction collaborators: job-description requirements, CV parsing and the
candidate-name fallback.
"""
