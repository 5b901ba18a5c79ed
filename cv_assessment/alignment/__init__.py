"""
Per-candidate alignment: the alignment collaborator and the analyzer that
turns its output into a scored CandidateAnalysis.
"""
