"""
Assessment services: batch dispatch, session reconciliation, summaries,
the CV database, suitable-position notifications and questions.

Import services from their modules directly; this package does not
re-export them (common.llm_client depends on operation_base).
"""
