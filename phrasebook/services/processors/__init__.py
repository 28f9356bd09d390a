"""
Phrase Processors Package

Stateless helpers used by the phrase services.

Modules:
--------
- text_search: Full-text search clauses (PostgreSQL tsvector, substring fallback)
- activity: Day bucketing for the weekly chart and the activity heatmap
"""
