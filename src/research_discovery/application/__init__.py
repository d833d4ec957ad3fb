"""
Application Layer - Use Cases

Contains:
- search: aggregation, deduplication, scoring, ranking, filter/sort
- session: corpus lifecycle for one user session
- insights: optional feature extraction from abstracts
"""
