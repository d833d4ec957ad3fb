"""
Infrastructure Layer - External Integrations

Contains:
- sources: Catalog adapters (Crossref, CORE, arXiv, Papers with Code)
- cache: Citation count cache
- embedding: Sentence embedding model
"""
