"""
Campus Placement Portal - Results & Analytics Core
Batch ingestion of marks, rosters and approval requests, grading, and
placement statistics over the whole student population.

Architecture:
- MongoDB: Student records, approval requests, company reference data
- Grade engine: Pure functions (mark -> grade, SGPA, overall status)
- Analytics: Recomputed on demand, never persisted
"""

__version__ = "1.0.0"
