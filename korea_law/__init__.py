"""
korea-law: time-aware snapshot of Korean statutes for citation verification.

This package provides functionality to:
1. Sync statute text from the law.go.kr DRF open API
2. Detect and classify article changes across sync passes
3. Parse commencement clauses (부칙) for future effective dates
4. Verify statute, article and precedent citations against the snapshot
"""

__version__ = "0.1.0"
