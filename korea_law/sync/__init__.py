"""
Sync jobs: statutes (priority / recent / catalog / daily) and precedents.
"""
