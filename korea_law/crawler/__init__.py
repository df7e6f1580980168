"""
law.go.kr DRF open API client and payload models.
"""
