"""
Shared Infrastructure Module
=============================

Technical adapters for external systems:
- geocoding: reverse geocoders (Nominatim, null)
- platform: OS collaborators (location provider, permission dialog)
"""
