"""
Download gateway: authenticated direct downloads and password-guarded share links
served from an external document store and object store.
"""
