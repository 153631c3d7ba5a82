"""
Personal video gallery: Google Drive sync engine and manifest service.
"""
