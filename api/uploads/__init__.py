"""
Upload feature: collision-free file storage under a dedicated directory.
"""
