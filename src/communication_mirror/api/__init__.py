"""
HTTP surface: thin FastAPI wrapper around the analysis service and session store.
"""
