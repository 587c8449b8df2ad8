"""Infrastructure layer: backend HTTP client and durable session storage.

Nothing here knows about Streamlit; stores receive these objects by injection.
"""
