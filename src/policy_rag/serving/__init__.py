"""
Serving — startup bootstrap and the FastAPI application.

:func:`~policy_rag.serving.bootstrap.initialize` builds the AI
components once; :func:`~policy_rag.serving.app.create_app` exposes
them over HTTP.
"""
