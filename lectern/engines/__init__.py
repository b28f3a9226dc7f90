"""
Domain engines: progression, quiz hygiene, ingestion and AI usage accounting.
"""
