"""Persistence adapters: SQL (SQLAlchemy) and S3 (boto3)."""
