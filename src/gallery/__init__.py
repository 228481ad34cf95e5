"""Gallery - presigned S3 uploads with DynamoDB-backed metadata."""

__version__ = "0.1.0"
