"""S3 repository for ticket attachments."""

from typing import Optional

import boto3


class S3Repository:
    """Minimal helper around S3 for attachment blobs."""

    def __init__(self, bucket_name: str, region: Optional[str] = None, client=None):
        self.bucket_name = bucket_name
        self.client = client or boto3.client("s3", region_name=region)

    def upload_bytes(self, key: str, content: bytes, content_type: str) -> str:
        """Upload a blob (Intelligent-Tiering) and return its ``s3://`` URI."""
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=content,
            ContentType=content_type,
            StorageClass="INTELLIGENT_TIERING",
        )
        return f"s3://{self.bucket_name}/{key}"

    def presigned_url(self, key: str, expires_in: int = 900) -> str:
        """Time-limited GET URL for handing an attachment to a browser."""
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": key},
            ExpiresIn=expires_in,
        )
