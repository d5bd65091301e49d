import logging
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from mermanager.errors import StoreError

load_dotenv()
logger = logging.getLogger(__name__)

BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "mermanager-images")
REGION = os.getenv("S3_REGION", "ap-northeast-1")


def get_s3_client():
    """Get S3 client with credentials from environment variables"""
    return boto3.client(
        's3',
        region_name=REGION
    )


def public_url(key: str) -> str:
    return f"https://{BUCKET_NAME}.s3.{REGION}.amazonaws.com/{key}"


def upload_file_to_s3(file_data: bytes, key: str, content_type: str = "image/jpeg") -> str:
    """
    Upload a listing photo to S3 and return the URL to store in image_url
    """
    try:
        s3_client = get_s3_client()
        s3_client.put_object(
            Bucket=BUCKET_NAME,
            Key=key,
            Body=file_data,
            ContentType=content_type
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("S3 upload of %s failed: %s", key, e)
        raise StoreError(f"Failed to upload file to S3: {e}") from e
    return public_url(key)


def delete_file_from_s3(key: str):
    try:
        s3_client = get_s3_client()
        s3_client.delete_object(
            Bucket=BUCKET_NAME,
            Key=key
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("S3 delete of %s failed: %s", key, e)
        raise StoreError(f"Failed to delete file from S3: {e}") from e
