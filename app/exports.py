"""CSV export of every stored link, uploaded to S3-compatible storage."""
import csv
import io
import logging
import time
import uuid
from datetime import timezone

import boto3
import crud
import errors
from botocore.config import Config
from config import Settings
from sqlalchemy.orm import Session

logger = logging.getLogger("shortlinks.exports")

CSV_COLUMNS = ["original_url", "short_url", "access_count", "created_at"]


def make_s3_client(settings: Settings):
    """Build the S3 client used for exports, or None when no bucket is configured."""
    if not settings.s3_bucket:
        return None
    return boto3.client(
        "s3",
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint,
        aws_access_key_id=settings.s3_access_key_id,
        aws_secret_access_key=settings.s3_secret_access_key,
        config=Config(s3={"addressing_style": "path"}),
    )


def short_url(settings: Settings, code: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/r/{code}"


def as_utc(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def render_csv(links, settings: Settings) -> bytes:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for link in links:
        writer.writerow({
            "original_url": link.original_url,
            "short_url": short_url(settings, link.short_code),
            "access_count": link.access_count,
            "created_at": as_utc(link.created_at).isoformat(),
        })
    return buf.getvalue().encode("utf-8")


def export_key() -> str:
    return f"exports/links_{int(time.time() * 1000)}_{uuid.uuid4()}.csv"


def public_url(settings: Settings, key: str) -> str:
    if settings.export_public_url:
        return f"{settings.export_public_url.rstrip('/')}/{key}"
    endpoint = settings.s3_endpoint or f"https://s3.{settings.s3_region or 'us-east-1'}.amazonaws.com"
    return f"{endpoint.rstrip('/')}/{settings.s3_bucket}/{key}"


def export_links(db: Session, object_store, settings: Settings) -> str:
    """Upload a CSV snapshot of all links and return its public URL.

    Every failure is logged with its cause and re-raised as ExportFailed, so
    callers only ever see one opaque error.
    """
    try:
        if object_store is None or not settings.s3_bucket:
            raise RuntimeError("object store is not configured (set S3_BUCKET)")
        links = crud.get_all_links(db)
        body = render_csv(links, settings)
        key = export_key()
        object_store.put_object(
            Bucket=settings.s3_bucket,
            Key=key,
            Body=body,
            ContentType="text/csv",
            ACL="public-read",
        )
    except Exception as exc:
        logger.exception("Export failed")
        raise errors.ExportFailed() from exc

    logger.info("Exported %d links to %s", len(links), key)
    return public_url(settings, key)
