"""
Report archive on Cloudflare R2 — exported CSV/PDF files.

Archiving is optional: without R2 credentials archive_report() returns None.
"""
import logging
from datetime import datetime, timezone

from otr_crm import extensions
from otr_crm.config import R2_BUCKET_NAME, R2_PUBLIC_URL

logger = logging.getLogger('services.storage')

CONTENT_TYPES = {
    'pdf': 'application/pdf',
    'csv': 'text/csv; charset=utf-8',
}


def archive_report(filename, body):
    """Upload an exported report and return its public URL (None when storage is off)."""
    client = extensions.r2_client
    if not client:
        return None

    ext = filename.rsplit('.', 1)[-1].lower()
    timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')
    object_key = f"reports/{timestamp}_{filename}"
    if isinstance(body, str):
        body = body.encode('utf-8')

    client.put_object(
        Bucket=R2_BUCKET_NAME, Key=object_key,
        Body=body, ContentType=CONTENT_TYPES.get(ext, 'application/octet-stream'),
    )
    logger.info("Archived report to R2: %s", object_key)
    return f"{R2_PUBLIC_URL}/{object_key}" if R2_PUBLIC_URL else object_key
