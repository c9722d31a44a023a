"""Flattened image gallery for the admin dashboard."""
from typing import List

from sqlalchemy.orm import Session

from rainmakers.models.domain import Pledge, Submission
from rainmakers.services.images import image_urls


def gallery_images(db: Session) -> List[dict]:
    """
    One entry per image URL, most recent record first.

    Confirmed pledges are skipped since their images now belong to the
    submission.
    """
    items = []

    for pledge in db.query(Pledge).filter(~Pledge.submission.has()).all():
        for url in image_urls(pledge.images):
            items.append({
                "id": pledge.id,
                "url": url,
                "source": "pledge",
                "gc_username": pledge.gc_username,
                "label": pledge.title or "Untitled Pledge",
                "created_at": pledge.created_at,
            })

    for submission in db.query(Submission).all():
        for url in image_urls(submission.images):
            items.append({
                "id": submission.id,
                "url": url,
                "source": "submission",
                "gc_username": submission.gc_username,
                "label": submission.cache_name,
                "created_at": submission.created_at,
            })

    items.sort(key=lambda item: item["created_at"], reverse=True)
    return items
