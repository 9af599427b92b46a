import logging

import cursor
import errors
import models
import schemas
import shortcode
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger("shortlinks.crud")

MAX_CREATE_ATTEMPTS = 5
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def create_link(db: Session, link_in: schemas.LinkCreate) -> models.Link:
    """Insert a link under the requested short code, or under a generated one.

    A requested code is never replaced: if it is taken the call raises
    ShortCodeConflict. Generated codes are retried up to MAX_CREATE_ATTEMPTS
    times, counting both codes found taken and inserts lost to a concurrent
    writer on the unique constraint.
    """
    desired = link_in.short_code
    code = desired if desired is not None else shortcode.generate_code()

    for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
        if not shortcode.is_valid(code):
            raise errors.InvalidShortCode(code)

        if get_link(db, code) is None:
            link = models.Link(original_url=link_in.original_url, short_code=code)
            db.add(link)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                # Only a row now holding this code makes the failure a collision
                if get_link(db, code) is None:
                    raise
                if desired is not None:
                    raise errors.ShortCodeConflict(code)
                logger.info("Short code %s taken during insert (attempt %d)", code, attempt)
            else:
                db.refresh(link)
                return link
        elif desired is not None:
            raise errors.ShortCodeConflict(code)
        else:
            logger.info("Short code %s already in use (attempt %d)", code, attempt)

        code = shortcode.generate_code()

    raise errors.LinkCreationFailed(MAX_CREATE_ATTEMPTS)


def get_link(db: Session, code: str) -> models.Link | None:
    return db.query(models.Link).filter_by(short_code=code).first()


def get_links(
    db: Session, limit: int = DEFAULT_PAGE_SIZE, after: str | None = None
) -> tuple[list[models.Link], str | None]:
    """Return one page of links, newest first, and the cursor of the next page.

    ``after`` is a cursor from a previous page; only links strictly past that
    position in (created_at desc, id desc) order are returned. The next cursor
    is None once there is nothing left to read.
    """
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    query = db.query(models.Link)
    if after:
        created_at, link_id = cursor.decode_cursor(after)
        query = query.filter(
            or_(
                models.Link.created_at < created_at,
                and_(models.Link.created_at == created_at, models.Link.id < link_id),
            )
        )

    rows = (
        query.order_by(models.Link.created_at.desc(), models.Link.id.desc())
        .limit(limit + 1)
        .all()
    )
    items = rows[:limit]
    next_cursor = None
    if len(rows) > limit:
        last = items[-1]
        next_cursor = cursor.encode_cursor(last.created_at, last.id)
    return items, next_cursor


def get_all_links(db: Session) -> list[models.Link]:
    return (
        db.query(models.Link)
        .order_by(models.Link.created_at.desc(), models.Link.id.desc())
        .all()
    )


def delete_link(db: Session, link_id: str) -> bool:
    deleted = db.query(models.Link).filter_by(id=link_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def record_visit(db: Session, code: str) -> str | None:
    """Count one visit to ``code`` and return the URL to redirect to."""
    link = get_link(db, code)
    if not link:
        return None
    # Single UPDATE so concurrent visits never overwrite each other
    db.query(models.Link).filter_by(id=link.id).update(
        {models.Link.access_count: models.Link.access_count + 1},
        synchronize_session=False,
    )
    # commit expires the row; read it first
    target = link.original_url
    db.commit()
    return target
