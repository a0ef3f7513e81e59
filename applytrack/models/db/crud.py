from sqlalchemy import update
from sqlalchemy.orm import Session

from . import user as model
from ... import schemas


def get_user_by_email(db: Session, email: str):
    return db.query(model.User).filter(model.User.email == email.lower()).first()


def get_user_by_id(db: Session, user_id: int):
    return db.query(model.User).filter(model.User.id == user_id).first()


def create_user(db: Session, user: schemas.UserCreate, hashed_password: str):
    db_user = model.User(
        email=user.email.lower(),
        hashed_password=hashed_password,
        first_name=user.first_name or None,
        last_name=user.last_name or None,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_password(db: Session, db_user: model.User, hashed_password: str):
    db_user.hashed_password = hashed_password
    db.commit()
    return db_user


def get_emails_for_user(db: Session, user_id: int):
    return db.query(model.UserEmail).filter(
        model.UserEmail.user_id == user_id
    ).order_by(
        model.UserEmail.is_primary.desc(),
        model.UserEmail.created_at.desc(),
        model.UserEmail.id.desc(),
    ).all()


def get_user_email(db: Session, email_id: int, user_id: int):
    return db.query(model.UserEmail).filter(
        model.UserEmail.id == email_id,
        model.UserEmail.user_id == user_id,
    ).first()


def add_user_email(db: Session, user_id: int, email: str):
    """Add an email; the user's first email becomes primary. Returns None on duplicates."""
    existing = db.query(model.UserEmail).filter(
        model.UserEmail.user_id == user_id,
        model.UserEmail.email == email,
    ).first()
    if existing:
        return None

    has_any = db.query(model.UserEmail.id).filter(model.UserEmail.user_id == user_id).first()
    db_email = model.UserEmail(user_id=user_id, email=email, is_primary=has_any is None)
    db.add(db_email)
    db.commit()
    db.refresh(db_email)
    return db_email


def delete_user_email(db: Session, email_id: int, user_id: int):
    db_email = get_user_email(db, email_id=email_id, user_id=user_id)
    if db_email:
        db.delete(db_email)
        db.commit()
    return db_email


def set_primary_email(db: Session, email_id: int, user_id: int):
    """
    Make one email the user's primary in a single transaction.

    The other primaries are cleared before the target is set, so the partial
    unique index on (user_id) WHERE is_primary never sees two rows at once.
    An unknown or foreign id leaves every flag untouched.
    """
    db_email = get_user_email(db, email_id=email_id, user_id=user_id)
    if db_email is None:
        return None

    try:
        db.execute(
            update(model.UserEmail)
            .where(model.UserEmail.user_id == user_id, model.UserEmail.id != email_id)
            .values(is_primary=False)
        )
        db.execute(
            update(model.UserEmail)
            .where(model.UserEmail.id == email_id, model.UserEmail.user_id == user_id)
            .values(is_primary=True)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_email)
    return db_email
