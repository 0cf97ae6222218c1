from sqlalchemy.orm import Session

from interview_app.models.kv_entry import KeyValueEntry


def get_value(db: Session, key: str) -> str | None:
    entry = db.query(KeyValueEntry).filter_by(key=key).first()
    if not entry:
        return None
    return entry.value


def put_value(db: Session, key: str, value: str) -> KeyValueEntry:
    entry = db.query(KeyValueEntry).filter_by(key=key).first()
    if entry:
        entry.value = value
    else:
        entry = KeyValueEntry(key=key, value=value)
        db.add(entry)
    db.commit()
    return entry
