from sqlalchemy.orm import Session
from storefront.models.log import Log

def write_log(db: Session, *, tab=None, action, resource, status="SUCCESS", meta=None):
    entry = Log(tab=tab, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    db.commit()
