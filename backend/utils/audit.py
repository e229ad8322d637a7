import logging

from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()
    logger.info("%s %s %s user=%s meta=%s", action, resource, status, user_id, meta or {})

def client_ip(request):
    return request.client.host if request is not None and request.client else None
