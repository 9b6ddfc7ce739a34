import uuid
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from . import auth, db
from .gateway import PaymentGateway, build_gateway


def get_correlation_id(request: Request, x_correlation_id: Optional[str] = Header(None)):
    cid = x_correlation_id or str(uuid.uuid4())
    request.state.correlation_id = cid  # error handlers report the same id
    return cid


def get_db():
    s = db.SessionLocal()
    try:
        yield s
    finally:
        s.close()


_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
    return _gateway


def get_current_user_id(
    token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    db_sess: Session = Depends(get_db),
) -> int:
    """Resolve the session once per request; handlers receive only the user id."""
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return auth.verify_session(db_sess, token)
