# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from utils.hashing import verify_password
from utils.tokenJWT import create_access_token, get_current_user
from utils.audit import client_ip, write_log
from models import users as models
from schemas import user as schemas
from database import get_db

router = APIRouter(tags=["Auth"])


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    username = payload.username.strip()
    db_user = db.query(models.User).filter(models.User.username == username).first()

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"username": username})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.username, "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"username": db_user.username})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
