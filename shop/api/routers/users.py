from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from shop.data.database import get_db
from shop.services.user_service import UserService
from shop.domain.schemas import UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    return service.create_user(payload)

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
