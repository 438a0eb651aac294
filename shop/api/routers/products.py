# shop/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.schemas import CategoryIn, CategoryOut, ProductIn, ProductOut
from shop.services.product_service import ProductService

router = APIRouter(tags=["catalog"])


def get_service(db: Session):
    return ProductService(db)


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return get_service(db).list_categories()


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    try:
        return get_service(db).create_category(payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category already exists")


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(category_id: int, payload: CategoryIn, db: Session = Depends(get_db)):
    try:
        return get_service(db).update_category(category_id, payload)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/products", response_model=List[ProductOut])
def list_products(
    category_id: int | None = Query(None, gt=0),
    search: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
):
    return get_service(db).list_products(category_id=category_id, search=search)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_product(product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    try:
        return get_service(db).create_product(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_product(product_id, payload)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    try:
        get_service(db).delete_product(product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product is referenced by carts or orders")
    return Response(status_code=204)
