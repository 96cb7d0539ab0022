from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from storefront.database import get_db
from storefront.models import Category
from storefront.schemas.category import Category as CategorySchema, CategoryCreate

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=list[CategorySchema])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.display_order, Category.name).all()


@router.post("/", response_model=CategorySchema, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    """Create a category. Slugs are unique."""
    if db.query(Category).filter(Category.slug == data.slug).first():
        raise HTTPException(status_code=400, detail=f"Category slug '{data.slug}' already exists")
    if data.parent_id and not db.query(Category).filter(Category.id == data.parent_id).first():
        raise HTTPException(status_code=404, detail="Parent category not found")

    category = Category(**data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category
