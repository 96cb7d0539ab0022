from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from storefront.database import get_db
from storefront.models import Product, Category
from storefront.schemas.product import Product as ProductSchema, ProductCreate

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/", response_model=ProductSchema, status_code=201)
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    """Create a product. Names are unique among active products."""
    name = data.name.strip()

    existing = db.query(Product).filter(
        Product.name == name,
        Product.is_active == True
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail=f"Product '{name}' already exists")

    if data.category_id and not db.query(Category).filter(Category.id == data.category_id).first():
        raise HTTPException(status_code=404, detail="Category not found")

    product = Product(**data.model_dump(exclude={"name"}), name=name)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=ProductSchema)
def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a product with its price-range aggregate."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
